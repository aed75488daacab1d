"""
Project business logic.

Every mutation is two independent writes:
1. the `projects` row (source of truth)
2. the owner's metadata array (see `metadata.py`)

Step 2 only runs after step 1 succeeded, so the `projects` table is never
behind the metadata. A failure in step 1 aborts before step 2 is attempted.
A failure in step 2 is logged and, unless METADATA_SYNC_STRICT is set, the
mutation is still reported as successful.
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Any

from . import metadata, repository, schemas
from .errors import ConflictError, NotFoundError, SyncFailure, ValidationError

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class ProjectMutation:
    project: schemas.Project | None
    metadata_synced: bool


def metadata_sync_strict() -> bool:
    return os.environ.get("METADATA_SYNC_STRICT", "").strip().lower() in _TRUTHY


def _now_ms() -> int:
    return int(time.time() * 1000)


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (dict, list, bool, int, float)):
        return not value
    return False


def _require(**fields: Any) -> None:
    missing = [name for name, value in fields.items() if _is_empty(value)]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


async def _sync(op: str, user_id: str, project_id: str, step: Awaitable[Any]) -> bool:
    try:
        await step
    except SyncFailure:
        logger.exception(
            "metadata_sync_failed op=%s project_id=%s user_id=%s",
            op,
            project_id,
            user_id,
        )
        if metadata_sync_strict():
            raise
        return False
    return True


async def list_metadata(user_id: str) -> list[dict[str, Any]]:
    entries = await repository.get_projects_metadata(user_id)
    return entries or []


async def get_project(user_id: str, project_id: str) -> schemas.Project:
    # Absent and foreign-owned ids look the same to the caller.
    row = await repository.get_project(project_id, owner_id=user_id)
    if row is None:
        raise NotFoundError("Project not found.")
    return schemas.Project.model_validate(row)


async def create_project(user_id: str, payload: schemas.ProjectCreateRequest) -> ProjectMutation:
    _require(
        id=payload.id,
        name=payload.name,
        template=payload.template,
        resume=payload.resume,
        styles=payload.styles,
    )

    # Check-then-insert is not atomic; the primary key catches the race.
    if await repository.project_exists(payload.id):
        raise ConflictError("Project already exists.")

    now = _now_ms()
    # A client clock ahead of ours would otherwise leak into every later update.
    updated_at = min(payload.updated_at or now, now)
    row = await repository.insert_project(
        project_id=payload.id,
        owner_id=user_id,
        name=payload.name,
        template=payload.template,
        resume=payload.resume,
        styles=payload.styles,
        created_at=payload.created_at or now,
        updated_at=updated_at,
    )
    project = schemas.Project.model_validate(row)
    logger.info("project_created project_id=%s user_id=%s", project.id, user_id)

    synced = await _sync(
        "create",
        user_id,
        project.id,
        metadata.prepend_or_replace_entry(user_id, schemas.MetadataEntry.from_project(project)),
    )
    return ProjectMutation(project=project, metadata_synced=synced)


async def update_project(
    user_id: str,
    project_id: str,
    payload: schemas.ProjectUpdateRequest,
) -> ProjectMutation:
    _require(
        name=payload.name,
        template=payload.template,
        resume=payload.resume,
        styles=payload.styles,
    )

    row = await repository.update_project(
        project_id,
        owner_id=user_id,
        name=payload.name,
        template=payload.template,
        resume=payload.resume,
        styles=payload.styles,
        updated_at=_now_ms(),
    )
    if row is None:
        raise NotFoundError("Project not found.")
    project = schemas.Project.model_validate(row)
    logger.info("project_updated project_id=%s user_id=%s", project.id, user_id)

    # An entry that is missing from the array is not re-added here; see rebuild.
    synced = await _sync(
        "update",
        user_id,
        project.id,
        metadata.replace_entry(user_id, schemas.MetadataEntry.from_project(project)),
    )
    return ProjectMutation(project=project, metadata_synced=synced)


async def delete_project(user_id: str, project_id: str) -> ProjectMutation:
    deleted = await repository.delete_project(project_id, owner_id=user_id)
    if not deleted:
        raise NotFoundError("Project not found.")
    logger.info("project_deleted project_id=%s user_id=%s", project_id, user_id)

    synced = await _sync(
        "delete",
        user_id,
        project_id,
        metadata.remove_entry(user_id, project_id),
    )
    return ProjectMutation(project=None, metadata_synced=synced)


async def rebuild_metadata(user_id: str) -> list[dict[str, Any]]:
    return await metadata.rebuild(user_id)
