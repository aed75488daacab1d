"""
Per-user project metadata: the denormalized `users.projects_metadata` array.

Each store-backed operation reads the whole array, transforms it in memory
and writes the whole array back. There is no version check, so two requests
touching the same user's metadata concurrently can lose one of the updates;
`rebuild` recomputes the array from the `projects` table when that happens.

Order: new entries go to the front; updates keep their index; deletes keep
the relative order of what is left. Entries are unique by id.
"""

from __future__ import annotations

import logging
from typing import Any

from core import db

from . import repository, schemas
from .errors import SyncFailure

logger = logging.getLogger(__name__)


def _entry_dict(entry: schemas.MetadataEntry) -> dict[str, Any]:
    return entry.model_dump(by_alias=True)


def prepend_or_replace(entries: list[dict[str, Any]], entry: dict[str, Any]) -> list[dict[str, Any]]:
    out = list(entries)
    for index, existing in enumerate(out):
        if existing.get("id") == entry["id"]:
            out[index] = entry
            return out
    out.insert(0, entry)
    return out


def replace_by_id(
    entries: list[dict[str, Any]],
    entry: dict[str, Any],
) -> tuple[list[dict[str, Any]], bool]:
    out = list(entries)
    for index, existing in enumerate(out):
        if existing.get("id") == entry["id"]:
            out[index] = entry
            return out, True
    return out, False


def remove_by_id(entries: list[dict[str, Any]], project_id: str) -> list[dict[str, Any]]:
    return [e for e in entries if e.get("id") != project_id]


async def _read(user_id: str) -> list[dict[str, Any]]:
    try:
        entries = await repository.get_projects_metadata(user_id)
    except db.StoreError as exc:
        raise SyncFailure(f"Failed to read projects metadata for user {user_id}.") from exc
    # A user without a row (or with a null column) has no metadata yet.
    entries = entries or []
    if any(not isinstance(e, dict) or "id" not in e for e in entries):
        raise SyncFailure(f"Malformed projects metadata for user {user_id}.")
    return entries


async def _write(user_id: str, entries: list[dict[str, Any]]) -> None:
    try:
        found = await repository.set_projects_metadata(user_id, entries)
    except db.StoreError as exc:
        raise SyncFailure(f"Failed to write projects metadata for user {user_id}.") from exc
    if not found:
        raise SyncFailure(f"User {user_id} does not exist; projects metadata not written.")


async def prepend_or_replace_entry(user_id: str, entry: schemas.MetadataEntry) -> list[dict[str, Any]]:
    entries = await _read(user_id)
    updated = prepend_or_replace(entries, _entry_dict(entry))
    await _write(user_id, updated)
    return updated


async def replace_entry(user_id: str, entry: schemas.MetadataEntry) -> bool:
    """
    Refresh an existing entry in place. Returns False, without writing, when
    the user has no entry for this project.
    """
    entries = await _read(user_id)
    updated, replaced = replace_by_id(entries, _entry_dict(entry))
    if not replaced:
        logger.warning("metadata_entry_missing user_id=%s project_id=%s", user_id, entry.id)
        return False
    await _write(user_id, updated)
    return True


async def remove_entry(user_id: str, project_id: str) -> list[dict[str, Any]]:
    entries = await _read(user_id)
    updated = remove_by_id(entries, project_id)
    await _write(user_id, updated)
    return updated


async def rebuild(user_id: str) -> list[dict[str, Any]]:
    """
    Recompute the array from the user's project rows, newest-created first.
    """
    try:
        rows = await repository.list_projects_for_owner(user_id)
    except db.StoreError as exc:
        logger.exception("metadata_rebuild_failed user_id=%s", user_id)
        raise SyncFailure(f"Failed to list projects for user {user_id}.") from exc

    entries = [
        _entry_dict(schemas.MetadataEntry.from_project(schemas.Project.model_validate(row)))
        for row in rows
    ]
    try:
        await _write(user_id, entries)
    except SyncFailure:
        logger.exception("metadata_rebuild_failed user_id=%s", user_id)
        raise
    logger.info("metadata_rebuilt user_id=%s entries=%s", user_id, len(entries))
    return entries
