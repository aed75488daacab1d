"""
Project persistence (raw SQL).

Two tables are touched here and never inside one transaction:

    projects(id text primary key, owner_id text, name text, template text,
             resume jsonb, styles jsonb, created_at bigint, updated_at bigint)
    users(id text primary key, projects_metadata jsonb)  -- array of
             {"id", "name", "template", "updatedAt"}

Every project query except the create-time existence check is owner-scoped.
"""

from __future__ import annotations

import json
from typing import Any

import asyncpg

from core import db

from .errors import ConflictError

_PROJECT_COLUMNS = "id, owner_id, name, template, resume, styles, created_at, updated_at"


def _json_arg(value: Any) -> str | None:
    """
    asyncpg does not automatically encode Python objects for json/jsonb parameters.
    We pass JSON as a string and cast to jsonb in SQL.
    """
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=True)


def _json_value(value: Any) -> Any:
    # jsonb columns come back as text unless a type codec is registered.
    if isinstance(value, str):
        return json.loads(value)
    return value


def _project_row(row: dict[str, Any] | None) -> dict[str, Any] | None:
    if row is None:
        return None
    row["resume"] = _json_value(row.get("resume"))
    row["styles"] = _json_value(row.get("styles"))
    return row


async def project_exists(project_id: str) -> bool:
    """
    Global id check, across all owners.
    """
    row = await db.fetch_one(
        """
        SELECT 1 AS ok
        FROM projects
        WHERE id = $1
        LIMIT 1
        """,
        project_id,
    )
    return row is not None


async def get_project(project_id: str, *, owner_id: str) -> dict[str, Any] | None:
    row = await db.fetch_one(
        f"""
        SELECT {_PROJECT_COLUMNS}
        FROM projects
        WHERE id = $1
          AND owner_id = $2
        """,
        project_id,
        owner_id,
    )
    return _project_row(row)


async def list_projects_for_owner(owner_id: str) -> list[dict[str, Any]]:
    """
    All projects owned by a user, newest-created first.
    """
    rows = await db.fetch_all(
        f"""
        SELECT {_PROJECT_COLUMNS}
        FROM projects
        WHERE owner_id = $1
        ORDER BY created_at DESC, id ASC
        """,
        owner_id,
    )
    return [_project_row(r) for r in rows]


async def insert_project(
    *,
    project_id: str,
    owner_id: str,
    name: str,
    template: str,
    resume: Any,
    styles: Any,
    created_at: int,
    updated_at: int,
) -> dict[str, Any]:
    try:
        row = await db.fetch_one(
            f"""
            INSERT INTO projects (id, owner_id, name, template, resume, styles, created_at, updated_at)
            VALUES ($1, $2, $3, $4, $5::jsonb, $6::jsonb, $7, $8)
            RETURNING {_PROJECT_COLUMNS}
            """,
            project_id,
            owner_id,
            name,
            template,
            _json_arg(resume),
            _json_arg(styles),
            created_at,
            updated_at,
        )
    except asyncpg.UniqueViolationError as exc:
        # Lost the race against a concurrent create with the same id.
        raise ConflictError("Project already exists.") from exc
    if row is None:
        raise db.StoreError("Failed to create project.")
    return _project_row(row)


async def update_project(
    project_id: str,
    *,
    owner_id: str,
    name: str,
    template: str,
    resume: Any,
    styles: Any,
    updated_at: int,
) -> dict[str, Any] | None:
    """
    Conditional update on (id, owner). Returns None when nothing matched.

    `updated_at` never moves backwards or stays put, even if two writes land
    in the same millisecond.
    """
    row = await db.fetch_one(
        f"""
        UPDATE projects
        SET name = $3,
            template = $4,
            resume = $5::jsonb,
            styles = $6::jsonb,
            updated_at = GREATEST($7, updated_at + 1)
        WHERE id = $1
          AND owner_id = $2
        RETURNING {_PROJECT_COLUMNS}
        """,
        project_id,
        owner_id,
        name,
        template,
        _json_arg(resume),
        _json_arg(styles),
        updated_at,
    )
    return _project_row(row)


async def delete_project(project_id: str, *, owner_id: str) -> bool:
    row = await db.fetch_one(
        """
        DELETE FROM projects
        WHERE id = $1
          AND owner_id = $2
        RETURNING id
        """,
        project_id,
        owner_id,
    )
    return row is not None


async def get_projects_metadata(user_id: str) -> list[dict[str, Any]] | None:
    """
    Return the user's metadata array, [] for a null column, None when the
    user row does not exist.
    """
    row = await db.fetch_one(
        """
        SELECT projects_metadata
        FROM users
        WHERE id = $1
        """,
        user_id,
    )
    if row is None:
        return None
    value = _json_value(row.get("projects_metadata"))
    return list(value) if isinstance(value, list) else []


async def set_projects_metadata(user_id: str, entries: list[dict[str, Any]]) -> bool:
    """
    Overwrite the whole metadata array. Returns False when the user row is missing.
    """
    row = await db.fetch_one(
        """
        UPDATE users
        SET projects_metadata = $2::jsonb
        WHERE id = $1
        RETURNING id
        """,
        user_id,
        _json_arg(entries),
    )
    return row is not None
