"""Shared test fixtures.

The repository functions are swapped for an in-memory store so the project
service, the metadata sync and the HTTP layer can be tested without Postgres.
Every fake call yields to the event loop once, like a network round trip.
"""

import asyncio
import copy
import os

os.environ.setdefault("JWT_SECRET", "test-secret")

# ruff: noqa: E402 - Imports must be after env var setup
from collections.abc import AsyncGenerator, Callable
from typing import Any

import httpx
import pytest

from auth import security
from core import db
from projects import repository
from projects.errors import ConflictError


class FakeStore:
    """In-memory stand-in for `projects.repository`."""

    def __init__(self) -> None:
        self.projects: dict[str, dict[str, Any]] = {}
        self.users: dict[str, list[dict[str, Any]] | None] = {}
        self.calls: list[str] = []
        self.failing: set[str] = set()

    def add_user(self, user_id: str, metadata: list[dict[str, Any]] | None = None) -> None:
        self.users[user_id] = copy.deepcopy(metadata) if metadata is not None else []

    def fail(self, name: str) -> None:
        self.failing.add(name)

    async def _enter(self, name: str) -> None:
        self.calls.append(name)
        await asyncio.sleep(0)
        if name in self.failing:
            raise db.StoreError(f"{name} failed")

    async def project_exists(self, project_id: str) -> bool:
        await self._enter("project_exists")
        return project_id in self.projects

    async def get_project(self, project_id: str, *, owner_id: str) -> dict[str, Any] | None:
        await self._enter("get_project")
        row = self.projects.get(project_id)
        if row is None or row["owner_id"] != owner_id:
            return None
        return copy.deepcopy(row)

    async def list_projects_for_owner(self, owner_id: str) -> list[dict[str, Any]]:
        await self._enter("list_projects_for_owner")
        rows = [copy.deepcopy(r) for r in self.projects.values() if r["owner_id"] == owner_id]
        return sorted(rows, key=lambda r: (-r["created_at"], r["id"]))

    async def insert_project(self, *, project_id: str, **fields: Any) -> dict[str, Any]:
        await self._enter("insert_project")
        if project_id in self.projects:
            raise ConflictError("Project already exists.")
        row = {"id": project_id, **copy.deepcopy(fields)}
        self.projects[project_id] = row
        return copy.deepcopy(row)

    async def update_project(
        self,
        project_id: str,
        *,
        owner_id: str,
        updated_at: int,
        **fields: Any,
    ) -> dict[str, Any] | None:
        await self._enter("update_project")
        row = self.projects.get(project_id)
        if row is None or row["owner_id"] != owner_id:
            return None
        row.update(copy.deepcopy(fields))
        row["updated_at"] = max(updated_at, row["updated_at"] + 1)
        return copy.deepcopy(row)

    async def delete_project(self, project_id: str, *, owner_id: str) -> bool:
        await self._enter("delete_project")
        row = self.projects.get(project_id)
        if row is None or row["owner_id"] != owner_id:
            return False
        del self.projects[project_id]
        return True

    async def get_projects_metadata(self, user_id: str) -> list[dict[str, Any]] | None:
        await self._enter("get_projects_metadata")
        if user_id not in self.users:
            return None
        return copy.deepcopy(self.users[user_id] or [])

    async def set_projects_metadata(self, user_id: str, entries: list[dict[str, Any]]) -> bool:
        await self._enter("set_projects_metadata")
        if user_id not in self.users:
            return False
        self.users[user_id] = copy.deepcopy(entries)
        return True


_REPOSITORY_FUNCTIONS = [
    "project_exists",
    "get_project",
    "list_projects_for_owner",
    "insert_project",
    "update_project",
    "delete_project",
    "get_projects_metadata",
    "set_projects_metadata",
]


@pytest.fixture
def store(monkeypatch: pytest.MonkeyPatch) -> FakeStore:
    """Replace the project repository with an in-memory store."""
    fake = FakeStore()
    for name in _REPOSITORY_FUNCTIONS:
        monkeypatch.setattr(repository, name, getattr(fake, name))
    monkeypatch.delenv("METADATA_SYNC_STRICT", raising=False)
    return fake


@pytest.fixture
def resume() -> dict[str, Any]:
    return {"basics": {"name": "Ada Lovelace"}, "sections": [{"title": "Experience", "items": []}]}


@pytest.fixture
def styles() -> dict[str, Any]:
    return {"font": "Inter", "accent": "#336699"}


@pytest.fixture
def auth_headers() -> Callable[[str], dict[str, str]]:
    """Build an Authorization header for a user id."""

    def _headers(user_id: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {security.build_access_token(user_id=user_id)}"}

    return _headers


@pytest.fixture
async def client(store: FakeStore) -> AsyncGenerator[httpx.AsyncClient]:
    """HTTP client bound to the app; the DB lifespan is not started."""
    from main import app

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
