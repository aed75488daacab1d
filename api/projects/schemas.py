"""
Pydantic schemas for project endpoints.

JSON uses camelCase (`ownerId`, `updatedAt`); Python attributes are snake_case.
Timestamps are integer milliseconds since the epoch.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Project(_CamelModel):
    id: str
    owner_id: str
    name: str
    template: str
    resume: Any
    styles: Any
    created_at: int
    updated_at: int


class MetadataEntry(_CamelModel):
    id: str
    name: str
    template: str
    updated_at: int

    @classmethod
    def from_project(cls, project: Project) -> "MetadataEntry":
        return cls(
            id=project.id,
            name=project.name,
            template=project.template,
            updated_at=project.updated_at,
        )


# Request fields are optional here on purpose: missing or empty values are
# rejected by the service with ValidationError before anything is written.
class ProjectCreateRequest(_CamelModel):
    id: str | None = None
    name: str | None = None
    template: str | None = None
    resume: Any = None
    styles: Any = None
    created_at: int | None = None
    updated_at: int | None = None


class ProjectUpdateRequest(_CamelModel):
    name: str | None = None
    template: str | None = None
    resume: Any = None
    styles: Any = None
    # Accepted for client compatibility; the server always stamps updatedAt.
    updated_at: int | None = None
