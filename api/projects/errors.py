"""
Project failures, kept separate from HTTP so the service layer stays
independent of FastAPI. `main.py` maps them to status codes.

Store failures are `core.db.StoreError`.
"""

from __future__ import annotations


class ProjectError(RuntimeError):
    pass


class ValidationError(ProjectError):
    """Missing or empty required field. Nothing was written."""


class ConflictError(ProjectError):
    """A project with this id already exists (for any owner)."""


class NotFoundError(ProjectError):
    """No project with this id is owned by the caller."""


class SyncFailure(ProjectError):
    """
    The metadata write failed after the project write succeeded.

    The project row is authoritative; the user's metadata array is stale
    until the next successful mutation or a rebuild.
    """
