"""
Project API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from auth import dependencies as auth_dependencies

from . import schemas, service

router = APIRouter(prefix="/projects")


@router.get("/metadata")
async def get_projects_metadata(
    user_id: str = Depends(auth_dependencies.get_current_user_id),
) -> dict:
    """
    Lightweight project list for the current user (never reads full projects).
    """
    entries = await service.list_metadata(user_id)
    return {"success": True, "data": entries}


@router.post("/metadata/rebuild")
async def rebuild_projects_metadata(
    user_id: str = Depends(auth_dependencies.get_current_user_id),
) -> dict:
    """
    Recompute the current user's metadata from their project rows.
    """
    entries = await service.rebuild_metadata(user_id)
    return {"success": True, "message": "Projects metadata rebuilt", "data": entries}


@router.get("/{project_id}")
async def get_project(
    project_id: str,
    user_id: str = Depends(auth_dependencies.get_current_user_id),
) -> dict:
    project = await service.get_project(user_id, project_id)
    return {"success": True, "data": project.model_dump(by_alias=True)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_project(
    request: schemas.ProjectCreateRequest,
    user_id: str = Depends(auth_dependencies.get_current_user_id),
) -> dict:
    result = await service.create_project(user_id, request)
    return {
        "success": True,
        "message": "Project created successfully",
        "data": result.project.model_dump(by_alias=True),
    }


@router.put("/{project_id}")
async def update_project(
    project_id: str,
    request: schemas.ProjectUpdateRequest,
    user_id: str = Depends(auth_dependencies.get_current_user_id),
) -> dict:
    result = await service.update_project(user_id, project_id, request)
    return {
        "success": True,
        "message": "Project updated successfully",
        "data": result.project.model_dump(by_alias=True),
    }


@router.delete("/{project_id}")
async def delete_project(
    project_id: str,
    user_id: str = Depends(auth_dependencies.get_current_user_id),
) -> dict:
    await service.delete_project(user_id, project_id)
    return {"success": True, "message": "Project deleted successfully"}
