"""Project management routes."""

from typing import Optional

from fastapi import APIRouter, Query, Response, status

from app.api.deps import Projects
from app.schemas.projects import ProjectCreateRequest
from app.schemas.records import ProjectPatch
from app.utils.envelopes import api_message
from app.utils.exceptions import ValidationError

router = APIRouter(tags=["projects"])


@router.get("/projects")
async def list_projects(projects: Projects, user_id: Optional[str] = Query(None, alias="userId")):
    """List a user's projects, oldest first."""
    if not user_id:
        raise ValidationError("userId is required", details={"fields": ["userId"]})
    return [project.to_json() for project in await projects.list_for_user(user_id)]


@router.post("/projects", status_code=status.HTTP_201_CREATED)
async def create_project(payload: ProjectCreateRequest, projects: Projects):
    project = await projects.create(payload)
    return project.to_json()


@router.get("/projects/{project_id}")
async def get_project(project_id: str, projects: Projects):
    project = await projects.get(project_id)
    return project.to_json()


@router.patch("/projects/{project_id}")
async def update_project(project_id: str, payload: ProjectPatch, projects: Projects):
    """Apply only the fields present in the body."""
    project = await projects.update(project_id, payload)
    return project.to_json()


@router.delete("/projects/{project_id}")
async def delete_project(project_id: str, projects: Projects):
    await projects.delete(project_id)
    return api_message("Project deleted successfully")


@router.get("/projects/{project_id}/download")
async def download_project(project_id: str, projects: Projects):
    """Download the generated Flutter sources as a ZIP archive."""
    filename, content = await projects.build_archive(project_id)
    return Response(
        content=content,
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
