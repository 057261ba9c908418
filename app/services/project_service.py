"""Project service: CRUD with ownership checks and archive download."""

import logging

from app.database.storage import Storage
from app.schemas.projects import ProjectCreateRequest
from app.schemas.records import Project, ProjectPatch
from app.services.packaging import build_project_archive, slugify
from app.utils.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class ProjectService:
    """Service for project operations."""

    def __init__(self, storage: Storage):
        self._storage = storage

    async def list_for_user(self, user_id: str) -> list[Project]:
        return await self._storage.projects.list_by("user_id", user_id)

    async def create(self, payload: ProjectCreateRequest) -> Project:
        # The store keeps no foreign keys in memory, so ownership is checked here
        if await self._storage.users.get(payload.user_id) is None:
            raise ValidationError("Invalid project data", details={"userId": "Unknown user"})
        project = await self._storage.projects.create(payload.to_create())
        logger.info("Created project %s for user %s", project.id, project.user_id)
        return project

    async def get(self, project_id: str) -> Project:
        project = await self._storage.projects.get(project_id)
        if project is None:
            raise NotFoundError("Project not found")
        return project

    async def update(self, project_id: str, patch: ProjectPatch) -> Project:
        project = await self._storage.projects.update(project_id, patch)
        if project is None:
            raise NotFoundError("Project not found")
        return project

    async def delete(self, project_id: str) -> None:
        """Delete a project together with its generation history."""
        if await self._storage.projects.get(project_id) is None:
            raise NotFoundError("Project not found")
        for generation in await self._storage.generations.list_by("project_id", project_id):
            await self._storage.generations.delete(generation.id)
        if not await self._storage.projects.delete(project_id):
            raise NotFoundError("Project not found")
        logger.info("Deleted project %s", project_id)

    async def build_archive(self, project_id: str) -> tuple[str, bytes]:
        """Return ``(filename, zip_bytes)`` for the project's generated code."""
        project = await self.get(project_id)
        if project.generated_code is None:
            raise ValidationError("Project has no generated code yet")
        filename = f"{slugify(project.name) or 'flutter-app'}.zip"
        return filename, build_project_archive(project.name, project.generated_code)
