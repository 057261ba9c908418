"""Generation workflow: credit check, attempt record, Gemini call, result persistence.

This is the only operation that writes to three entities. The state machine of a
generation attempt is::

    (request) -> pending -> completed   credits debited, project updated
    (request) -> pending -> error       nothing else touched

Attempts for the same user run one at a time (``KeyedLock``), so two concurrent
requests can no longer both pass the credit check and over-debit the balance.
There is still no cross-entity transaction: a crash between the three success
writes leaves them partially applied.
"""

import asyncio
import logging
from typing import Optional

from app.core.config import settings
from app.database.storage import Storage
from app.models.enums import GenerationStatus, ProjectStatus
from app.schemas.generations import GenerationArtifact, PromptValidation
from app.schemas.records import Generation, GenerationCreate, GenerationPatch, ProjectPatch, UserPatch
from app.services.generation_client import AppGenerator
from app.utils.exceptions import (
    AppError,
    GenerationError,
    InsufficientCreditsError,
    NotFoundError,
    ValidationError,
)
from app.utils.locks import KeyedLock

logger = logging.getLogger(__name__)


class GenerationService:
    """Runs generation attempts against an injected storage and generator."""

    def __init__(
        self,
        storage: Storage,
        generator: AppGenerator,
        credit_cost: Optional[int] = None,
        user_locks: Optional[KeyedLock] = None,
    ):
        self._storage = storage
        self._generator = generator
        self.credit_cost = settings.GENERATION_CREDIT_COST if credit_cost is None else credit_cost
        self._user_locks = user_locks or KeyedLock()

    async def generate(
        self,
        project_id: Optional[str],
        user_id: Optional[str],
        prompt: Optional[str],
        theme: str = "modern",
        language: str = "en",
    ) -> Generation:
        """Run one generation attempt and return the terminal Generation record.

        Raises:
            ValidationError: Missing ids/prompt, or the project belongs to another user
            InsufficientCreditsError: Unknown user or balance below the cost; nothing written
            NotFoundError: Unknown project; nothing written
            GenerationError: The Gemini call failed; the attempt is recorded as ``error``
        """
        missing = [
            name
            for name, value in (("projectId", project_id), ("userId", user_id), ("prompt", prompt))
            if value is None or not str(value).strip()
        ]
        if missing:
            raise ValidationError("Missing required fields", details={"fields": missing})

        async with self._user_locks.hold(user_id):
            user = await self._storage.users.get(user_id)
            if user is None or user.credits < self.credit_cost:
                raise InsufficientCreditsError(
                    details={"required": self.credit_cost, "available": user.credits if user else 0}
                )

            project = await self._storage.projects.get(project_id)
            if project is None:
                raise NotFoundError("Project not found")
            if project.user_id != user_id:
                raise ValidationError("Project does not belong to this user")

            generation = await self._storage.generations.create(
                GenerationCreate(project_id=project_id, user_id=user_id, prompt=prompt)
            )
            logger.info("Generation %s started for project %s", generation.id, project_id)

            try:
                artifact = await self._generator.generate_app(prompt, theme, language)
            except asyncio.CancelledError:
                await self._fail(generation, "Generation cancelled")
                raise
            except Exception as exc:
                message = (exc.message if isinstance(exc, AppError) else str(exc)) or "Generation failed"
                await self._fail(generation, message)
                if isinstance(exc, AppError):
                    raise GenerationError(message, details={"generationId": generation.id}) from exc
                raise

            return await self._complete(generation, artifact)

    async def _fail(self, generation: Generation, message: str) -> None:
        await self._storage.generations.update(
            generation.id,
            GenerationPatch(status=GenerationStatus.ERROR, error_message=message),
        )
        logger.warning("Generation %s failed: %s", generation.id, message)

    async def _complete(self, generation: Generation, artifact: GenerationArtifact) -> Generation:
        completed = await self._storage.generations.update(
            generation.id,
            GenerationPatch(
                generated_code=artifact,
                credits_used=self.credit_cost,
                status=GenerationStatus.COMPLETED,
            ),
        )

        # Re-read under the user lock so the debit applies to the current balance
        user = await self._storage.users.get(generation.user_id)
        if user is not None:
            await self._storage.users.update(user.id, UserPatch(credits=user.credits - self.credit_cost))

        await self._storage.projects.update(
            generation.project_id,
            ProjectPatch(generated_code=artifact, status=ProjectStatus.COMPLETED),
        )
        logger.info(
            "Generation %s completed, %d credits charged to user %s",
            generation.id,
            self.credit_cost,
            generation.user_id,
        )
        return completed

    async def list_for_project(self, project_id: str) -> list[Generation]:
        return await self._storage.generations.list_by("project_id", project_id)

    async def validate_prompt(self, prompt: str) -> PromptValidation:
        return await self._generator.validate_prompt(prompt)

    async def summarize_idea(self, prompt: str) -> str:
        return await self._generator.summarize_idea(prompt)
