"""SQLAlchemy-backed storage with the same contracts as ``MemoryStorage``."""

import logging
from typing import Any, Optional

from sqlalchemy import delete, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.database.storage import (
    GENERATIONS,
    PROJECTS,
    SUBSCRIPTIONS,
    USERS,
    CreateT,
    EntitySpec,
    PatchT,
    RecordT,
    Repository,
    Storage,
    utcnow,
)
from app.models import models as orm
from app.models.base import Base

logger = logging.getLogger(__name__)


class SqlRepository(Repository[RecordT, CreateT, PatchT]):
    """Repository over one ORM table. Each call runs in its own session."""

    def __init__(self, spec: EntitySpec, orm_model: type[Base], sessions: async_sessionmaker[AsyncSession]):
        super().__init__(spec)
        self._model = orm_model
        self._sessions = sessions

    def _to_record(self, row: Any) -> RecordT:
        return self.spec.record_type.model_validate(row)

    async def _commit(self, session: AsyncSession, changed_fields: list[str]) -> None:
        try:
            await session.commit()
        except IntegrityError as exc:
            await session.rollback()
            for field in self.spec.unique_fields:
                if field in changed_fields and field in str(exc.orig):
                    raise self.spec.conflict(field) from exc
            raise

    async def create(self, data: CreateT) -> RecordT:
        values = self._initial_values(data)
        row = self._model(**values)
        async with self._sessions() as session:
            session.add(row)
            await self._commit(session, list(values))
            return self._to_record(row)

    async def get(self, record_id: str) -> Optional[RecordT]:
        async with self._sessions() as session:
            row = await session.get(self._model, record_id)
            return self._to_record(row) if row is not None else None

    async def get_by(self, field: str, value: Any) -> Optional[RecordT]:
        self._check_unique_field(field)
        async with self._sessions() as session:
            result = await session.execute(
                select(self._model).where(getattr(self._model, field) == value).limit(1)
            )
            row = result.scalars().first()
            return self._to_record(row) if row is not None else None

    async def list_by(self, field: str, value: Any) -> list[RecordT]:
        self._check_owner_field(field)
        async with self._sessions() as session:
            result = await session.execute(
                select(self._model)
                .where(getattr(self._model, field) == value)
                .order_by(self._model.created_at, self._model.id)
            )
            return [self._to_record(row) for row in result.scalars().all()]

    async def update(self, record_id: str, patch: PatchT) -> Optional[RecordT]:
        changes = patch.changes()
        async with self._sessions() as session:
            row = await session.get(self._model, record_id)
            if row is None:
                return None
            for field, value in changes.items():
                setattr(row, field, value)
            if self.spec.stamps_updates:
                row.updated_at = utcnow()
            await self._commit(session, list(changes))
            return self._to_record(row)

    async def delete(self, record_id: str) -> bool:
        async with self._sessions() as session:
            result = await session.execute(delete(self._model).where(self._model.id == record_id))
            await session.commit()
            return result.rowcount > 0


class SqlStorage(Storage):
    def __init__(self, sessions: async_sessionmaker[AsyncSession]):
        self._sessions = sessions
        self.users = SqlRepository(USERS, orm.User, sessions)
        self.projects = SqlRepository(PROJECTS, orm.Project, sessions)
        self.generations = SqlRepository(GENERATIONS, orm.Generation, sessions)
        self.subscriptions = SqlRepository(SUBSCRIPTIONS, orm.Subscription, sessions)

    async def ping(self) -> bool:
        try:
            async with self._sessions() as session:
                await session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as exc:
            logger.warning("Database ping failed: %s", exc)
            return False
