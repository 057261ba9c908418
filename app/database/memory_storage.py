"""In-memory storage backend. Records live for the lifetime of the process."""

import asyncio
from typing import Any, Optional

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


class MemoryRepository(Repository[RecordT, CreateT, PatchT]):
    """Dict-backed repository. Writes are serialised by a per-map lock."""

    def __init__(self, spec: EntitySpec):
        super().__init__(spec)
        self._records: dict[str, RecordT] = {}
        self._lock = asyncio.Lock()

    def _ensure_unique(self, values: dict[str, Any], exclude_id: Optional[str] = None) -> None:
        for field in self.spec.unique_fields:
            if values.get(field) is None:
                continue
            for record in self._records.values():
                if record.id != exclude_id and getattr(record, field) == values[field]:
                    raise self.spec.conflict(field)

    async def create(self, data: CreateT) -> RecordT:
        values = self._initial_values(data)
        async with self._lock:
            self._ensure_unique(values)
            record = self.spec.record_type.model_validate(values)
            self._records[record.id] = record
        return record.model_copy(deep=True)

    async def get(self, record_id: str) -> Optional[RecordT]:
        record = self._records.get(record_id)
        return record.model_copy(deep=True) if record is not None else None

    async def get_by(self, field: str, value: Any) -> Optional[RecordT]:
        self._check_unique_field(field)
        for record in self._records.values():
            if getattr(record, field) == value:
                return record.model_copy(deep=True)
        return None

    async def list_by(self, field: str, value: Any) -> list[RecordT]:
        self._check_owner_field(field)
        return [
            record.model_copy(deep=True)
            for record in self._records.values()
            if getattr(record, field) == value
        ]

    async def update(self, record_id: str, patch: PatchT) -> Optional[RecordT]:
        changes = patch.changes()
        async with self._lock:
            current = self._records.get(record_id)
            if current is None:
                return None
            self._ensure_unique(changes, exclude_id=record_id)
            merged = current.model_dump()
            merged.update(changes)
            if self.spec.stamps_updates:
                merged["updated_at"] = utcnow()
            record = self.spec.record_type.model_validate(merged)
            self._records[record_id] = record
        return record.model_copy(deep=True)

    async def delete(self, record_id: str) -> bool:
        async with self._lock:
            return self._records.pop(record_id, None) is not None


class MemoryStorage(Storage):
    def __init__(self) -> None:
        self.users = MemoryRepository(USERS)
        self.projects = MemoryRepository(PROJECTS)
        self.generations = MemoryRepository(GENERATIONS)
        self.subscriptions = MemoryRepository(SUBSCRIPTIONS)

    async def ping(self) -> bool:
        return True
