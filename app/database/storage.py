"""Storage interface shared by the in-memory and SQL backends.

A ``Storage`` exposes one ``Repository`` per entity kind. Repositories only
move records in and out; business rules (credit checks, ownership) live in
the service layer. Every backend honours the same contracts:

- ``get``/``get_by``/``update`` return ``None`` for unknown ids instead of raising
- ``list_by`` returns records in insertion order, without pagination
- ``update`` applies only the fields explicitly set on the patch
- duplicate values for unique fields raise ``ConflictError``
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Generic, Optional, TypeVar

from pydantic.alias_generators import to_camel

from app.schemas.common import PatchModel
from app.schemas.records import (
    CreateModel,
    Generation,
    GenerationCreate,
    GenerationPatch,
    Project,
    ProjectCreate,
    ProjectPatch,
    RecordModel,
    Subscription,
    SubscriptionCreate,
    SubscriptionPatch,
    User,
    UserCreate,
    UserPatch,
)
from app.utils.exceptions import ConflictError

RecordT = TypeVar("RecordT", bound=RecordModel)
CreateT = TypeVar("CreateT", bound=CreateModel)
PatchT = TypeVar("PatchT", bound=PatchModel)


def new_record_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class EntitySpec:
    """Describes one entity kind: its record type and queryable fields."""

    name: str
    record_type: type[RecordModel]
    unique_fields: tuple[str, ...] = ()
    owner_fields: tuple[str, ...] = ()

    @property
    def stamps_updates(self) -> bool:
        return "updated_at" in self.record_type.model_fields

    def conflict(self, field: str) -> ConflictError:
        return ConflictError(
            f"A {self.name} with this {field.replace('_', ' ')} already exists",
            details={"field": to_camel(field)},
        )


USERS = EntitySpec("user", User, unique_fields=("email", "username"))
PROJECTS = EntitySpec("project", Project, owner_fields=("user_id",))
GENERATIONS = EntitySpec("generation", Generation, owner_fields=("project_id", "user_id"))
SUBSCRIPTIONS = EntitySpec(
    "subscription", Subscription, unique_fields=("paypal_subscription_id",), owner_fields=("user_id",)
)


class Repository(ABC, Generic[RecordT, CreateT, PatchT]):
    """CRUD over one entity kind."""

    def __init__(self, spec: EntitySpec):
        self.spec = spec

    @abstractmethod
    async def create(self, data: CreateT) -> RecordT:
        """Assign an id and timestamps, store, and return the full record."""

    @abstractmethod
    async def get(self, record_id: str) -> Optional[RecordT]:
        ...

    @abstractmethod
    async def get_by(self, field: str, value: Any) -> Optional[RecordT]:
        """Look up a record by one of the entity's unique fields."""

    @abstractmethod
    async def list_by(self, field: str, value: Any) -> list[RecordT]:
        """All records whose owner field equals ``value``, oldest first."""

    @abstractmethod
    async def update(self, record_id: str, patch: PatchT) -> Optional[RecordT]:
        ...

    @abstractmethod
    async def delete(self, record_id: str) -> bool:
        ...

    def _check_unique_field(self, field: str) -> None:
        if field not in self.spec.unique_fields:
            raise ValueError(f"{field!r} is not a unique field of {self.spec.name}")

    def _check_owner_field(self, field: str) -> None:
        if field not in self.spec.owner_fields:
            raise ValueError(f"{field!r} is not an owner field of {self.spec.name}")

    def _initial_values(self, data: CreateModel) -> dict[str, Any]:
        now = utcnow()
        values = data.model_dump()
        values["id"] = new_record_id()
        values["created_at"] = now
        if self.spec.stamps_updates:
            values["updated_at"] = now
        return values


class Storage(ABC):
    """Per-process record store. Construct one explicitly and inject it."""

    users: Repository[User, UserCreate, UserPatch]
    projects: Repository[Project, ProjectCreate, ProjectPatch]
    generations: Repository[Generation, GenerationCreate, GenerationPatch]
    subscriptions: Repository[Subscription, SubscriptionCreate, SubscriptionPatch]

    @abstractmethod
    async def ping(self) -> bool:
        """Return True when the backend can serve requests."""

    async def close(self) -> None:
        return None
