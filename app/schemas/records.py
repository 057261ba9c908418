"""Stored record types with their create inputs and patch types.

Records are immutable snapshots: the storage layer hands out copies and every
change goes through ``Repository.update`` with an explicit patch. Ids and
timestamps are assigned by the store and never accepted from callers.
"""

from datetime import datetime
from typing import Any, ClassVar, Optional

from pydantic import ConfigDict, Field

from app.models.enums import (
    AuthProvider,
    GenerationStatus,
    Language,
    ProjectStatus,
    SubscriptionStatus,
    SubscriptionTier,
    UiTheme,
)
from app.schemas.common import ApiModel, PatchModel
from app.schemas.generations import GenerationArtifact


class RecordModel(ApiModel):
    model_config = ConfigDict(frozen=True)

    id: str
    created_at: datetime


class CreateModel(ApiModel):
    model_config = ConfigDict(extra="forbid")


# === Users ===


class User(RecordModel):
    username: str
    email: str
    password: Optional[str] = None
    display_name: Optional[str] = None
    photo_url: Optional[str] = Field(default=None, alias="photoURL")
    provider: AuthProvider = AuthProvider.EMAIL
    language: Language = Language.EN
    theme: UiTheme = UiTheme.LIGHT
    credits: int = 100
    subscription: SubscriptionTier = SubscriptionTier.FREE
    updated_at: datetime


class UserCreate(CreateModel):
    username: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    password: Optional[str] = None
    display_name: Optional[str] = None
    photo_url: Optional[str] = Field(default=None, alias="photoURL")
    provider: AuthProvider = AuthProvider.EMAIL
    language: Language = Language.EN
    theme: UiTheme = UiTheme.LIGHT
    credits: int = 100
    subscription: SubscriptionTier = SubscriptionTier.FREE


class UserPatch(PatchModel):
    non_nullable: ClassVar[frozenset[str]] = frozenset({"username", "email", "provider", "language", "theme", "credits", "subscription"})

    username: Optional[str] = Field(default=None, min_length=1)
    email: Optional[str] = Field(default=None, min_length=3)
    password: Optional[str] = None
    display_name: Optional[str] = None
    photo_url: Optional[str] = Field(default=None, alias="photoURL")
    provider: Optional[AuthProvider] = None
    language: Optional[Language] = None
    theme: Optional[UiTheme] = None
    credits: Optional[int] = None
    subscription: Optional[SubscriptionTier] = None


# === Projects ===


class Project(RecordModel):
    user_id: str
    name: str
    description: str
    theme: str = "modern"
    language: Language = Language.EN
    status: ProjectStatus = ProjectStatus.DRAFT
    generated_code: Optional[GenerationArtifact] = None
    assets: Optional[Any] = None
    settings: Optional[dict[str, Any]] = None
    updated_at: datetime


class ProjectCreate(CreateModel):
    user_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., max_length=5000)
    theme: str = "modern"
    language: Language = Language.EN
    status: ProjectStatus = ProjectStatus.DRAFT
    generated_code: Optional[GenerationArtifact] = None
    assets: Optional[Any] = None
    settings: Optional[dict[str, Any]] = None


class ProjectPatch(PatchModel):
    non_nullable: ClassVar[frozenset[str]] = frozenset({"name", "description", "theme", "language", "status"})

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    theme: Optional[str] = None
    language: Optional[Language] = None
    status: Optional[ProjectStatus] = None
    generated_code: Optional[GenerationArtifact] = None
    assets: Optional[Any] = None
    settings: Optional[dict[str, Any]] = None


# === Generations ===


class Generation(RecordModel):
    project_id: str
    user_id: str
    prompt: str
    generated_code: Optional[GenerationArtifact] = None
    credits_used: int = 0
    status: GenerationStatus = GenerationStatus.PENDING
    error_message: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status != GenerationStatus.PENDING


class GenerationCreate(CreateModel):
    project_id: str
    user_id: str
    prompt: str
    generated_code: Optional[GenerationArtifact] = None
    credits_used: int = 0
    status: GenerationStatus = GenerationStatus.PENDING
    error_message: Optional[str] = None


class GenerationPatch(PatchModel):
    non_nullable: ClassVar[frozenset[str]] = frozenset({"credits_used", "status"})

    generated_code: Optional[GenerationArtifact] = None
    credits_used: Optional[int] = None
    status: Optional[GenerationStatus] = None
    error_message: Optional[str] = None


# === Subscriptions ===


class Subscription(RecordModel):
    user_id: str
    plan: SubscriptionTier
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    credits_remaining: int = 0
    paypal_subscription_id: Optional[str] = None
    expires_at: Optional[datetime] = None
    updated_at: datetime


class SubscriptionCreate(CreateModel):
    user_id: str
    plan: SubscriptionTier
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    credits_remaining: int = 0
    paypal_subscription_id: Optional[str] = None
    expires_at: Optional[datetime] = None


class SubscriptionPatch(PatchModel):
    non_nullable: ClassVar[frozenset[str]] = frozenset({"plan", "status", "credits_remaining"})

    plan: Optional[SubscriptionTier] = None
    status: Optional[SubscriptionStatus] = None
    credits_remaining: Optional[int] = None
    paypal_subscription_id: Optional[str] = None
    expires_at: Optional[datetime] = None
