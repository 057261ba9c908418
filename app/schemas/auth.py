"""Authentication and user profile schemas."""

from datetime import datetime
from typing import ClassVar, Optional

from pydantic import ConfigDict, EmailStr, Field, model_validator

from app.models.enums import AuthProvider, Language, SubscriptionTier, UiTheme
from app.schemas.common import ApiModel, PatchModel


class RegisterRequest(ApiModel):
    """Registration with email/password, or a provider identity without a password."""

    model_config = ConfigDict(extra="forbid")

    username: str = Field(..., min_length=1, max_length=64)
    email: EmailStr
    password: Optional[str] = Field(None, min_length=8, max_length=128)
    display_name: Optional[str] = Field(None, max_length=100)
    photo_url: Optional[str] = Field(None, alias="photoURL")
    provider: AuthProvider = AuthProvider.EMAIL
    language: Language = Language.EN
    theme: UiTheme = UiTheme.LIGHT

    @model_validator(mode="after")
    def _email_identities_need_password(self):
        if self.provider == AuthProvider.EMAIL and not self.password:
            raise ValueError("password is required for email registration")
        return self


class LoginRequest(ApiModel):
    """Login request with email and password."""

    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1, max_length=128)
    remember_me: bool = False


class UserResponse(ApiModel):
    """User as returned by the API. There is deliberately no password field."""

    id: str
    username: str
    email: str
    display_name: Optional[str] = None
    photo_url: Optional[str] = Field(None, alias="photoURL")
    provider: AuthProvider
    language: Language
    theme: UiTheme
    credits: int
    subscription: SubscriptionTier
    created_at: datetime
    updated_at: datetime


class AuthResponse(ApiModel):
    """Authentication response with user and token."""

    user: UserResponse
    token: str


class UserUpdateRequest(PatchModel):
    """Profile fields a user may change. Credits and plan are not among them."""

    non_nullable: ClassVar[frozenset[str]] = frozenset({"username", "email", "language", "theme"})

    username: Optional[str] = Field(None, min_length=1, max_length=64)
    email: Optional[EmailStr] = None
    display_name: Optional[str] = Field(None, max_length=100)
    photo_url: Optional[str] = Field(None, alias="photoURL")
    language: Optional[Language] = None
    theme: Optional[UiTheme] = None
