"""Authentication service for registration, login and profile updates."""

import asyncio
import logging
from datetime import timedelta
from typing import Optional

from app.core.config import settings
from app.core.security import create_access_token, hash_password, verify_password
from app.database.storage import Storage
from app.schemas.auth import RegisterRequest, UserUpdateRequest
from app.schemas.records import User, UserCreate, UserPatch
from app.utils.exceptions import AuthError, ConflictError, NotFoundError

logger = logging.getLogger(__name__)


class AuthService:
    """Service for authentication and account operations."""

    def __init__(self, storage: Storage, starting_credits: Optional[int] = None):
        self._storage = storage
        self._starting_credits = settings.DEFAULT_USER_CREDITS if starting_credits is None else starting_credits
        # Serialises the uniqueness check and the insert
        self._registration_lock = asyncio.Lock()

    async def _ensure_available(self, email: Optional[str], username: Optional[str], user_id: Optional[str] = None) -> None:
        if email is not None:
            existing = await self._storage.users.get_by("email", email)
            if existing is not None and existing.id != user_id:
                raise ConflictError("User already exists", details={"field": "email"})
        if username is not None:
            existing = await self._storage.users.get_by("username", username)
            if existing is not None and existing.id != user_id:
                raise ConflictError("Username is already taken", details={"field": "username"})

    async def register(self, payload: RegisterRequest) -> User:
        """Create a user. Email identities need a password, provider identities do not."""
        email = payload.email.lower()
        async with self._registration_lock:
            await self._ensure_available(email, payload.username)
            user = await self._storage.users.create(
                UserCreate(
                    username=payload.username,
                    email=email,
                    password=hash_password(payload.password) if payload.password else None,
                    display_name=payload.display_name or payload.username,
                    photo_url=payload.photo_url,
                    provider=payload.provider,
                    language=payload.language,
                    theme=payload.theme,
                    credits=self._starting_credits,
                )
            )
        logger.info("Registered user %s via %s", user.id, user.provider)
        return user

    async def authenticate(self, email: str, password: str) -> User:
        """Return the user for valid email/password credentials.

        Users created through the identity provider have no password and can
        never log in this way.
        """
        user = await self._storage.users.get_by("email", email.lower())
        if user is None or not user.password or not verify_password(password, user.password):
            raise AuthError()
        return user

    async def get_user(self, user_id: str) -> User:
        user = await self._storage.users.get(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def update_profile(self, user_id: str, payload: UserUpdateRequest) -> User:
        changes = payload.changes()
        if "email" in changes:
            changes["email"] = changes["email"].lower()
        async with self._registration_lock:
            await self._ensure_available(changes.get("email"), changes.get("username"), user_id=user_id)
            user = await self._storage.users.update(user_id, UserPatch(**changes))
        if user is None:
            raise NotFoundError("User not found")
        return user

    @staticmethod
    def generate_token(user_id: str, remember_me: bool = False) -> str:
        """Generate JWT token for user."""
        expires_delta = timedelta(days=30) if remember_me else None
        return create_access_token(data={"sub": user_id}, expires_delta=expires_delta)
