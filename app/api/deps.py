"""FastAPI dependencies for authentication and the application services."""

from typing import Annotated, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.security import decode_access_token
from app.database.storage import Storage
from app.schemas.records import User
from app.services.auth_service import AuthService
from app.services.generation_service import GenerationService
from app.services.paypal_service import PayPalService
from app.services.project_service import ProjectService
from app.services.subscription_service import SubscriptionService
from app.utils.exceptions import AuthError

bearer_scheme = HTTPBearer(auto_error=False)


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_project_service(request: Request) -> ProjectService:
    return request.app.state.project_service


def get_generation_service(request: Request) -> GenerationService:
    return request.app.state.generation_service


def get_payments(request: Request) -> PayPalService:
    return request.app.state.payments


def get_subscription_service(request: Request) -> SubscriptionService:
    return request.app.state.subscription_service


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
    storage: Annotated[Storage, Depends(get_storage)],
) -> User:
    """Get current authenticated user from JWT token."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthError("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    user_id: Optional[str] = payload.get("sub") if payload else None
    if not user_id:
        raise AuthError("Could not validate credentials")

    user = await storage.users.get(user_id)
    if user is None:
        raise AuthError("Could not validate credentials")
    return user


# Convenience type aliases
CurrentUser = Annotated[User, Depends(get_current_user)]
StorageDep = Annotated[Storage, Depends(get_storage)]
Auth = Annotated[AuthService, Depends(get_auth_service)]
Projects = Annotated[ProjectService, Depends(get_project_service)]
Generations = Annotated[GenerationService, Depends(get_generation_service)]
Payments = Annotated[PayPalService, Depends(get_payments)]
Subscriptions = Annotated[SubscriptionService, Depends(get_subscription_service)]
