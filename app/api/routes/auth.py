from fastapi import APIRouter, status

from app.api.deps import Auth, CurrentUser
from app.schemas.auth import AuthResponse, LoginRequest, RegisterRequest, UserResponse
from app.schemas.records import User
from app.services.auth_service import AuthService

router = APIRouter(tags=["auth"])


def _auth_response(user: User, remember_me: bool = False) -> dict:
	token = AuthService.generate_token(user.id, remember_me=remember_me)
	return AuthResponse(user=UserResponse.model_validate(user), token=token).to_json()


@router.post("/auth/register", status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, auth: Auth):
	user = await auth.register(payload)
	return _auth_response(user)


@router.post("/auth/login")
async def login(payload: LoginRequest, auth: Auth):
	user = await auth.authenticate(payload.email, payload.password)
	return _auth_response(user, remember_me=payload.remember_me)


@router.get("/auth/me")
async def me(current_user: CurrentUser):
	return UserResponse.model_validate(current_user).to_json()
