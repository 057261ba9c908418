from fastapi import APIRouter

from app.api.deps import Auth
from app.schemas.auth import UserResponse, UserUpdateRequest

router = APIRouter(tags=["users"])


@router.get("/users/{user_id}")
async def get_user(user_id: str, auth: Auth):
	user = await auth.get_user(user_id)
	return UserResponse.model_validate(user).to_json()


@router.patch("/users/{user_id}")
async def update_user(user_id: str, payload: UserUpdateRequest, auth: Auth):
	user = await auth.update_profile(user_id, payload)
	return UserResponse.model_validate(user).to_json()
