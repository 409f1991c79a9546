from fastapi import APIRouter, Depends, File, Response, UploadFile, status
from typing import List
from uuid import UUID
from domus.api.deps import get_user_profile_service, get_user_service, guard
from domus.schemas.user import (
    MessageResponse, PasswordChange, UserCreate, UserProfileResponse,
    UserProfileUpdate, UserResponse, UserUpdate,
)
from domus.services.user_profile_service import UserProfileService
from domus.services.user_service import UserService
from domus.utils.auth import Principal
from domus.utils.file_storage import IMAGE_RULE, AssetStorage, get_storage, prepare_upload

router = APIRouter(prefix="/users", tags=["Users"])


# ─── Admin ────────────────────────────────────────────────────────────────────

@router.get("/", response_model=List[UserResponse])
async def list_users(
    users: UserService = Depends(get_user_service),
    principal: Principal = Depends(guard("users.list")),
):
    return [UserResponse.model_validate(u) for u in users.list_users()]


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    data: UserCreate,
    users: UserService = Depends(get_user_service),
    principal: Principal = Depends(guard("users.create")),
):
    return UserResponse.model_validate(users.create(data.email, data.password))


# ─── Current user ─────────────────────────────────────────────────────────────

@router.get("/me", response_model=UserResponse)
async def get_me(
    users: UserService = Depends(get_user_service),
    principal: Principal = Depends(guard("users.me")),
):
    return users.to_response(users.get(principal.subject_id))


@router.put("/me", response_model=UserResponse)
async def update_me(
    data: UserProfileUpdate,
    users: UserService = Depends(get_user_service),
    profiles: UserProfileService = Depends(get_user_profile_service),
    principal: Principal = Depends(guard("users.update_me")),
):
    """Create or update the caller's profile (and its address)."""
    profiles.update_by_user_id(principal.subject_id, data)
    return users.to_response(users.get(principal.subject_id))


@router.post("/me/avatar", response_model=UserProfileResponse)
async def upload_avatar(
    avatar: UploadFile = File(...),
    profiles: UserProfileService = Depends(get_user_profile_service),
    storage: AssetStorage = Depends(get_storage),
    principal: Principal = Depends(guard("users.upload_avatar")),
):
    profiles.get(principal.subject_id)

    upload = await prepare_upload(avatar, IMAGE_RULE)
    url = await storage.upload(upload, f"users/{principal.subject_id}/profile")
    try:
        previous = profiles.set_avatar(principal.subject_id, url)
    except Exception:
        await storage.delete_urls([url])
        raise

    if previous:
        await storage.delete_urls([previous])
    return UserProfileResponse.model_validate(profiles.get(principal.subject_id))


@router.put("/me/password", response_model=MessageResponse)
async def change_password(
    data: PasswordChange,
    users: UserService = Depends(get_user_service),
    principal: Principal = Depends(guard("users.change_password")),
):
    users.change_password(principal.subject_id, data.password)
    return MessageResponse(message="Password updated successfully")


@router.put("/me/deactivate", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def deactivate_me(
    users: UserService = Depends(get_user_service),
    principal: Principal = Depends(guard("users.deactivate_me")),
):
    users.deactivate(principal.subject_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ─── By id ────────────────────────────────────────────────────────────────────

@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: UUID,
    users: UserService = Depends(get_user_service),
    principal: Principal = Depends(guard("users.get")),
):
    return users.to_response(users.get(user_id))


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: UUID,
    data: UserUpdate,
    users: UserService = Depends(get_user_service),
    principal: Principal = Depends(guard("users.update")),
):
    """Owners may change their email or password; only admins may change roles."""
    return users.to_response(users.update(user_id, data, principal))


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_user(
    user_id: UUID,
    users: UserService = Depends(get_user_service),
    principal: Principal = Depends(guard("users.delete")),
):
    users.remove(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
