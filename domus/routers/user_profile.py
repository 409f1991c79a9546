from fastapi import APIRouter, Depends, Response, status
from typing import List
from uuid import UUID
from domus.api.deps import get_user_profile_service, guard
from domus.schemas.geography import AddressUpdate
from domus.schemas.user import UserProfileCreate, UserProfileResponse, UserProfileUpdate
from domus.services.user_profile_service import UserProfileService
from domus.utils.auth import Principal

router = APIRouter(prefix="/user-profile", tags=["User Profiles"])


@router.get("/", response_model=List[UserProfileResponse])
async def list_profiles(
    profiles: UserProfileService = Depends(get_user_profile_service),
    principal: Principal = Depends(guard("user_profile.list")),
):
    return [UserProfileResponse.model_validate(p) for p in profiles.list_profiles()]


@router.post("/", response_model=UserProfileResponse, status_code=status.HTTP_201_CREATED)
async def create_profile(
    data: UserProfileCreate,
    profiles: UserProfileService = Depends(get_user_profile_service),
    principal: Principal = Depends(guard("user_profile.create")),
):
    """Create a profile for any user, with an inline address or an existing address id."""
    return UserProfileResponse.model_validate(profiles.create(data))


@router.post("/{user_id}/address", response_model=UserProfileResponse)
async def set_profile_address(
    user_id: UUID,
    data: AddressUpdate,
    profiles: UserProfileService = Depends(get_user_profile_service),
    principal: Principal = Depends(guard("user_profile.address")),
):
    """
    Attach an address to the user's profile, or update the one it has.
    A new address needs street, number, city_id and postal_code_id.
    """
    return UserProfileResponse.model_validate(profiles.add_or_update_address(user_id, data))


@router.get("/{profile_id}", response_model=UserProfileResponse)
async def get_profile(
    profile_id: UUID,
    profiles: UserProfileService = Depends(get_user_profile_service),
    principal: Principal = Depends(guard("user_profile.get")),
):
    return UserProfileResponse.model_validate(profiles.get(profile_id))


@router.put("/{profile_id}", response_model=UserProfileResponse)
async def update_profile(
    profile_id: UUID,
    data: UserProfileUpdate,
    profiles: UserProfileService = Depends(get_user_profile_service),
    principal: Principal = Depends(guard("user_profile.update")),
):
    return UserProfileResponse.model_validate(profiles.update(profile_id, data))


@router.delete("/{profile_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_profile(
    profile_id: UUID,
    profiles: UserProfileService = Depends(get_user_profile_service),
    principal: Principal = Depends(guard("user_profile.delete")),
):
    profiles.remove(profile_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
