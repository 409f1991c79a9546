from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List
from uuid import UUID
from datetime import date, datetime
from domus.models.user import RoleName
from domus.models.user_profile import Gender, ThemePreference
from domus.schemas.geography import AddressCreate, AddressUpdate, AddressResponse


def _role_names(value):
    """Accept Role rows as well as plain names."""
    if value is None:
        return []
    return sorted(getattr(role, "name", role) for role in value)


# ─── Auth ─────────────────────────────────────────────────────────────────────

class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=8, max_length=128)


class MessageResponse(BaseModel):
    message: str


class AuthUser(BaseModel):
    id: UUID
    email: EmailStr
    roles: List[str]


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: AuthUser


# ─── Profiles ─────────────────────────────────────────────────────────────────

class UserProfileBase(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    national_id: Optional[str] = Field(None, max_length=30)
    phone: Optional[str] = Field(None, max_length=30)
    birth_date: Optional[date] = None
    gender: Optional[Gender] = None
    bio: Optional[str] = None
    nationality: Optional[str] = Field(None, max_length=100)
    language: Optional[str] = Field(None, max_length=20)
    theme_preference: Optional[ThemePreference] = None

    model_config = {"use_enum_values": True}


class UserProfileCreate(UserProfileBase):
    user_id: UUID
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    address_id: Optional[int] = None
    address: Optional[AddressCreate] = None


class UserProfileUpdate(UserProfileBase):
    address: Optional[AddressUpdate] = None


class UserProfileResponse(UserProfileBase):
    id: UUID
    user_id: UUID
    avatar_url: Optional[str] = None
    address: Optional[AddressResponse] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


# ─── Users ────────────────────────────────────────────────────────────────────

class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)


class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=8, max_length=128)
    role: Optional[RoleName] = None


class PasswordChange(BaseModel):
    password: str = Field(..., min_length=8, max_length=128)


class UserResponse(BaseModel):
    id: UUID
    email: EmailStr
    roles: List[str]
    is_deleted: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    profile: Optional[UserProfileResponse] = None

    model_config = {"from_attributes": True}

    @field_validator("roles", mode="before")
    @classmethod
    def flatten_roles(cls, v):
        return _role_names(v)
