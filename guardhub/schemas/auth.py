import uuid
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional

from ..models.models import UserRole, UserStatus


class LoginRequest(BaseModel):
    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1, max_length=1024)


class PublicUser(BaseModel):
    """The identity handed to clients. Deliberately has no password field."""
    id: uuid.UUID
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    success: bool
    user: Optional[PublicUser] = None
    error: Optional[str] = None


class AuthStatusResponse(BaseModel):
    authenticated: bool
    user: Optional[PublicUser] = None


class StaffResponse(PublicUser):
    status: str
    zone: Optional[str] = None
    shift: Optional[str] = None
    phone: Optional[str] = None
    profile_image_url: Optional[str] = None


class StaffCreate(BaseModel):
    username: str = Field(min_length=3, max_length=100, pattern=r"^[A-Za-z0-9_.-]+$")
    email: EmailStr
    password: str = Field(min_length=8, max_length=1024)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: UserRole = UserRole.security_officer
    zone: Optional[str] = None
    shift: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("username", mode="before")
    @classmethod
    def lower_username(cls, v):
        return str(v).strip().lower() if v is not None else v


class StaffUpdate(BaseModel):
    email: Optional[EmailStr] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[UserRole] = None
    zone: Optional[str] = None
    shift: Optional[str] = None
    phone: Optional[str] = None
    profile_image_url: Optional[str] = None


class StaffStatusUpdate(BaseModel):
    status: UserStatus
