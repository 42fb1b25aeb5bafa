"""Request/response schemas for auth endpoints."""

from datetime import datetime

from pydantic import Field, StrictBool

from authmini.schemas.base import CamelModel


class CredentialsRequest(CamelModel):
    """Email and password for register and login. Emptiness is checked by the service."""

    email: str = Field(default="", max_length=1024, description="Email address")
    password: str = Field(default="", max_length=1024, description="Password")


class RegisterResponse(CamelModel):
    id: int = Field(..., description="New user id")


class PublicUser(CamelModel):
    """Identity returned after login (no password hash)."""

    id: int
    email: str
    role: str


class LoginResponse(CamelModel):
    """JWT access token and the user it was issued for."""

    token: str = Field(..., description="JWT access token; send as 'Authorization: Bearer <token>'")
    user: PublicUser


class ProfileData(CamelModel):
    display_name: str | None = Field(default=None, max_length=255)
    bio: str | None = Field(default=None, max_length=4000)
    avatar_url: str | None = Field(default=None, max_length=2048)


class SettingsData(CamelModel):
    theme: str | None = Field(default=None, max_length=64)
    notifications: StrictBool | None = None


class PasswordChangeRequest(CamelModel):
    new_password: str = Field(default="", max_length=1024)


class UserDetail(CamelModel):
    """Full user view for 'me' and admin detail (no password hash)."""

    id: int
    email: str
    role: str
    is_active: bool
    created_at: datetime | None = None
    profile: ProfileData | None = None
    settings: SettingsData | None = None


class MeResponse(CamelModel):
    user: UserDetail


class MessageResponse(CamelModel):
    message: str
