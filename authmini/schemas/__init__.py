"""Pydantic request/response schemas."""

from authmini.schemas.auth import (
    CredentialsRequest,
    LoginResponse,
    MeResponse,
    MessageResponse,
    PasswordChangeRequest,
    ProfileData,
    PublicUser,
    RegisterResponse,
    SettingsData,
    UserDetail,
)
from authmini.schemas.health import HealthResponse
from authmini.schemas.users import (
    ActiveUpdateRequest,
    ActiveUpdateResponse,
    ActivityLogItem,
    ActivityLogsResponse,
    UserListItem,
    UserResponse,
    UsersListResponse,
)

__all__ = [
    "ActiveUpdateRequest",
    "ActiveUpdateResponse",
    "ActivityLogItem",
    "ActivityLogsResponse",
    "CredentialsRequest",
    "HealthResponse",
    "LoginResponse",
    "MeResponse",
    "MessageResponse",
    "PasswordChangeRequest",
    "ProfileData",
    "PublicUser",
    "RegisterResponse",
    "SettingsData",
    "UserDetail",
    "UserListItem",
    "UserResponse",
    "UsersListResponse",
]
