"""Request/response schemas for admin user management and the activity log."""

from datetime import datetime

from pydantic import StrictBool

from authmini.schemas.auth import ProfileData, UserDetail
from authmini.schemas.base import CamelModel


class UserListItem(CamelModel):
    """User entry for admin list (no password)."""

    id: int
    email: str
    role: str
    is_active: bool
    created_at: datetime | None = None
    profile: ProfileData | None = None


class UsersListResponse(CamelModel):
    users: list[UserListItem]


class UserResponse(CamelModel):
    user: UserDetail


class ActiveUpdateRequest(CamelModel):
    is_active: StrictBool


class ActiveUpdateResponse(CamelModel):
    message: str
    user: UserDetail


class ActivityLogItem(CamelModel):
    id: int
    user_id: int
    action: str
    created_at: datetime | None = None
    email: str | None = None


class ActivityLogsResponse(CamelModel):
    logs: list[ActivityLogItem]
