"""Admin-only user management and activity log routes."""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query

from authmini.api.v1.auth import require_admin
from authmini.api.v1.deps import get_activity_log, get_admin_service
from authmini.core.errors import validation_error
from authmini.core.security import TokenClaims
from authmini.schemas.auth import MessageResponse, UserDetail
from authmini.schemas.users import (
    ActiveUpdateRequest,
    ActiveUpdateResponse,
    ActivityLogItem,
    ActivityLogsResponse,
    UserListItem,
    UserResponse,
    UsersListResponse,
)
from authmini.services.activity import SqlActivityLog
from authmini.services.users import UserAdminService

router = APIRouter()

UserId = Annotated[int, Path(gt=0, description="User id")]

_TRUE_VALUES = {"true", "1"}
_FALSE_VALUES = {"false", "0", ""}


def _parse_active(value: str | None) -> bool | None:
    """Absent means no filter; an empty value filters for disabled accounts."""
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise validation_error("active must be true or false")


@router.get("/users", response_model=UsersListResponse)
def list_users(
    _admin: Annotated[TokenClaims, Depends(require_admin)],
    admin: Annotated[UserAdminService, Depends(get_admin_service)],
    search: Annotated[str | None, Query(max_length=255, description="Substring of email")] = None,
    active: Annotated[str | None, Query(description="Filter by active flag (true or false)")] = None,
) -> UsersListResponse:
    """List users ordered by id (admin only)."""
    users = admin.list_users(search=search, active=_parse_active(active))
    return UsersListResponse(users=[UserListItem.model_validate(u) for u in users])


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(
    user_id: UserId,
    _admin: Annotated[TokenClaims, Depends(require_admin)],
    admin: Annotated[UserAdminService, Depends(get_admin_service)],
) -> UserResponse:
    return UserResponse(user=UserDetail.model_validate(admin.get_user(user_id)))


@router.patch("/users/{user_id}/active", response_model=ActiveUpdateResponse)
def set_user_active(
    user_id: UserId,
    body: ActiveUpdateRequest,
    _admin: Annotated[TokenClaims, Depends(require_admin)],
    admin: Annotated[UserAdminService, Depends(get_admin_service)],
) -> ActiveUpdateResponse:
    """Enable or disable an account. Disabling blocks future logins only."""
    user = admin.set_user_active(user_id, body.is_active)
    return ActiveUpdateResponse(
        message=f"User {'enabled' if body.is_active else 'disabled'}",
        user=UserDetail.model_validate(user),
    )


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: UserId,
    _admin: Annotated[TokenClaims, Depends(require_admin)],
    admin: Annotated[UserAdminService, Depends(get_admin_service)],
) -> MessageResponse:
    return MessageResponse(message=admin.delete_user(user_id))


@router.get("/logs", response_model=ActivityLogsResponse)
def list_activity_logs(
    _admin: Annotated[TokenClaims, Depends(require_admin)],
    activity_log: Annotated[SqlActivityLog, Depends(get_activity_log)],
    user_id: Annotated[int | None, Query(alias="userId", gt=0)] = None,
    start_date: Annotated[datetime | None, Query(alias="startDate")] = None,
) -> ActivityLogsResponse:
    """Activity entries, newest first (admin only)."""
    entries = activity_log.list_logs(user_id=user_id, start_date=start_date)
    return ActivityLogsResponse(
        logs=[
            ActivityLogItem(
                id=e.id,
                user_id=e.user_id,
                action=e.action,
                created_at=e.created_at,
                email=e.user.email if e.user is not None else None,
            )
            for e in entries
        ]
    )
