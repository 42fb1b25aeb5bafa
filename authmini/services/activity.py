"""Activity log: best-effort append of user actions, and admin read-back with filters."""

import logging
from datetime import UTC, datetime
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from authmini.core.errors import InfrastructureError
from authmini.models import ActivityLog

logger = logging.getLogger(__name__)

USER_REGISTERED = "User registered"
USER_LOGGED_IN = "User logged in"
PROFILE_UPDATED = "Profile updated"
SETTINGS_UPDATED = "Settings updated"
PASSWORD_CHANGED = "Password changed"
USER_ENABLED = "User enabled"
USER_DISABLED = "User disabled"


def _as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken as UTC; aware ones are converted to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class ActivitySink(Protocol):
    def record(self, user_id: int, action: str) -> None: ...


class SqlActivityLog:
    """ActivitySink backed by the activity_logs table."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def record(self, user_id: int, action: str) -> None:
        """
        Append one entry. Never raises: a failed write is logged and rolled back
        so the operation that triggered it stands.
        """
        try:
            self.session.add(ActivityLog(user_id=user_id, action=action))
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.warning(
                "Activity log write failed: user_id=%s, action=%s, error=%s",
                user_id,
                action,
                type(e).__name__,
            )

    def list_logs(
        self,
        user_id: int | None = None,
        start_date: datetime | None = None,
    ) -> list[ActivityLog]:
        """Return entries newest first, optionally for one user and/or from start_date on."""
        try:
            query = self.session.query(ActivityLog).options(joinedload(ActivityLog.user))
            if user_id is not None:
                query = query.filter(ActivityLog.user_id == user_id)
            if start_date is not None:
                query = query.filter(ActivityLog.created_at >= _as_utc(start_date))
            return query.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc()).all()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise InfrastructureError("activity log query failed") from e
