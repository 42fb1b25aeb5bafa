"""Admin user management: list with filters, detail, enable/disable, delete."""

import logging

from authmini.core.errors import not_found, validation_error
from authmini.models import User
from authmini.services import activity
from authmini.services.activity import ActivitySink
from authmini.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)


def _check_user_id(user_id: int) -> None:
    if isinstance(user_id, bool) or not isinstance(user_id, int) or user_id <= 0:
        raise validation_error("Invalid user ID")


class UserAdminService:
    """Operations behind the admin-only routes. Callers pass the admin gate first."""

    def __init__(self, store: CredentialStore, activity_sink: ActivitySink | None = None) -> None:
        self.store = store
        self.activity_sink = activity_sink

    def _record(self, user_id: int, action: str) -> None:
        if self.activity_sink is None:
            return
        try:
            self.activity_sink.record(user_id, action)
        except Exception:
            logger.warning("Activity sink raised for user_id=%s action=%s", user_id, action, exc_info=True)

    def list_users(self, search: str | None = None, active: bool | None = None) -> list[User]:
        return self.store.list_users(search=search or None, active=active)

    def get_user(self, user_id: int) -> User:
        _check_user_id(user_id)
        user = self.store.find_by_id(user_id)
        if user is None:
            raise not_found(user_id)
        return user

    def set_user_active(self, user_id: int, is_active: bool) -> User:
        _check_user_id(user_id)
        if not isinstance(is_active, bool):
            raise validation_error("isActive must be a boolean")
        user = self.store.set_active(user_id, is_active)
        if user is None:
            raise not_found(user_id)
        logger.info("User active status changed: user_id=%s, is_active=%s", user_id, is_active)
        self._record(user_id, activity.USER_ENABLED if is_active else activity.USER_DISABLED)
        return user

    def delete_user(self, user_id: int) -> str:
        _check_user_id(user_id)
        if not self.store.delete(user_id):
            raise not_found(user_id)
        logger.info("User deleted: user_id=%s", user_id)
        return f"User with ID {user_id} deleted successfully"
