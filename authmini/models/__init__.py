"""SQLAlchemy ORM models."""

from authmini.models.activity_log import ActivityLog
from authmini.models.base import Base
from authmini.models.profile import Profile, UserSettings
from authmini.models.user import User

__all__ = ["ActivityLog", "Base", "Profile", "User", "UserSettings"]
