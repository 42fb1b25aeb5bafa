"""Core app configuration, database, security primitives and errors."""

from authmini.core.config import get_settings, settings
from authmini.core.database import Database, get_db

__all__ = ["Database", "get_db", "get_settings", "settings"]
