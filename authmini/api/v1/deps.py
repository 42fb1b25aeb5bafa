"""Per-request service construction from the app-wide components on app.state."""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from authmini.core.config import Settings
from authmini.core.database import get_db
from authmini.core.security import PasswordHasher, TokenCodec
from authmini.services.activity import SqlActivityLog
from authmini.services.auth import AuthService
from authmini.services.credential_store import SqlCredentialStore
from authmini.services.users import UserAdminService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_hasher(request: Request) -> PasswordHasher:
    return request.app.state.hasher


def get_codec(request: Request) -> TokenCodec:
    return request.app.state.codec


def get_store(db: Annotated[Session, Depends(get_db)]) -> SqlCredentialStore:
    return SqlCredentialStore(db)


def get_activity_log(db: Annotated[Session, Depends(get_db)]) -> SqlActivityLog:
    return SqlActivityLog(db)


def get_auth_service(
    store: Annotated[SqlCredentialStore, Depends(get_store)],
    activity_log: Annotated[SqlActivityLog, Depends(get_activity_log)],
    hasher: Annotated[PasswordHasher, Depends(get_hasher)],
    codec: Annotated[TokenCodec, Depends(get_codec)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> AuthService:
    return AuthService(
        store,
        hasher,
        codec,
        activity_sink=activity_log,
        password_change_min_len=settings.PASSWORD_CHANGE_MIN_LEN,
    )


def get_admin_service(
    store: Annotated[SqlCredentialStore, Depends(get_store)],
    activity_log: Annotated[SqlActivityLog, Depends(get_activity_log)],
) -> UserAdminService:
    return UserAdminService(store, activity_sink=activity_log)
