"""Registration, login and authenticated self-service (who am I, profile, settings, password)."""

import logging
from dataclasses import dataclass
from typing import Any

from authmini.core.errors import (
    InvalidToken,
    duplicate_email,
    invalid_credentials,
    unauthenticated,
    validation_error,
)
from authmini.core.security import (
    EMAIL_MAX_LEN,
    PASSWORD_MAX_LEN,
    PasswordHasher,
    Role,
    TokenClaims,
    TokenCodec,
)
from authmini.models import User
from authmini.services import activity
from authmini.services.activity import ActivitySink
from authmini.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginResult:
    token: str
    user: User


def _require_credentials(email: str | None, password: str | None) -> tuple[str, str]:
    if not email or not email.strip() or not password:
        raise validation_error("Email and password are required")
    return email, password


class AuthService:
    """
    Orchestrates the credential store, password hasher and token codec.

    Holds no state of its own; build one per request around that request's store.
    """

    def __init__(
        self,
        store: CredentialStore,
        hasher: PasswordHasher,
        codec: TokenCodec,
        activity_sink: ActivitySink | None = None,
        password_change_min_len: int = 6,
    ) -> None:
        self.store = store
        self.hasher = hasher
        self.codec = codec
        self.activity_sink = activity_sink
        self.password_change_min_len = password_change_min_len

    def _record(self, user_id: int, action: str) -> None:
        if self.activity_sink is None:
            return
        try:
            self.activity_sink.record(user_id, action)
        except Exception:
            logger.warning("Activity sink raised for user_id=%s action=%s", user_id, action, exc_info=True)

    def register(self, email: str | None, password: str | None) -> int:
        """Create a user with role 'user'; return its id. Raises ValidationError or DuplicateEmail."""
        email, password = _require_credentials(email, password)
        if len(email) > EMAIL_MAX_LEN:
            raise validation_error("Invalid email length.")
        if len(password) > PASSWORD_MAX_LEN:
            raise validation_error("Invalid password length.")

        if self.store.find_by_email(email) is not None:
            raise duplicate_email()
        user = self.store.create(email, self.hasher.hash(password), role=Role.USER.value)
        logger.info("User registered: user_id=%s", user.id)
        self._record(user.id, activity.USER_REGISTERED)
        return user.id

    def login(self, email: str | None, password: str | None) -> LoginResult:
        """
        Verify credentials and issue an access token.

        Unknown email, disabled account and wrong password all raise the same
        InvalidCredentials error.
        """
        email, password = _require_credentials(email, password)
        user = self.store.find_by_email(email)
        if user is None:
            self.hasher.burn(password)
            raise invalid_credentials()
        password_ok = self.hasher.verify(password, user.password_hash)
        if not user.is_active or not password_ok:
            raise invalid_credentials()

        token = self.codec.issue(user.id, user.email, user.role)
        logger.info("User logged in: user_id=%s", user.id)
        self._record(user.id, activity.USER_LOGGED_IN)
        return LoginResult(token=token, user=user)

    def authenticate(self, token: str | None) -> TokenClaims:
        """Verify a bearer token; any failure is Unauthenticated."""
        if not token:
            raise unauthenticated("No token provided")
        try:
            return self.codec.verify(token)
        except InvalidToken:
            raise unauthenticated("Invalid token")

    def current_user(self, claims: TokenClaims) -> User:
        """Re-fetch the token's user so profile data is fresh. A deleted user is Unauthenticated."""
        user = self.store.find_by_id(claims.id)
        if user is None:
            raise unauthenticated("Invalid token")
        return user

    def who_am_i(self, token: str | None) -> User:
        return self.current_user(self.authenticate(token))

    def update_profile(self, claims: TokenClaims, fields: dict[str, Any]) -> dict[str, Any]:
        if not self.store.upsert_profile(claims.id, fields):
            raise unauthenticated("Invalid token")
        self._record(claims.id, activity.PROFILE_UPDATED)
        return fields

    def update_settings(self, claims: TokenClaims, fields: dict[str, Any]) -> dict[str, Any]:
        if not self.store.upsert_settings(claims.id, fields):
            raise unauthenticated("Invalid token")
        self._record(claims.id, activity.SETTINGS_UPDATED)
        return fields

    def change_password(self, claims: TokenClaims, new_password: str | None) -> None:
        if (
            not new_password
            or len(new_password) < self.password_change_min_len
            or len(new_password) > PASSWORD_MAX_LEN
        ):
            raise validation_error(
                "New password is required and must be at least "
                f"{self.password_change_min_len} characters"
            )
        if not self.store.update_password(claims.id, self.hasher.hash(new_password)):
            raise unauthenticated("Invalid token")
        logger.info("Password changed: user_id=%s", claims.id)
        self._record(claims.id, activity.PASSWORD_CHANGED)
