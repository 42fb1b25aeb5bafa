"""Persistence of user records behind a narrow interface used by the auth and admin services."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Protocol

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from authmini.core.errors import InfrastructureError, duplicate_email
from authmini.models import Profile, User, UserSettings

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("display_name", "bio", "avatar_url")
SETTINGS_FIELDS = ("theme", "notifications")


class CredentialStore(Protocol):
    """What the services need from user persistence. Each call is independent."""

    def find_by_email(self, email: str) -> User | None: ...

    def find_by_id(self, user_id: int) -> User | None: ...

    def create(self, email: str, password_hash: str, role: str = "user") -> User: ...

    def list_users(self, search: str | None = None, active: bool | None = None) -> list[User]: ...

    def set_active(self, user_id: int, is_active: bool) -> User | None: ...

    def delete(self, user_id: int) -> bool: ...

    def update_password(self, user_id: int, password_hash: str) -> bool: ...

    def upsert_profile(self, user_id: int, fields: dict[str, Any]) -> bool: ...

    def upsert_settings(self, user_id: int, fields: dict[str, Any]) -> bool: ...


class SqlCredentialStore:
    """CredentialStore over a SQLAlchemy session (one store per request)."""

    def __init__(self, session: Session) -> None:
        self.session = session

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        """Roll back and re-raise driver failures as InfrastructureError."""
        try:
            yield
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Credential store %s failed: %s", operation, type(e).__name__)
            raise InfrastructureError(f"credential store {operation} failed") from e

    def find_by_email(self, email: str) -> User | None:
        with self._guard("find_by_email"):
            return self.session.query(User).filter(User.email == email).first()

    def find_by_id(self, user_id: int) -> User | None:
        with self._guard("find_by_id"):
            return (
                self.session.query(User)
                .options(selectinload(User.profile), selectinload(User.settings))
                .filter(User.id == user_id)
                .first()
            )

    def create(self, email: str, password_hash: str, role: str = "user") -> User:
        """Insert a user; the unique email constraint turns a duplicate into DuplicateEmail."""
        if not password_hash:
            raise ValueError("password_hash must be non-empty")
        user = User(email=email, password_hash=password_hash, role=role, is_active=True)
        with self._guard("create"):
            self.session.add(user)
            try:
                self.session.commit()
            except IntegrityError as e:
                self.session.rollback()
                raise duplicate_email() from e
            self.session.refresh(user)
        return user

    def list_users(self, search: str | None = None, active: bool | None = None) -> list[User]:
        with self._guard("list_users"):
            query = self.session.query(User).options(selectinload(User.profile))
            if search:
                query = query.filter(User.email.icontains(search, autoescape=True))
            if active is not None:
                query = query.filter(User.is_active.is_(active))
            return query.order_by(User.id).all()

    def set_active(self, user_id: int, is_active: bool) -> User | None:
        with self._guard("set_active"):
            user = self.session.get(User, user_id)
            if user is None:
                return None
            user.is_active = is_active
            self.session.commit()
            self.session.refresh(user)
            return user

    def delete(self, user_id: int) -> bool:
        """Delete a user with its profile, settings and activity rows."""
        with self._guard("delete"):
            user = self.session.get(User, user_id)
            if user is None:
                return False
            self.session.delete(user)
            self.session.commit()
            return True

    def update_password(self, user_id: int, password_hash: str) -> bool:
        if not password_hash:
            raise ValueError("password_hash must be non-empty")
        with self._guard("update_password"):
            user = self.session.get(User, user_id)
            if user is None:
                return False
            user.password_hash = password_hash
            self.session.commit()
            return True

    def upsert_profile(self, user_id: int, fields: dict[str, Any]) -> bool:
        return self._upsert_child(user_id, Profile, PROFILE_FIELDS, fields)

    def upsert_settings(self, user_id: int, fields: dict[str, Any]) -> bool:
        return self._upsert_child(user_id, UserSettings, SETTINGS_FIELDS, fields)

    def _upsert_child(
        self,
        user_id: int,
        model: type[Profile] | type[UserSettings],
        allowed: tuple[str, ...],
        fields: dict[str, Any],
    ) -> bool:
        with self._guard(f"upsert {model.__tablename__}"):
            if self.session.get(User, user_id) is None:
                return False
            row = self.session.query(model).filter(model.user_id == user_id).first()
            if row is None:
                row = model(user_id=user_id)
                self.session.add(row)
            for name in allowed:
                if name in fields:
                    setattr(row, name, fields[name])
            self.session.commit()
            return True
