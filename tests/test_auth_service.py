"""Unit tests for authmini.services.auth with a mocked credential store and activity sink."""

import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

from authmini.core.errors import AuthMiniError, ErrorKind
from authmini.core.security import PasswordHasher, Role, TokenCodec
from authmini.services import activity
from authmini.services.auth import AuthService

HASHER = PasswordHasher(rounds=4)


def _user(
    user_id: int = 1,
    email: str = "a@x.com",
    password: str = "secret1",
    role: str = "user",
    is_active: bool = True,
) -> MagicMock:
    """Build a stand-in for a persisted User row."""
    user = MagicMock()
    user.id = user_id
    user.email = email
    user.password_hash = HASHER.hash(password)
    user.role = role
    user.is_active = is_active
    return user


def _service(store: MagicMock | None = None, sink: MagicMock | None = None) -> AuthService:
    return AuthService(
        store or MagicMock(),
        HASHER,
        TokenCodec("unit-test-secret"),
        activity_sink=sink,
    )


class TestRegister(unittest.TestCase):
    """register validates input, rejects duplicates, hashes, and returns only the id."""

    def test_empty_or_missing_fields_are_validation_errors(self) -> None:
        store = MagicMock()
        service = _service(store)
        for email, password in (("", "pw"), ("a@x.com", ""), (None, "pw"), ("a@x.com", None), ("   ", "pw")):
            with self.subTest(email=email, password=password):
                with self.assertRaises(AuthMiniError) as ctx:
                    service.register(email, password)
                self.assertEqual(ctx.exception.kind, ErrorKind.VALIDATION)
        store.create.assert_not_called()

    def test_overlong_password_is_validation_error(self) -> None:
        with self.assertRaises(AuthMiniError) as ctx:
            _service().register("a@x.com", "x" * 129)
        self.assertEqual(ctx.exception.kind, ErrorKind.VALIDATION)

    def test_existing_email_is_duplicate(self) -> None:
        store = MagicMock()
        store.find_by_email.return_value = _user()
        with self.assertRaises(AuthMiniError) as ctx:
            _service(store).register("a@x.com", "secret1")
        self.assertEqual(ctx.exception.kind, ErrorKind.DUPLICATE_EMAIL)
        self.assertNotIn("a@x.com", ctx.exception.message)
        store.create.assert_not_called()

    def test_creates_user_with_hash_and_returns_id(self) -> None:
        store = MagicMock()
        store.find_by_email.return_value = None
        store.create.return_value = _user(user_id=42)
        sink = MagicMock()

        result = _service(store, sink).register("a@x.com", "secret1")

        self.assertEqual(result, 42)
        email, digest = store.create.call_args.args
        self.assertEqual(email, "a@x.com")
        self.assertNotEqual(digest, "secret1")
        self.assertTrue(HASHER.verify("secret1", digest))
        self.assertEqual(store.create.call_args.kwargs["role"], "user")
        sink.record.assert_called_once_with(42, activity.USER_REGISTERED)

    def test_activity_failure_does_not_undo_registration(self) -> None:
        store = MagicMock()
        store.find_by_email.return_value = None
        store.create.return_value = _user(user_id=3)
        sink = MagicMock()
        sink.record.side_effect = RuntimeError("log table gone")

        self.assertEqual(_service(store, sink).register("a@x.com", "secret1"), 3)
        store.create.assert_called_once()
        store.delete.assert_not_called()


class TestLogin(unittest.TestCase):
    """login issues a token on success and fails uniformly otherwise."""

    def test_success_returns_token_and_user(self) -> None:
        store = MagicMock()
        store.find_by_email.return_value = _user(user_id=1, role="user")
        sink = MagicMock()
        service = _service(store, sink)

        result = service.login("a@x.com", "secret1")

        claims = service.codec.verify(result.token)
        self.assertEqual(claims.id, 1)
        self.assertEqual(claims.email, "a@x.com")
        self.assertEqual(claims.role, Role.USER)
        self.assertLessEqual(claims.exp, datetime.now(UTC) + timedelta(hours=1, seconds=5))
        self.assertEqual(result.user.id, 1)
        sink.record.assert_called_once_with(1, activity.USER_LOGGED_IN)

    def test_failures_are_indistinguishable(self) -> None:
        unknown = MagicMock()
        unknown.find_by_email.return_value = None
        wrong_password = MagicMock()
        wrong_password.find_by_email.return_value = _user()
        disabled = MagicMock()
        disabled.find_by_email.return_value = _user(is_active=False)

        errors = []
        for store, password in ((unknown, "secret1"), (wrong_password, "nope"), (disabled, "secret1")):
            sink = MagicMock()
            with self.assertRaises(AuthMiniError) as ctx:
                _service(store, sink).login("a@x.com", password)
            sink.record.assert_not_called()
            errors.append((ctx.exception.kind, ctx.exception.message, ctx.exception.status_code))

        self.assertEqual(len(set(errors)), 1)
        self.assertEqual(errors[0][0], ErrorKind.INVALID_CREDENTIALS)
        self.assertEqual(errors[0][2], 401)

    def test_empty_credentials_are_validation_errors(self) -> None:
        store = MagicMock()
        with self.assertRaises(AuthMiniError) as ctx:
            _service(store).login("", "")
        self.assertEqual(ctx.exception.kind, ErrorKind.VALIDATION)
        store.find_by_email.assert_not_called()


class TestAuthenticatedLookup(unittest.TestCase):
    """authenticate/current_user: uniform 401 on any token problem, fresh data from the store."""

    def test_valid_token_refetches_user(self) -> None:
        store = MagicMock()
        fresh = _user(user_id=5, email="new@x.com")
        store.find_by_id.return_value = fresh
        service = _service(store)
        token = service.codec.issue(5, "old@x.com", Role.USER)

        self.assertIs(service.who_am_i(token), fresh)
        store.find_by_id.assert_called_once_with(5)

    def test_missing_or_bad_token_is_unauthenticated(self) -> None:
        service = _service()
        expired = service.codec.issue(5, "a@x.com", Role.USER, now=datetime.now(UTC) - timedelta(hours=2))
        foreign = TokenCodec("other-secret").issue(5, "a@x.com", Role.USER)
        for token in (None, "", "garbage", expired, foreign):
            with self.subTest(token=token):
                with self.assertRaises(AuthMiniError) as ctx:
                    service.authenticate(token)
                self.assertEqual(ctx.exception.kind, ErrorKind.UNAUTHENTICATED)

    def test_deleted_user_is_unauthenticated(self) -> None:
        store = MagicMock()
        store.find_by_id.return_value = None
        service = _service(store)
        token = service.codec.issue(9, "a@x.com", Role.USER)
        with self.assertRaises(AuthMiniError) as ctx:
            service.who_am_i(token)
        self.assertEqual(ctx.exception.kind, ErrorKind.UNAUTHENTICATED)


class TestSelfService(unittest.TestCase):
    """Profile, settings and password changes for the token's user."""

    def _claims(self, service: AuthService, user_id: int = 1):
        return service.codec.verify(service.codec.issue(user_id, "a@x.com", Role.USER))

    def test_change_password_requires_min_length(self) -> None:
        store = MagicMock()
        service = _service(store)
        with self.assertRaises(AuthMiniError) as ctx:
            service.change_password(self._claims(service), "12345")
        self.assertEqual(ctx.exception.kind, ErrorKind.VALIDATION)
        store.update_password.assert_not_called()

    def test_change_password_stores_new_hash(self) -> None:
        store = MagicMock()
        store.update_password.return_value = True
        sink = MagicMock()
        service = _service(store, sink)

        service.change_password(self._claims(service), "brand-new")

        user_id, digest = store.update_password.call_args.args
        self.assertEqual(user_id, 1)
        self.assertTrue(HASHER.verify("brand-new", digest))
        sink.record.assert_called_once_with(1, activity.PASSWORD_CHANGED)

    def test_profile_update_for_missing_user_is_unauthenticated(self) -> None:
        store = MagicMock()
        store.upsert_profile.return_value = False
        service = _service(store)
        with self.assertRaises(AuthMiniError) as ctx:
            service.update_profile(self._claims(service), {"bio": "hi"})
        self.assertEqual(ctx.exception.kind, ErrorKind.UNAUTHENTICATED)

    def test_settings_update_records_activity(self) -> None:
        store = MagicMock()
        store.upsert_settings.return_value = True
        sink = MagicMock()
        service = _service(store, sink)
        fields = {"theme": "dark", "notifications": False}

        self.assertEqual(service.update_settings(self._claims(service), fields), fields)
        store.upsert_settings.assert_called_once_with(1, fields)
        sink.record.assert_called_once_with(1, activity.SETTINGS_UPDATED)


if __name__ == "__main__":
    unittest.main()
