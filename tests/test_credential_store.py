"""Tests for SqlCredentialStore and SqlActivityLog against in-memory and file SQLite."""

import tempfile
import threading
import unittest
from datetime import UTC, datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import MagicMock

from sqlalchemy.exc import IntegrityError, OperationalError

from authmini.core.database import Database
from authmini.core.errors import AuthMiniError, ErrorKind, InfrastructureError
from authmini.core.security import PasswordHasher, TokenCodec
from authmini.models import ActivityLog, Profile, UserSettings
from authmini.services.activity import SqlActivityLog
from authmini.services.auth import AuthService
from authmini.services.credential_store import SqlCredentialStore


class StoreTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.database = Database("sqlite://")
        self.database.create_all()
        self.session = self.database.session()
        self.store = SqlCredentialStore(self.session)

    def tearDown(self) -> None:
        self.session.close()
        self.database.dispose()


class TestCreateAndFind(StoreTestCase):
    def test_create_assigns_id_and_defaults(self) -> None:
        user = self.store.create("a@x.com", "hash-1")
        self.assertEqual(user.id, 1)
        self.assertEqual(user.role, "user")
        self.assertTrue(user.is_active)
        self.assertIsNotNone(user.created_at)

    def test_find_by_email_is_case_sensitive(self) -> None:
        self.store.create("a@x.com", "hash-1")
        self.assertIsNotNone(self.store.find_by_email("a@x.com"))
        self.assertIsNone(self.store.find_by_email("A@X.com"))

    def test_find_by_id(self) -> None:
        user = self.store.create("a@x.com", "hash-1")
        self.assertEqual(self.store.find_by_id(user.id).email, "a@x.com")
        self.assertIsNone(self.store.find_by_id(999))

    def test_duplicate_email_fails_and_keeps_original(self) -> None:
        self.store.create("a@x.com", "hash-1")
        with self.assertRaises(AuthMiniError) as ctx:
            self.store.create("a@x.com", "hash-2")
        self.assertEqual(ctx.exception.kind, ErrorKind.DUPLICATE_EMAIL)
        self.assertEqual(self.store.find_by_email("a@x.com").password_hash, "hash-1")

    def test_empty_hash_rejected(self) -> None:
        with self.assertRaises(ValueError):
            self.store.create("a@x.com", "")


class TestAdminOperations(StoreTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.alice = self.store.create("alice@example.com", "h")
        self.bob = self.store.create("bob@corp.io", "h")
        self.admin = self.store.create("admin@example.com", "h", role="admin")

    def test_list_orders_by_id(self) -> None:
        emails = [u.email for u in self.store.list_users()]
        self.assertEqual(emails, ["alice@example.com", "bob@corp.io", "admin@example.com"])

    def test_search_is_case_insensitive_substring(self) -> None:
        emails = [u.email for u in self.store.list_users(search="EXAMPLE")]
        self.assertEqual(emails, ["alice@example.com", "admin@example.com"])

    def test_active_filter(self) -> None:
        self.store.set_active(self.bob.id, False)
        self.assertEqual([u.email for u in self.store.list_users(active=False)], ["bob@corp.io"])
        self.assertEqual(len(self.store.list_users(active=True)), 2)
        self.assertEqual(self.store.list_users(search="corp", active=True), [])

    def test_search_treats_like_wildcards_literally(self) -> None:
        self.store.create("a_b@x.com", "h")
        self.store.create("axb@x.com", "h")
        self.assertEqual([u.email for u in self.store.list_users(search="a_b")], ["a_b@x.com"])
        self.assertEqual(self.store.list_users(search="%"), [])

    def test_set_active_missing_user(self) -> None:
        self.assertIsNone(self.store.set_active(999, False))

    def test_delete_removes_children(self) -> None:
        alice_id = self.alice.id
        self.store.upsert_profile(alice_id, {"display_name": "Alice"})
        self.store.upsert_settings(alice_id, {"theme": "dark"})
        SqlActivityLog(self.session).record(alice_id, "User registered")

        self.assertTrue(self.store.delete(alice_id))

        self.assertIsNone(self.store.find_by_id(alice_id))
        self.assertEqual(self.session.query(Profile).count(), 0)
        self.assertEqual(self.session.query(UserSettings).count(), 0)
        self.assertEqual(self.session.query(ActivityLog).count(), 0)
        self.assertFalse(self.store.delete(alice_id))

    def test_upserts_update_in_place(self) -> None:
        self.assertTrue(self.store.upsert_profile(self.bob.id, {"display_name": "Bob", "bio": "hi"}))
        self.assertTrue(self.store.upsert_profile(self.bob.id, {"bio": "updated"}))
        profile = self.store.find_by_id(self.bob.id).profile
        self.assertEqual(profile.display_name, "Bob")
        self.assertEqual(profile.bio, "updated")
        self.assertEqual(self.session.query(Profile).count(), 1)
        self.assertFalse(self.store.upsert_settings(999, {"theme": "dark"}))

    def test_update_password(self) -> None:
        self.assertTrue(self.store.update_password(self.bob.id, "new-hash"))
        self.assertEqual(self.store.find_by_email("bob@corp.io").password_hash, "new-hash")
        self.assertFalse(self.store.update_password(999, "new-hash"))


class TestActivityLog(StoreTestCase):
    def test_list_newest_first_with_filters(self) -> None:
        a = self.store.create("a@x.com", "h")
        b = self.store.create("b@x.com", "h")
        log = SqlActivityLog(self.session)
        log.record(a.id, "User registered")
        log.record(b.id, "User registered")
        log.record(a.id, "User logged in")

        entries = log.list_logs()
        self.assertEqual([e.action for e in entries][0], "User logged in")
        self.assertEqual(len(entries), 3)
        self.assertEqual([e.user.email for e in log.list_logs(user_id=a.id)], ["a@x.com", "a@x.com"])
        self.assertEqual(log.list_logs(start_date=datetime.now(UTC) + timedelta(days=1)), [])
        self.assertEqual(len(log.list_logs(start_date=datetime.now(UTC) - timedelta(days=1))), 3)

    def test_record_failure_is_swallowed_and_rolled_back(self) -> None:
        session = MagicMock()
        session.commit.side_effect = OperationalError("INSERT", {}, Exception("connection lost"))
        SqlActivityLog(session).record(1, "User logged in")
        session.rollback.assert_called_once()

    def test_start_date_with_offset_is_compared_in_utc(self) -> None:
        a = self.store.create("a@x.com", "h")
        log = SqlActivityLog(self.session)
        log.record(a.id, "User registered")
        log.record(a.id, "User logged in")

        east = timezone(timedelta(hours=5))
        west = timezone(timedelta(hours=-5))
        self.assertEqual(len(log.list_logs(start_date=datetime.now(east) - timedelta(minutes=1))), 2)
        self.assertEqual(log.list_logs(start_date=datetime.now(west) + timedelta(hours=1)), [])
        self.assertEqual(len(log.list_logs(start_date=datetime.now(UTC).replace(tzinfo=None) - timedelta(minutes=1))), 2)


class TestInfrastructureFailure(unittest.TestCase):
    def test_driver_error_becomes_infrastructure_error(self) -> None:
        session = MagicMock()
        session.query.side_effect = OperationalError("SELECT", {}, Exception("connection lost"))
        with self.assertRaises(InfrastructureError):
            SqlCredentialStore(session).find_by_email("a@x.com")
        session.rollback.assert_called_once()

    def test_integrity_error_outside_create_becomes_infrastructure_error(self) -> None:
        session = MagicMock()
        session.get.return_value = object()
        session.query.return_value.filter.return_value.first.return_value = None
        session.commit.side_effect = IntegrityError(
            "INSERT", {}, Exception("UNIQUE constraint failed: profiles.user_id")
        )
        with self.assertRaises(InfrastructureError):
            SqlCredentialStore(session).upsert_profile(1, {"bio": "hi"})
        session.rollback.assert_called_once()


class TestConcurrentRegistration(unittest.TestCase):
    """Two simultaneous registrations of one email: the unique constraint lets exactly one win."""

    def test_exactly_one_success(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            database = Database(f"sqlite:///{Path(tmp) / 'race.db'}")
            database.create_all()
            hasher = PasswordHasher(rounds=4)
            codec = TokenCodec("race-secret")
            barrier = threading.Barrier(2)
            outcomes: list[object] = []
            lock = threading.Lock()

            def attempt() -> None:
                session = database.session()
                try:
                    store = SqlCredentialStore(session)
                    # Both threads pass the existence check before either inserts.
                    store.find_by_email = lambda email: None  # type: ignore[method-assign]
                    service = AuthService(store, hasher, codec)
                    barrier.wait()
                    try:
                        result: object = service.register("race@x.com", "secret1")
                    except AuthMiniError as e:
                        result = e.kind
                    with lock:
                        outcomes.append(result)
                finally:
                    session.close()

            threads = [threading.Thread(target=attempt) for _ in range(2)]
            for t in threads:
                t.start()
            for t in threads:
                t.join(timeout=30)
            database.dispose()

        self.assertEqual(len(outcomes), 2)
        self.assertEqual(outcomes.count(ErrorKind.DUPLICATE_EMAIL), 1)
        self.assertEqual(len([o for o in outcomes if isinstance(o, int)]), 1)


if __name__ == "__main__":
    unittest.main()
