"""Unit tests for session stores: in-memory expiry/isolation and database error wrapping."""

import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from research_portal.core.session_store import (
    DatabaseSessionStore,
    InMemorySessionStore,
    SessionStoreError,
)
from research_portal.models import SessionRecord


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2025, 5, 15, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += timedelta(seconds=seconds)


class TestInMemorySessionStore(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = FakeClock()
        self.store = InMemorySessionStore(clock=self.clock)

    def test_save_then_load(self) -> None:
        self.store.save("sid-1", {"user": {"id": 1}}, 60)
        self.assertEqual(self.store.load("sid-1"), {"user": {"id": 1}})

    def test_unknown_sid(self) -> None:
        self.assertIsNone(self.store.load("missing"))

    def test_expired_session_is_gone(self) -> None:
        self.store.save("sid-1", {"user": {"id": 1}}, 60)
        self.clock.advance(59)
        self.assertIsNotNone(self.store.load("sid-1"))
        self.clock.advance(1)
        self.assertIsNone(self.store.load("sid-1"))
        self.assertEqual(len(self.store), 0)

    def test_destroy(self) -> None:
        self.store.save("sid-1", {"user": {"id": 1}}, 60)
        self.store.destroy("sid-1")
        self.assertIsNone(self.store.load("sid-1"))
        # Unknown sid is not an error.
        self.store.destroy("sid-1")

    def test_payload_is_copied(self) -> None:
        data = {"user": {"id": 1}}
        self.store.save("sid-1", data, 60)
        data["user"]["id"] = 2
        loaded = self.store.load("sid-1")
        loaded["user"]["id"] = 3
        self.assertEqual(self.store.load("sid-1"), {"user": {"id": 1}})

    def test_prune_expired(self) -> None:
        self.store.save("short", {}, 60)
        self.store.save("long", {}, 600)
        self.clock.advance(120)
        self.assertEqual(self.store.prune_expired(), 1)
        self.assertEqual(len(self.store), 1)


    def test_save_sweeps_abandoned_sessions(self) -> None:
        for i in range(1000):
            self.store.save(f"sid-{i}", {"user": {"id": i}}, 60)
        self.clock.advance(2 * 24 * 60 * 60)
        self.store.save("fresh", {"user": {"id": 1}}, 60)
        self.assertEqual(len(self.store), 1)
        self.assertIsNotNone(self.store.load("fresh"))

    def test_sweep_is_rate_limited(self) -> None:
        self.store.save("short", {}, 1)
        self.clock.advance(30)
        self.store.save("other", {}, 600)
        # Under a minute since the last sweep: the expired entry is still held.
        self.assertEqual(len(self.store), 2)
        self.clock.advance(30)
        self.store.save("third", {}, 600)
        self.assertEqual(len(self.store), 2)
        self.assertIsNone(self.store.load("short"))

class TestDatabaseSessionStore(unittest.TestCase):
    """DatabaseSessionStore against a mocked SQLAlchemy session."""

    def setUp(self) -> None:
        self.clock = FakeClock()
        self.db = MagicMock()
        self.store = DatabaseSessionStore(MagicMock(return_value=self.db), clock=self.clock)

    def test_load_live_record(self) -> None:
        self.db.get.return_value = SessionRecord(
            sid="sid-1",
            data={"user": {"id": 1}},
            expires_at=self.clock.now + timedelta(minutes=5),
        )
        self.assertEqual(self.store.load("sid-1"), {"user": {"id": 1}})
        self.db.close.assert_called_once()

    def test_load_expired_record_deletes_it(self) -> None:
        record = SessionRecord(sid="sid-1", data={}, expires_at=self.clock.now - timedelta(seconds=1))
        self.db.get.return_value = record
        self.assertIsNone(self.store.load("sid-1"))
        self.db.delete.assert_called_once_with(record)
        self.db.commit.assert_called_once()

    def test_save_merges_and_commits(self) -> None:
        self.store.save("sid-1", {"user": {"id": 1}}, 60)
        merged = self.db.merge.call_args[0][0]
        self.assertEqual(merged.sid, "sid-1")
        self.assertEqual(merged.expires_at, self.clock.now + timedelta(seconds=60))
        self.db.commit.assert_called_once()

    def test_errors_are_wrapped(self) -> None:
        self.db.query.return_value.filter.return_value.delete.side_effect = OperationalError(
            "DELETE", {}, Exception("Connection refused")
        )
        with self.assertRaises(SessionStoreError):
            self.store.destroy("sid-1")
        self.db.rollback.assert_called_once()
        self.db.close.assert_called_once()


if __name__ == "__main__":
    unittest.main()
