"""Unit tests for bind/unbind/current_identity over an in-memory session store."""

import unittest
from unittest.mock import MagicMock

from research_portal.core.session_store import (
    InMemorySessionStore,
    SessionStoreError,
    SessionTeardownError,
)
from research_portal.schemas.auth import Identity
from research_portal.services.session_binding import (
    SessionContext,
    bind,
    current_identity,
    unbind,
)


def _identity(role: str = "admin", **kwargs: object) -> Identity:
    defaults = {"id": 1, "username": "jdoe", "name": "Jane Doe", "email": "jdoe@research.org"}
    defaults.update(kwargs)
    return Identity(role=role, **defaults)


class TestBind(unittest.TestCase):
    def setUp(self) -> None:
        self.store = InMemorySessionStore()
        self.ctx = SessionContext(self.store, 3600)

    def test_anonymous_by_default(self) -> None:
        self.assertIsNone(current_identity(self.ctx))
        self.assertIsNone(self.ctx.sid)

    def test_bind_then_read(self) -> None:
        identity = _identity()
        bind(self.ctx, identity)
        self.assertEqual(current_identity(self.ctx), identity)
        self.assertEqual(current_identity(self.ctx), identity)
        self.assertIsNotNone(self.ctx.sid)
        self.assertEqual(self.store.load(self.ctx.sid), {"user": identity.model_dump()})

    def test_rebind_replaces_and_rotates_token(self) -> None:
        bind(self.ctx, _identity())
        first_sid = self.ctx.sid
        other = _identity(role="user", id=2, username="asmith", name="A Smith")
        bind(self.ctx, other)
        self.assertEqual(current_identity(self.ctx), other)
        self.assertNotEqual(self.ctx.sid, first_sid)
        self.assertIsNone(self.store.load(first_sid))
        self.assertEqual(len(self.store), 1)

    def test_password_hash_never_stored(self) -> None:
        bind(self.ctx, _identity())
        self.assertNotIn("password_hash", self.store.load(self.ctx.sid)["user"])


    def test_failed_rebind_leaves_no_orphan(self) -> None:
        bind(self.ctx, _identity())
        first_sid = self.ctx.sid
        self.store.destroy = MagicMock(side_effect=SessionStoreError("down"))
        with self.assertRaises(SessionStoreError):
            bind(self.ctx, _identity(role="user", id=2, username="asmith"))
        self.assertEqual(len(self.store), 1)
        self.assertEqual(self.ctx.sid, first_sid)
        self.assertEqual(current_identity(self.ctx).username, "jdoe")

class TestUnbind(unittest.TestCase):
    def test_unbind_destroys_session(self) -> None:
        store = InMemorySessionStore()
        ctx = SessionContext(store, 3600)
        bind(ctx, _identity())
        sid = ctx.sid
        unbind(ctx)
        self.assertIsNone(current_identity(ctx))
        self.assertTrue(ctx.cleared)
        self.assertIsNone(store.load(sid))
        # A later request presenting the old token is anonymous.
        later = SessionContext(store, 3600, sid=None, data=store.load(sid))
        self.assertIsNone(current_identity(later))

    def test_unbind_anonymous_is_noop(self) -> None:
        store = MagicMock()
        ctx = SessionContext(store, 3600)
        unbind(ctx)
        store.destroy.assert_not_called()
        self.assertTrue(ctx.cleared)

    def test_teardown_failure(self) -> None:
        store = MagicMock()
        store.destroy.side_effect = SessionStoreError("down")
        ctx = SessionContext(store, 3600, sid="sid-1", data={"user": _identity().model_dump()})
        with self.assertRaises(SessionTeardownError):
            unbind(ctx)
        self.assertFalse(ctx.cleared)
        self.assertEqual(ctx.sid, "sid-1")


class TestCurrentIdentity(unittest.TestCase):
    def test_malformed_payload_is_anonymous(self) -> None:
        ctx = SessionContext(InMemorySessionStore(), 3600, sid="sid-1", data={"user": {"id": "x"}})
        self.assertIsNone(current_identity(ctx))


if __name__ == "__main__":
    unittest.main()
