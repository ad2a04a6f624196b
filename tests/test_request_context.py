"""Unit tests for app.core.context.RequestContext: explicit cancel and deadline expiry."""

import unittest
from types import SimpleNamespace
from unittest.mock import patch

from app.core.context import RequestContext
from app.core.errors import CancelledError
from app.schemas.auth import CurrentUser


class TestRequestContext(unittest.TestCase):
    def test_fresh_context_is_not_cancelled(self) -> None:
        ctx = RequestContext()
        self.assertFalse(ctx.cancelled)
        self.assertIsNone(ctx.remaining())
        ctx.raise_if_cancelled()

    def test_cancel(self) -> None:
        ctx = RequestContext(timeout=60)
        ctx.cancel()
        self.assertTrue(ctx.cancelled)
        with self.assertRaises(CancelledError) as cm:
            ctx.raise_if_cancelled()
        self.assertIn("cancelled", cm.exception.message)
        self.assertEqual(cm.exception.kind, "cancelled")

    def test_deadline(self) -> None:
        with patch("app.core.context.time.monotonic", return_value=100.0):
            ctx = RequestContext(timeout=5)
        with patch("app.core.context.time.monotonic", return_value=103.0):
            self.assertFalse(ctx.cancelled)
            self.assertAlmostEqual(ctx.remaining(), 2.0)
        with patch("app.core.context.time.monotonic", return_value=105.5):
            self.assertTrue(ctx.cancelled)
            self.assertEqual(ctx.remaining(), 0.0)
            with self.assertRaises(CancelledError) as cm:
                ctx.raise_if_cancelled()
        self.assertIn("deadline", cm.exception.message)

    def test_caller_id(self) -> None:
        self.assertIsNone(RequestContext().caller_id)
        ctx = RequestContext(caller=CurrentUser(record_id="abc", user_name="root"))
        self.assertEqual(ctx.caller_id, "abc")


class TestCurrentUser(unittest.TestCase):
    def test_built_from_orm_attributes(self) -> None:
        row = SimpleNamespace(record_id="abc", user_name="alice", role_id="r1", password_hash="x")
        user = CurrentUser.model_validate(row)
        self.assertEqual(user.record_id, "abc")
        self.assertEqual(user.role_id, "r1")
        self.assertNotIn("password_hash", user.model_dump())


class TestErrorPayload(unittest.TestCase):
    def test_payload_shape(self) -> None:
        err = CancelledError("Request was cancelled.")
        self.assertEqual(
            err.to_payload(),
            {"error": {"code": "cancelled", "message": "Request was cancelled."}},
        )
        self.assertEqual(err.status_code, 499)


if __name__ == "__main__":
    unittest.main()
