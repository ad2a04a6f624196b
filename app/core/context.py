"""Request-scoped context: caller identity plus an explicit cancellation/deadline token."""

import threading
import time

from app.core.errors import CancelledError
from app.schemas.auth import CurrentUser


class RequestContext:
    """
    Passed as the first argument to every service operation.

    A context is cancelled either explicitly via cancel() or implicitly once its
    deadline (monotonic clock) has passed. Services call raise_if_cancelled() on
    entry and again right before committing a write.
    """

    def __init__(
        self,
        caller: CurrentUser | None = None,
        timeout: float | None = None,
    ) -> None:
        self.caller = caller
        self._deadline = time.monotonic() + timeout if timeout is not None else None
        self._cancelled = threading.Event()

    @property
    def caller_id(self) -> str | None:
        return self.caller.record_id if self.caller is not None else None

    def cancel(self) -> None:
        self._cancelled.set()

    def remaining(self) -> float | None:
        """Seconds until the deadline (never negative), or None when there is no deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    @property
    def cancelled(self) -> bool:
        if self._cancelled.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def raise_if_cancelled(self) -> None:
        if self._cancelled.is_set():
            raise CancelledError("Request was cancelled.")
        if self._deadline is not None and time.monotonic() >= self._deadline:
            raise CancelledError("Request deadline exceeded.")
