"""
Per-call deadline and cancellation.

A ``Deadline`` bounds one logical call (every retry included). When the
timeout elapses or the cancel event is set, the in-flight network call is
cancelled and ``DeadlineExceeded`` is raised for the retry engine to turn
into a fallback string.
"""

import asyncio
import time
from typing import Awaitable, Optional, TypeVar

from ..providers.base import DeadlineExceeded

T = TypeVar('T')


class Deadline:
    """Timeout and/or external cancellation token for one call."""

    def __init__(self, timeout: Optional[float] = None, cancel_event: Optional[asyncio.Event] = None):
        if timeout is not None and timeout < 0:
            raise ValueError("timeout must be non-negative")
        self.timeout = timeout
        self.cancel_event = cancel_event
        self._expires_at = time.monotonic() + timeout if timeout is not None else None

    def remaining(self) -> Optional[float]:
        """Seconds left, or None when there is no timeout."""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - time.monotonic())

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    @property
    def expired(self) -> bool:
        remaining = self.remaining()
        return self.cancelled or (remaining is not None and remaining <= 0)

    def cancel(self) -> None:
        if self.cancel_event is None:
            self.cancel_event = asyncio.Event()
        self.cancel_event.set()

    async def run(self, coro: Awaitable[T], provider: str = "unknown") -> T:
        """
        Await ``coro`` unless the deadline passes first.

        Raises:
            DeadlineExceeded: The timeout elapsed or cancellation was requested;
                the wrapped task is cancelled before raising
        """
        if self.expired:
            if asyncio.iscoroutine(coro):
                coro.close()
            raise DeadlineExceeded("Deadline expired before the call started", provider=provider)

        task = asyncio.ensure_future(coro)
        waiters = {task}
        cancel_waiter = None
        if self.cancel_event is not None:
            cancel_waiter = asyncio.ensure_future(self.cancel_event.wait())
            waiters.add(cancel_waiter)

        try:
            done, _ = await asyncio.wait(waiters, timeout=self.remaining(),
                                         return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            if cancel_waiter is not None and not cancel_waiter.done():
                cancel_waiter.cancel()

        if task in done:
            return task.result()

        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        reason = "cancelled" if self.cancelled else f"timed out after {self.timeout}s"
        raise DeadlineExceeded(f"Call {reason}", provider=provider)
