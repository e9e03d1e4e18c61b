"""Cancellation and deadline handling for a single translation request."""

import asyncio
import time
from typing import Awaitable, Optional, TypeVar

from transgate.core.translation.interface import (
    RequestAbortedError,
    TranslationCancelledError,
    TranslationTimeoutError,
)

T = TypeVar("T")


class RequestContext:
    """Carries the cancellation signal and optional deadline of one request.

    A context is created by the caller, passed to the dispatcher and handed on
    to every provider attempt and backoff wait. Once it is cancelled or its
    deadline passes, ``error()`` tells which of the two happened.
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        """Initialize the context.

        Args:
            timeout: Seconds until the deadline. None means no deadline.
        """
        self._cancelled = asyncio.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None
        self._expired = False

    def cancel(self) -> None:
        """Cancel the request. Safe to call more than once."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def expired(self) -> bool:
        if self._expired:
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    @property
    def done(self) -> bool:
        return self.cancelled or self.expired

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None without a deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def error(self) -> RequestAbortedError:
        """Return the error describing why the context is done.

        Raises:
            RuntimeError: If the context is still live
        """
        if self.cancelled:
            return TranslationCancelledError()
        if self.expired:
            return TranslationTimeoutError()
        raise RuntimeError("request context is still active")

    def raise_if_done(self) -> None:
        if self.done:
            raise self.error()

    async def sleep(self, delay: float) -> None:
        """Sleep for ``delay`` seconds unless the context ends first.

        Raises:
            RequestAbortedError: If the context is cancelled or expires
        """
        self.raise_if_done()
        remaining = self.remaining()
        hits_deadline = remaining is not None and remaining <= delay
        wait_for = remaining if hits_deadline else delay
        try:
            await asyncio.wait_for(self._cancelled.wait(), timeout=wait_for)
        except asyncio.TimeoutError:
            if hits_deadline:
                self._expired = True
        self.raise_if_done()

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` but give up as soon as the context ends.

        The abandoned operation is cancelled.

        Raises:
            RequestAbortedError: If the context is cancelled or expires
        """
        if self.done:
            # Never started, so close the coroutine to avoid a warning
            close = getattr(awaitable, "close", None)
            if close is not None:
                close()
            raise self.error()

        task = asyncio.ensure_future(awaitable)
        cancel_waiter = asyncio.ensure_future(self._cancelled.wait())
        try:
            done, _ = await asyncio.wait(
                {task, cancel_waiter},
                timeout=self.remaining(),
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            cancel_waiter.cancel()
            if not task.done():
                task.cancel()

        if task in done:
            return task.result()
        if not self.cancelled:
            self._expired = True
        raise self.error()
