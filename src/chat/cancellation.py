"""Cancellation tokens for long-running chat requests.

A token is created per request and handed to every coroutine that works on
behalf of it. Cancelling the token marks it cancelled and runs the registered
callbacks (for example, cancelling the task that is blocked reading a
stream). Coroutines call raise_if_cancelled() at their resumption points.
"""

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class RequestAborted(Exception):
    """Raised when work is abandoned because its token was cancelled.

    This is an expected termination, never reported to the user.
    """


class CancellationToken:
    """One-shot cancellation signal shared between a request and its owner."""

    def __init__(self) -> None:
        self._cancelled = False
        self._callbacks: list[Callable[[], object]] = []

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Cancel the token and run its callbacks. Idempotent."""
        if self._cancelled:
            return
        self._cancelled = True
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback()
            except Exception as exc:
                logger.warning("Cancellation callback failed: %s", exc)

    def add_callback(self, callback: Callable[[], object]) -> None:
        """Run callback on cancel; runs immediately if already cancelled."""
        if self._cancelled:
            callback()
            return
        self._callbacks.append(callback)

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise RequestAborted("request was cancelled")
