"""
Cancellation tokens.

A CancelToken is threaded through every blocking call the SDK makes (HTTP
round-trips, retry backoff, gas estimation, poll intervals). Cancelling the
token, or letting its deadline pass, makes those calls raise promptly instead
of waiting out their timers.
"""
import threading
import time
from typing import Optional

from .exceptions import OperationCancelledError, DeadlineExceededError


class CancelToken:
    """
    Cooperative cancellation signal with an optional deadline.

    Tokens are safe to share between threads. A child token created with
    ``child()`` is cancelled whenever its parent is, and never outlives the
    parent's deadline.
    """

    def __init__(self, timeout: Optional[float] = None, parent: Optional["CancelToken"] = None):
        self._event = threading.Event()
        self._parent = parent
        deadline = None
        if timeout is not None:
            deadline = time.monotonic() + timeout
        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self._deadline = deadline

    @classmethod
    def with_timeout(cls, seconds: float) -> "CancelToken":
        """Create a token that expires ``seconds`` from now."""
        return cls(timeout=seconds)

    def child(self, timeout: Optional[float] = None) -> "CancelToken":
        """Create a token bound to this one, optionally with a tighter deadline."""
        return CancelToken(timeout=timeout, parent=self)

    @property
    def deadline(self) -> Optional[float]:
        """Monotonic deadline, or None when the token never expires."""
        return self._deadline

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._parent is not None and self._parent.cancelled

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None without a deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def raise_if_cancelled(self) -> None:
        """
        Raise if the token was cancelled or its deadline has passed.

        Raises:
            OperationCancelledError: If cancel() was called
            DeadlineExceededError: If the deadline has passed
        """
        if self.cancelled:
            raise OperationCancelledError("operation cancelled")
        if self.expired:
            raise DeadlineExceededError("operation deadline exceeded")

    def sleep(self, seconds: float) -> None:
        """
        Sleep for ``seconds`` unless the token fires first.

        The wait is sliced so a parent's cancellation is noticed within a few
        milliseconds even though only this token's event is waited on.

        Raises:
            OperationCancelledError: If the token is cancelled before or during the sleep
            DeadlineExceededError: If the deadline passes before the sleep ends
        """
        self.raise_if_cancelled()
        end = time.monotonic() + max(0.0, seconds)
        while True:
            now = time.monotonic()
            if now >= end:
                return
            wait_for = end - now
            if self._deadline is not None:
                wait_for = min(wait_for, max(0.0, self._deadline - now))
            if self._parent is not None:
                wait_for = min(wait_for, 0.01)
            self._event.wait(wait_for)
            self.raise_if_cancelled()


def ensure_token(token: Optional[CancelToken]) -> CancelToken:
    """Return ``token`` or a fresh token that is never cancelled."""
    return token if token is not None else CancelToken()
