"""
Tests for cancellation tokens.
"""
import threading
import time

import pytest

from builder_relayer_sdk.cancellation import CancelToken, ensure_token
from builder_relayer_sdk.exceptions import DeadlineExceededError, OperationCancelledError


def test_fresh_token_never_fires():
    token = CancelToken()
    assert not token.cancelled
    assert not token.expired
    assert token.remaining() is None
    token.raise_if_cancelled()


def test_cancel():
    token = CancelToken()
    token.cancel()
    assert token.cancelled
    with pytest.raises(OperationCancelledError):
        token.raise_if_cancelled()


def test_deadline():
    token = CancelToken.with_timeout(0)
    assert token.expired
    assert token.remaining() == 0.0
    with pytest.raises(DeadlineExceededError):
        token.raise_if_cancelled()


def test_deadline_is_a_cancellation():
    assert issubclass(DeadlineExceededError, OperationCancelledError)


def test_sleep_completes():
    token = CancelToken()
    start = time.monotonic()
    token.sleep(0.05)
    assert time.monotonic() - start >= 0.05


def test_sleep_interrupted_by_cancel():
    token = CancelToken()
    threading.Timer(0.05, token.cancel).start()
    start = time.monotonic()
    with pytest.raises(OperationCancelledError):
        token.sleep(5)
    assert time.monotonic() - start < 1


def test_sleep_stops_at_deadline():
    token = CancelToken.with_timeout(0.05)
    start = time.monotonic()
    with pytest.raises(DeadlineExceededError):
        token.sleep(5)
    assert time.monotonic() - start < 1


def test_child_follows_parent():
    parent = CancelToken()
    child = parent.child()
    parent.cancel()
    assert child.cancelled
    with pytest.raises(OperationCancelledError):
        child.raise_if_cancelled()


def test_child_inherits_tighter_deadline():
    parent = CancelToken.with_timeout(10)
    child = parent.child(timeout=60)
    assert child.deadline == parent.deadline
    tighter = parent.child(timeout=1)
    assert tighter.deadline < parent.deadline


def test_child_sleep_notices_parent_cancel():
    parent = CancelToken()
    child = parent.child()
    threading.Timer(0.05, parent.cancel).start()
    with pytest.raises(OperationCancelledError):
        child.sleep(5)


def test_ensure_token():
    token = CancelToken()
    assert ensure_token(token) is token
    assert isinstance(ensure_token(None), CancelToken)
