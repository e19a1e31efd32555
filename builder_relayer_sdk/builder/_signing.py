"""
Shared helpers for calling into a Signer.
"""
from typing import Any, Callable, TypeVar

from ..exceptions import MissingCapabilityError, RelayerError, SigningError

T = TypeVar("T")


def call_signer(what: str, fn: Callable[..., T], *args: Any) -> T:
    """
    Invoke a signer method, wrapping foreign failures in SigningError.

    SDK errors raised by the signer pass through unchanged.
    """
    try:
        return fn(*args)
    except RelayerError:
        raise
    except Exception as e:
        raise SigningError(f"sign {what}: {e}") from e


def require_signer(signer: Any) -> None:
    if signer is None:
        raise MissingCapabilityError()
