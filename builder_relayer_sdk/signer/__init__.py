"""
Signer interfaces for the Builder Relayer SDK.

The SDK never holds keys itself; it asks a Signer to sign digests and typed
data, and to estimate gas for proxy calls. ``LocalSigner`` is the bundled
private-key implementation.
"""
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from ..cancellation import CancelToken


@runtime_checkable
class GasEstimator(Protocol):
    """Protocol for anything that can estimate gas for a call"""

    def estimate_gas(self, tx: Dict[str, Any], cancel_token: Optional[CancelToken] = None) -> int:
        """Estimate gas units for ``{"from", "to", "data"}``."""
        ...


@runtime_checkable
class Signer(Protocol):
    """Protocol for custom signers"""

    @property
    def address(self) -> str:
        """Checksummed address of the signing key"""
        ...

    def sign_message(self, message: bytes) -> bytes:
        """Sign ``message`` with the EIP-191 personal-message prefix; returns r||s||v"""
        ...

    def sign_typed_data(
        self,
        domain: Dict[str, Any],
        types: Dict[str, List[Dict[str, str]]],
        message: Dict[str, Any],
        primary_type: str,
    ) -> bytes:
        """Sign EIP-712 typed data; returns r||s||v with v in {27, 28}"""
        ...

    def estimate_gas(self, tx: Dict[str, Any], cancel_token: Optional[CancelToken] = None) -> int:
        ...


from .local import LocalSigner, Web3GasEstimator  # noqa: E402

__all__ = ["Signer", "GasEstimator", "LocalSigner", "Web3GasEstimator"]
