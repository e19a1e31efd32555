"""
Private-key signer backed by eth_account.
"""
import logging
from typing import Any, Dict, List, Optional

from eth_account import Account
from eth_account.messages import encode_defunct, encode_typed_data
from eth_account.signers.local import LocalAccount
from web3 import Web3

from ..cancellation import CancelToken, ensure_token
from ..exceptions import MissingCapabilityError
from ..utils import checksum

logger = logging.getLogger(__name__)


class Web3GasEstimator:
    """
    Gas estimator that asks an Ethereum RPC node via web3.

    Args:
        rpc_url: JSON-RPC endpoint (ignored when ``w3`` is given)
        w3: Pre-built Web3 instance
        timeout: HTTP timeout for RPC calls in seconds
    """

    def __init__(self, rpc_url: Optional[str] = None, w3: Optional[Web3] = None, timeout: int = 30):
        if w3 is None:
            if not rpc_url:
                raise ValueError("Either rpc_url or w3 must be provided")
            w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))
        self.w3 = w3

    def estimate_gas(self, tx: Dict[str, Any], cancel_token: Optional[CancelToken] = None) -> int:
        ensure_token(cancel_token).raise_if_cancelled()
        call = {
            "from": checksum(tx["from"], field="from"),
            "to": checksum(tx["to"], field="to"),
            "data": tx.get("data", "0x"),
        }
        gas = self.w3.eth.estimate_gas(call)
        logger.debug(f"Estimated gas {gas} for call to {call['to']}")
        return int(gas)


class LocalSigner:
    """
    Signer holding a secp256k1 private key in memory.

    Args:
        private_key: Hex private key, with or without 0x prefix
        chain_id: Chain the signer is used on
        gas_estimator: Optional estimator used for proxy transactions
    """

    def __init__(self, private_key: str, chain_id: int, gas_estimator: Optional[Any] = None):
        if not private_key:
            raise ValueError("private_key is required")
        try:
            self._account: LocalAccount = Account.from_key(private_key)
        except (ValueError, TypeError) as e:
            raise ValueError(f"invalid private key: {e}") from e
        self.chain_id = chain_id
        self.gas_estimator = gas_estimator

    @property
    def address(self) -> str:
        return self._account.address

    def with_gas_estimator(self, estimator: Any) -> "LocalSigner":
        """Attach a gas estimator and return self."""
        self.gas_estimator = estimator
        return self

    def sign_message(self, message: bytes) -> bytes:
        """
        Sign ``message`` with the EIP-191 personal-message prefix.

        Raises:
            ValueError: If message is empty
        """
        if not message:
            raise ValueError("message is required")
        signed = self._account.sign_message(encode_defunct(primitive=message))
        return bytes(signed.signature)

    def sign_typed_data(
        self,
        domain: Dict[str, Any],
        types: Dict[str, List[Dict[str, str]]],
        message: Dict[str, Any],
        primary_type: str,
    ) -> bytes:
        signable = encode_typed_data(full_message={
            "types": types,
            "primaryType": primary_type,
            "domain": domain,
            "message": message,
        })
        signature = bytearray(self._account.sign_message(signable).signature)
        if signature[64] < 27:
            signature[64] += 27
        return bytes(signature)

    def estimate_gas(self, tx: Dict[str, Any], cancel_token: Optional[CancelToken] = None) -> int:
        """
        Raises:
            MissingCapabilityError: If no gas estimator is attached
        """
        if self.gas_estimator is None:
            raise MissingCapabilityError("gas estimator is required")
        return self.gas_estimator.estimate_gas(tx, cancel_token=cancel_token)
