"""
Safe transaction request builder.

The Safe transaction hash is the EIP-712 digest of a ``SafeTx`` struct under a
``{chainId, verifyingContract}`` domain. It is signed as an EIP-191 personal
message and the signature repacked into the Safe's ``eth_sign`` layout.
"""
import logging
from typing import Optional

from eth_abi import encode as abi_encode
from eth_utils import keccak

from ..config import SafeContractConfig
from ..derive import derive_safe_address
from ..models import (
    SafeTransaction, SafeTransactionArgs, SignatureParams,
    TransactionRequest, TransactionType
)
from ..utils import ZERO_ADDRESS, checksum, decode_hex, parse_big_int, split_and_pack_sig
from ._signing import call_signer, require_signer
from .aggregate import aggregate_safe_transactions

logger = logging.getLogger(__name__)

DOMAIN_TYPEHASH = keccak(text="EIP712Domain(uint256 chainId,address verifyingContract)")
SAFE_TX_TYPEHASH = keccak(
    text="SafeTx(address to,uint256 value,bytes data,uint8 operation,uint256 safeTxGas,"
         "uint256 baseGas,uint256 gasPrice,address gasToken,address refundReceiver,uint256 nonce)"
)


def _domain_separator(chain_id: int, safe_address: str) -> bytes:
    return keccak(abi_encode(
        ["bytes32", "uint256", "address"],
        [DOMAIN_TYPEHASH, chain_id, checksum(safe_address, field="safe")],
    ))


def create_safe_struct_hash(chain_id: int, safe_address: str, txn: SafeTransaction, nonce: str) -> bytes:
    """
    Compute the EIP-712 digest the Safe verifies for ``txn``.

    Gas, refund and gas-token fields are always zero: the relayer pays.

    Args:
        chain_id: Chain the Safe lives on
        safe_address: The Safe (verifying contract)
        txn: The aggregated Safe call
        nonce: Safe nonce as a decimal or 0x-hex string

    Returns:
        32-byte digest ``keccak256(0x1901 ‖ domainSeparator ‖ structHash)``

    Raises:
        InvalidArgumentError: If a numeric, hex or address field is malformed
    """
    value = parse_big_int(txn.value, field="value")
    nonce_int = parse_big_int(nonce, field="nonce")
    data = decode_hex(txn.data, field="data")

    struct_hash = keccak(abi_encode(
        [
            "bytes32", "address", "uint256", "bytes32", "uint8",
            "uint256", "uint256", "uint256", "address", "address", "uint256",
        ],
        [
            SAFE_TX_TYPEHASH,
            checksum(txn.to, field="to"),
            value,
            keccak(data),
            int(txn.operation),
            0,
            0,
            0,
            ZERO_ADDRESS,
            ZERO_ADDRESS,
            nonce_int,
        ],
    ))
    return keccak(b"\x19\x01" + _domain_separator(chain_id, safe_address) + struct_hash)


def build_safe_transaction_request(
    signer,
    args: SafeTransactionArgs,
    safe_config: SafeContractConfig,
    metadata: Optional[str] = None,
) -> TransactionRequest:
    """
    Build a signed SAFE request for ``args.transactions``.

    Raises:
        MissingCapabilityError: If no signer is given
        InvalidArgumentError: If there are no transactions or a field is malformed
        ConfigUnsupportedError: If the Safe factory is not configured
        SigningError: If the signer fails
        InvalidSignatureError: If the signer returns an unusable signature
    """
    require_signer(signer)
    transaction = aggregate_safe_transactions(args.transactions, safe_config.safe_multisend)
    safe_address = derive_safe_address(args.from_address, safe_config.safe_factory)

    tx_hash = create_safe_struct_hash(args.chain_id, safe_address, transaction, args.nonce)
    signature = call_signer("safe tx", signer.sign_message, tx_hash)
    packed = split_and_pack_sig(signature)
    logger.debug(f"Signed Safe transaction for {safe_address} (nonce {args.nonce})")

    return TransactionRequest(
        type=TransactionType.SAFE,
        from_address=args.from_address,
        to=transaction.to,
        proxy_wallet=safe_address,
        data=transaction.data,
        nonce=args.nonce,
        signature=packed,
        signature_params=SignatureParams(
            gas_price="0",
            operation=str(int(transaction.operation)),
            safe_txn_gas="0",
            base_gas="0",
            gas_token=ZERO_ADDRESS,
            refund_receiver=ZERO_ADDRESS,
        ),
        metadata=metadata or None,
    )
