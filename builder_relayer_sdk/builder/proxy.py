"""
PROXY request builder (relay-hub style proxy wallets).
"""
import logging
from typing import Optional

from eth_utils import keccak

from .._rate_limited_log import rate_limited_log
from ..cancellation import CancelToken, ensure_token
from ..config import ProxyContractConfig
from ..derive import derive_proxy_wallet_address
from ..exceptions import OperationCancelledError
from ..models import ProxyTransactionArgs, SignatureParams, TransactionRequest, TransactionType
from ..utils import address_bytes, decode_hex, encode_hex, int_to_bytes32, parse_big_int
from ._signing import call_signer, require_signer

logger = logging.getLogger(__name__)

DEFAULT_GAS_LIMIT = 10_000_000
RELAYER_FEE = "0"


def create_proxy_struct_hash(
    from_address: str,
    to: str,
    data: str,
    tx_fee: str,
    gas_price: str,
    gas_limit: str,
    nonce: str,
    relay_hub: str,
    relay: str,
) -> bytes:
    """
    Hash a relay-hub request.

    Layout: ``"rlx:" ‖ from ‖ to ‖ data ‖ txFee ‖ gasPrice ‖ gasLimit ‖ nonce
    ‖ relayHub ‖ relay`` with addresses as 20 bytes and numbers as 32-byte
    big-endian words.
    """
    packed = b"rlx:"
    packed += address_bytes(from_address, field="from")
    packed += address_bytes(to, field="to")
    packed += decode_hex(data, field="data")
    packed += int_to_bytes32(parse_big_int(tx_fee, field="txFee"))
    packed += int_to_bytes32(parse_big_int(gas_price, field="gasPrice"))
    packed += int_to_bytes32(parse_big_int(gas_limit, field="gasLimit"))
    packed += int_to_bytes32(parse_big_int(nonce, field="nonce"))
    packed += address_bytes(relay_hub, field="relayHub")
    packed += address_bytes(relay, field="relay")
    return keccak(packed)


def _resolve_gas_limit(signer, to: str, args: ProxyTransactionArgs, cancel_token: CancelToken) -> str:
    if args.gas_limit and args.gas_limit != "0":
        return args.gas_limit

    try:
        gas = signer.estimate_gas(
            {"from": args.from_address, "to": to, "data": args.data},
            cancel_token=cancel_token,
        )
        return str(int(gas))
    except OperationCancelledError:
        raise
    except Exception as e:
        rate_limited_log(
            f"Gas estimation failed ({type(e).__name__}: {e}); using default gas limit {DEFAULT_GAS_LIMIT}",
            logger_instance=logger,
        )
        return str(DEFAULT_GAS_LIMIT)


def build_proxy_transaction_request(
    signer,
    args: ProxyTransactionArgs,
    proxy_config: ProxyContractConfig,
    metadata: Optional[str] = None,
    cancel_token: Optional[CancelToken] = None,
) -> TransactionRequest:
    """
    Build a signed PROXY request.

    The gas limit is taken from ``args.gas_limit`` when nonzero, otherwise
    estimated through the signer; estimation failures fall back to
    ``DEFAULT_GAS_LIMIT``.

    Raises:
        MissingCapabilityError: If no signer is given
        ConfigUnsupportedError: If the proxy factory is not configured
        InvalidArgumentError: If a field is malformed
        SigningError: If the signer fails
        OperationCancelledError: If cancelled during gas estimation
    """
    require_signer(signer)
    token = ensure_token(cancel_token)
    proxy_factory = proxy_config.proxy_factory
    proxy_wallet = derive_proxy_wallet_address(args.from_address, proxy_factory)

    gas_limit = _resolve_gas_limit(signer, proxy_factory, args, token)

    tx_hash = create_proxy_struct_hash(
        args.from_address,
        proxy_factory,
        args.data,
        RELAYER_FEE,
        args.gas_price,
        gas_limit,
        args.nonce,
        proxy_config.relay_hub,
        args.relay,
    )
    signature = call_signer("proxy tx", signer.sign_message, tx_hash)
    logger.debug(f"Signed proxy transaction for {proxy_wallet} (nonce {args.nonce}, gas limit {gas_limit})")

    return TransactionRequest(
        type=TransactionType.PROXY,
        from_address=args.from_address,
        to=proxy_factory,
        proxy_wallet=proxy_wallet,
        data=args.data,
        nonce=args.nonce,
        signature=encode_hex(bytes(signature)),
        signature_params=SignatureParams(
            gas_price=args.gas_price,
            gas_limit=gas_limit,
            relayer_fee=RELAYER_FEE,
            relay_hub=proxy_config.relay_hub,
            relay=args.relay,
        ),
        metadata=metadata or None,
    )
