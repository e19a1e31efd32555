"""
SAFE-CREATE request builder (deploys the caller's Safe through the factory).
"""
from ..config import SafeContractConfig
from ..derive import derive_safe_address
from ..models import SafeCreateTransactionArgs, SignatureParams, TransactionRequest, TransactionType
from ..utils import checksum, encode_hex, parse_big_int
from ._signing import call_signer, require_signer

SAFE_FACTORY_NAME = "Polymarket Contract Proxy Factory"

CREATE_PROXY_TYPES = {
    "EIP712Domain": [
        {"name": "name", "type": "string"},
        {"name": "chainId", "type": "uint256"},
        {"name": "verifyingContract", "type": "address"},
    ],
    "CreateProxy": [
        {"name": "paymentToken", "type": "address"},
        {"name": "payment", "type": "uint256"},
        {"name": "paymentReceiver", "type": "address"},
    ],
}


def build_safe_create_transaction_request(
    signer,
    safe_config: SafeContractConfig,
    args: SafeCreateTransactionArgs,
) -> TransactionRequest:
    """
    Build a signed SAFE-CREATE request.

    The ``CreateProxy`` struct is signed as EIP-712 typed data under the Safe
    factory's domain; the signature is sent unmodified.

    Raises:
        InvalidArgumentError: If payment or an address is malformed
        ConfigUnsupportedError: If the Safe factory is not configured
        SigningError: If the signer fails
    """
    require_signer(signer)
    payment = parse_big_int(args.payment, field="payment")
    safe_factory = safe_config.safe_factory
    safe_address = derive_safe_address(args.from_address, safe_factory)

    domain = {
        "name": SAFE_FACTORY_NAME,
        "chainId": args.chain_id,
        "verifyingContract": checksum(safe_factory, field="safeFactory"),
    }
    message = {
        "paymentToken": checksum(args.payment_token, field="paymentToken"),
        "payment": payment,
        "paymentReceiver": checksum(args.payment_receiver, field="paymentReceiver"),
    }
    signature = call_signer("safe create", signer.sign_typed_data, domain, CREATE_PROXY_TYPES, message, "CreateProxy")

    return TransactionRequest(
        type=TransactionType.SAFE_CREATE,
        from_address=args.from_address,
        to=safe_factory,
        proxy_wallet=safe_address,
        data="0x",
        signature=encode_hex(bytes(signature)),
        signature_params=SignatureParams(
            payment_token=args.payment_token,
            payment=args.payment,
            payment_receiver=args.payment_receiver,
        ),
    )
