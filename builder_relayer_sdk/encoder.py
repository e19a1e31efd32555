"""
Calldata encoding for batched wallet calls.

Safe batches go through the MultiSend contract, whose single ``bytes``
argument is a tight packing of every call. Proxy wallets take an ABI-encoded
array of ``(typeCode, to, value, data)`` tuples instead.
"""
from dataclasses import dataclass
from typing import Any, List, Sequence, Tuple

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_utils import keccak, to_checksum_address

from .exceptions import InvalidArgumentError
from .models import CallType, OperationType, ProxyTransaction, SafeTransaction
from .utils import address_bytes, checksum, decode_hex, encode_hex, int_to_bytes32, parse_big_int


@dataclass(frozen=True)
class AbiFunction:
    """Immutable description of a contract function's inputs."""
    name: str
    input_types: Tuple[str, ...]

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.input_types)})"

    @property
    def selector(self) -> bytes:
        return keccak(text=self.signature)[:4]

    def encode_call(self, args: Sequence[Any]) -> bytes:
        return self.selector + abi_encode(list(self.input_types), list(args))

    def decode_call(self, calldata: bytes) -> Tuple[Any, ...]:
        """
        Decode calldata produced by ``encode_call``.

        Raises:
            InvalidArgumentError: If the selector does not match
        """
        if calldata[:4] != self.selector:
            raise InvalidArgumentError(
                f"selector mismatch: expected {encode_hex(self.selector)}, got {encode_hex(calldata[:4])}",
                field="data",
            )
        return tuple(abi_decode(list(self.input_types), calldata[4:]))


PROXY_FUNCTION = AbiFunction("proxy", ("(uint8,address,uint256,bytes)[]",))
MULTISEND_FUNCTION = AbiFunction("multiSend", ("bytes",))


def encode_packed_multisend(txns: Sequence[SafeTransaction]) -> bytes:
    """
    Pack Safe calls in MultiSend's layout.

    Each call is ``operation(1) ++ to(20) ++ value(32) ++ len(data)(32) ++ data``
    with no separators between calls.
    """
    out = bytearray()
    for tx in txns:
        to = address_bytes(tx.to, field="to")
        value = parse_big_int(tx.value, field="value")
        data = decode_hex(tx.data, field="data")
        out += bytes([int(tx.operation)])
        out += to
        out += int_to_bytes32(value)
        out += int_to_bytes32(len(data))
        out += data
    return bytes(out)


def create_safe_multisend_transaction(txns: Sequence[SafeTransaction], safe_multisend: str) -> SafeTransaction:
    """Wrap several Safe calls in one delegatecall to the MultiSend contract."""
    packed = encode_packed_multisend(txns)
    data = MULTISEND_FUNCTION.encode_call([packed])
    return SafeTransaction(
        to=safe_multisend,
        value="0",
        data=encode_hex(data),
        operation=OperationType.DELEGATE_CALL,
    )


def encode_proxy_transaction_data(txns: Sequence[ProxyTransaction]) -> str:
    """
    Encode calls as ``proxy((uint8,address,uint256,bytes)[])`` calldata.

    Returns:
        0x-prefixed calldata hex
    """
    calls = []
    for tx in txns:
        calls.append((
            int(tx.type_code),
            checksum(tx.to, field="to"),
            parse_big_int(tx.value, field="value"),
            decode_hex(tx.data, field="data"),
        ))
    return encode_hex(PROXY_FUNCTION.encode_call([calls]))


def decode_proxy_transaction_data(data: str) -> List[ProxyTransaction]:
    """Decode ``proxy(...)`` calldata back into ProxyTransactions."""
    (calls,) = PROXY_FUNCTION.decode_call(decode_hex(data))
    return [
        ProxyTransaction(
            to=to_checksum_address(to),
            type_code=CallType(type_code),
            value=str(value),
            data=encode_hex(call_data),
        )
        for type_code, to, value, call_data in calls
    ]
