"""
Utility functions for the Builder Relayer SDK.
"""
import binascii
from typing import Union

from eth_utils import is_hex_address, to_canonical_address, to_checksum_address

from .exceptions import InvalidArgumentError, InvalidSignatureError

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def parse_big_int(value: Union[str, int, None], field: str = "value") -> int:
    """
    Parse an unsigned integer from a decimal or 0x-prefixed hex string.

    Args:
        value: Decimal string, "0x"/"0X" prefixed hex string, int, or empty
        field: Name of the field being parsed, used in error messages

    Returns:
        Parsed integer (empty string and None yield 0)

    Raises:
        InvalidArgumentError: If the value is not a valid integer
    """
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise InvalidArgumentError(f"invalid integer: {value!r}", field=field)
    if isinstance(value, int):
        if value < 0:
            raise InvalidArgumentError(f"negative integer: {value}", field=field)
        return value

    clean = value.strip()
    base = 10
    if clean[:2] in ("0x", "0X"):
        clean = clean[2:]
        base = 16
    # int() would otherwise accept "1_000", " +5" and the like
    allowed = "0123456789abcdefABCDEF" if base == 16 else "0123456789"
    if not clean or any(c not in allowed for c in clean):
        raise InvalidArgumentError(f"invalid integer: {value}", field=field)
    return int(clean, base)


def left_pad32(data: bytes) -> bytes:
    """Left-pad to 32 bytes; longer input keeps its low 32 bytes."""
    if len(data) >= 32:
        return data[-32:]
    return data.rjust(32, b"\x00")


def int_to_bytes32(value: int) -> bytes:
    """Encode an unsigned integer as a 32-byte big-endian word."""
    return left_pad32(value.to_bytes((value.bit_length() + 7) // 8, "big"))


def decode_hex(data: Union[str, bytes, None], field: str = "data") -> bytes:
    """
    Decode a hex string with or without a 0x prefix.

    Args:
        data: Hex string ("0x..." or raw), bytes (returned as-is), or empty
        field: Name of the field being parsed, used in error messages

    Returns:
        Decoded bytes (empty input yields b"")

    Raises:
        InvalidArgumentError: If the string is not valid hex
    """
    if data is None or data == "":
        return b""
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    clean = data[2:] if data[:2] in ("0x", "0X") else data
    try:
        return binascii.unhexlify(clean)
    except (binascii.Error, ValueError) as e:
        raise InvalidArgumentError(f"invalid hex string: {e}", field=field) from e


def encode_hex(data: bytes) -> str:
    return "0x" + data.hex()


def address_bytes(address: str, field: str = "address") -> bytes:
    """
    Convert a hex address to its 20 canonical bytes.

    Raises:
        InvalidArgumentError: If the address is not a 20-byte hex string
    """
    if not isinstance(address, str) or not is_hex_address(address):
        raise InvalidArgumentError(f"not a 20-byte hex address: {address!r}", field=field)
    return to_canonical_address(address)


def checksum(address: str, field: str = "address") -> str:
    """Return the EIP-55 checksummed form of ``address``."""
    return to_checksum_address(address_bytes(address, field=field))


def split_and_pack_sig(signature: bytes) -> str:
    """
    Repack a 65-byte ECDSA signature for Safe's eth_sign verification path.

    Safe treats signatures with v > 30 as eth_sign signatures over the
    prefixed message, so v is moved into {31, 32}.

    Args:
        signature: r(32) || s(32) || v(1)

    Returns:
        0x-prefixed hex of r || s || v'

    Raises:
        InvalidSignatureError: On wrong length or an unexpected v
    """
    if len(signature) != 65:
        raise InvalidSignatureError(
            f"invalid signature length: expected 65 bytes, got {len(signature)}"
        )
    r = signature[0:32]
    s = signature[32:64]
    v = signature[64]
    if v in (0, 1):
        v += 31
    elif v in (27, 28):
        v += 4
    else:
        raise InvalidSignatureError(f"invalid signature v: {v}")
    return encode_hex(left_pad32(r) + left_pad32(s) + bytes([v]))
