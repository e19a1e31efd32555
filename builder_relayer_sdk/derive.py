"""
Counterfactual wallet address derivation.

Both wallet styles are deployed through CREATE2 factories, so their addresses
are known before deployment:

    address = keccak256(0xff ++ factory ++ salt ++ init_code_hash)[12:]

The factories salt differently: the proxy factory hashes the raw 20-byte owner
address, the Safe factory hashes the owner left-padded to 32 bytes.
"""
from functools import lru_cache

from eth_utils import keccak, to_checksum_address

from .config import NetworkConfig
from .exceptions import ConfigUnsupportedError
from .utils import address_bytes, decode_hex, left_pad32

SAFE_INIT_CODE_HASH = "0x2bce2127ff07fb632d16c8347c4ebf501f4841168bed00d9e6ef715ddb6fcecf"
PROXY_INIT_CODE_HASH = "0xd21df8dc65880a8606f09fe0ce3df9b8869287ab0b058be05aa9e8af6330a00b"


@lru_cache(maxsize=1024)
def _create2_address(factory: bytes, salt: bytes, init_code_hash: bytes) -> str:
    digest = keccak(b"\xff" + factory + salt + init_code_hash)
    return to_checksum_address(digest[12:])


def derive_proxy_wallet_address(eoa: str, proxy_factory: str) -> str:
    """
    Derive the proxy wallet owned by ``eoa``.

    Args:
        eoa: Owner address
        proxy_factory: Proxy wallet factory address

    Returns:
        Checksummed proxy wallet address

    Raises:
        ConfigUnsupportedError: If no proxy factory is configured
        InvalidArgumentError: If an address is malformed
    """
    if not proxy_factory:
        raise ConfigUnsupportedError()
    salt = keccak(address_bytes(eoa, field="eoa"))
    return _create2_address(
        address_bytes(proxy_factory, field="proxy_factory"),
        salt,
        decode_hex(PROXY_INIT_CODE_HASH),
    )


def derive_safe_address(eoa: str, safe_factory: str) -> str:
    """
    Derive the Safe owned by ``eoa``.

    Args:
        eoa: Owner address
        safe_factory: Safe proxy factory address

    Returns:
        Checksummed Safe address

    Raises:
        ConfigUnsupportedError: If no Safe factory is configured
        InvalidArgumentError: If an address is malformed
    """
    if not safe_factory:
        raise ConfigUnsupportedError()
    salt = keccak(left_pad32(address_bytes(eoa, field="eoa")))
    return _create2_address(
        address_bytes(safe_factory, field="safe_factory"),
        salt,
        decode_hex(SAFE_INIT_CODE_HASH),
    )


def get_safe_address(chain_id: int, eoa: str) -> str:
    """Derive the Safe for ``eoa`` using the factory deployed on ``chain_id``."""
    config = NetworkConfig.get_contract_config(chain_id)
    return derive_safe_address(eoa, config.safe.safe_factory)


def get_proxy_address(chain_id: int, eoa: str) -> str:
    """Derive the proxy wallet for ``eoa`` using the factory deployed on ``chain_id``."""
    config = NetworkConfig.get_contract_config(chain_id)
    return derive_proxy_wallet_address(eoa, config.proxy.proxy_factory)
