"""
Network and contract configuration for the Builder Relayer SDK.

Contract addresses per chain live in the packaged ``networks.json``; this
module loads them once and exposes lookups by network name or chain id.
"""
import importlib.resources
import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .exceptions import ConfigUnsupportedError

logger = logging.getLogger(__name__)

# Relayer endpoint paths
GET_NONCE_ENDPOINT = "/nonce"
GET_RELAY_PAYLOAD_ENDPOINT = "/relay-payload"
GET_TRANSACTION_ENDPOINT = "/transaction"
GET_TRANSACTIONS_ENDPOINT = "/transactions"
SUBMIT_TRANSACTION_ENDPOINT = "/submit"
GET_DEPLOYED_ENDPOINT = "/deployed"


@dataclass(frozen=True)
class ProxyContractConfig:
    relay_hub: str = ""
    proxy_factory: str = ""


@dataclass(frozen=True)
class SafeContractConfig:
    safe_factory: str = ""
    safe_multisend: str = ""


@dataclass(frozen=True)
class ContractConfig:
    proxy: ProxyContractConfig
    safe: SafeContractConfig


def is_proxy_contract_config_valid(config: ProxyContractConfig) -> bool:
    return bool(config.relay_hub) and bool(config.proxy_factory)


def is_safe_contract_config_valid(config: SafeContractConfig) -> bool:
    return bool(config.safe_factory) and bool(config.safe_multisend)


class NetworkConfig:
    """
    Lookup table of supported networks.

    The table is read from ``networks.json`` on first use and cached at class
    level; it is never mutated afterwards.
    """
    _networks_cache: Optional[Dict[str, Dict[str, Any]]] = None

    @classmethod
    def load_networks(cls) -> Dict[str, Dict[str, Any]]:
        """
        Load all network definitions.

        Returns:
            Mapping of network name to its definition
        """
        if cls._networks_cache is None:
            resource = importlib.resources.files("builder_relayer_sdk").joinpath("networks.json")
            with resource.open("r", encoding="utf-8") as f:
                cls._networks_cache = json.load(f)
            logger.debug(f"Loaded {len(cls._networks_cache)} network definitions")
        return cls._networks_cache

    @classmethod
    def get_network(cls, name: str) -> Dict[str, Any]:
        """
        Get a network definition by name.

        Raises:
            ConfigUnsupportedError: If the network is unknown
        """
        networks = cls.load_networks()
        if name not in networks:
            available = ", ".join(sorted(networks))
            raise ConfigUnsupportedError(f"Unknown network '{name}'. Available networks: {available}")
        return networks[name]

    @classmethod
    def get_network_by_chain_id(cls, chain_id: int) -> Dict[str, Any]:
        for network in cls.load_networks().values():
            if int(network["chainId"]) == chain_id:
                return network
        raise ConfigUnsupportedError(f"config is not supported on the chainId {chain_id}")

    @classmethod
    def get_chain_id(cls, name: str) -> int:
        return int(cls.get_network(name)["chainId"])

    @classmethod
    def get_relayer_url(cls, name: str, override: Optional[str] = None) -> str:
        """
        Resolve the relayer URL for a network.

        Precedence: explicit override, then ``<NAME>_RELAYER_URL`` from the
        environment, then the packaged default.
        """
        if override:
            return override
        env_var = f"{name.upper().replace('-', '_')}_RELAYER_URL"
        env_url = os.environ.get(env_var)
        if env_url:
            return env_url
        return cls.get_network(name)["relayerUrl"]

    @classmethod
    def get_contract_config(cls, chain_id: int) -> ContractConfig:
        """
        Get the contract addresses deployed on ``chain_id``.

        Raises:
            ConfigUnsupportedError: If the chain is not supported
        """
        network = cls.get_network_by_chain_id(chain_id)
        return ContractConfig(
            proxy=ProxyContractConfig(
                relay_hub=network.get("relayHub", ""),
                proxy_factory=network.get("proxyFactory", ""),
            ),
            safe=SafeContractConfig(
                safe_factory=network.get("safeFactory", ""),
                safe_multisend=network.get("safeMultisend", ""),
            ),
        )


def get_contract_config(chain_id: int) -> ContractConfig:
    return NetworkConfig.get_contract_config(chain_id)


@dataclass(frozen=True)
class RelayerSettings:
    """Process settings read from the environment."""
    relayer_url: str
    chain_id: int
    private_key: str
    rpc_url: Optional[str] = None


def load_settings(environ: Optional[Dict[str, str]] = None) -> RelayerSettings:
    """
    Read relayer settings from environment variables.

    Uses POLYMARKET_RELAYER_URL, CHAIN_ID, PRIVATE_KEY and the optional RPC_URL.
    When POLYMARKET_RELAYER_URL is unset the packaged URL for CHAIN_ID is used.

    Raises:
        ValueError: If CHAIN_ID or PRIVATE_KEY is missing or malformed
    """
    env = os.environ if environ is None else environ
    chain_id_raw = env.get("CHAIN_ID", "").strip()
    private_key = env.get("PRIVATE_KEY", "").strip()
    if not chain_id_raw or not private_key:
        raise ValueError("CHAIN_ID and PRIVATE_KEY environment variables are required")
    try:
        chain_id = int(chain_id_raw)
    except ValueError:
        raise ValueError(f"CHAIN_ID must be an integer, got: {chain_id_raw}")

    relayer_url = env.get("POLYMARKET_RELAYER_URL", "").strip()
    if not relayer_url:
        relayer_url = NetworkConfig.get_network_by_chain_id(chain_id)["relayerUrl"]

    return RelayerSettings(
        relayer_url=relayer_url,
        chain_id=chain_id,
        private_key=private_key,
        rpc_url=env.get("RPC_URL") or None,
    )
