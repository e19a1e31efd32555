"""
Builder Relayer SDK - gasless Safe and Proxy wallet transactions through the
builder relayer.
"""
from .version import __version__
from .client import RelayClient, ClientRelayerTransactionResponse
from .builder_auth import (
    BuilderConfig, BuilderCredentials, BuilderRemoteConfig,
    builder_config_from_env, sign_hmac
)
from .cancellation import CancelToken
from .config import (
    NetworkConfig, ContractConfig, ProxyContractConfig, SafeContractConfig,
    get_contract_config, load_settings
)
from .derive import derive_proxy_wallet_address, derive_safe_address
from .builder import aggregate
from .models import (
    Transaction, SafeTransaction, ProxyTransaction, TransactionRequest,
    RelayerTransaction, RelayerTransactionState, RelayerTxType, TransactionType,
    OperationType, CallType
)
from .signer import Signer, LocalSigner, Web3GasEstimator
from .transport import HTTPClient
from .exceptions import (
    RelayerError, ErrorCode, ConfigUnsupportedError, InvalidArgumentError,
    InvalidSignatureError, SigningError, InvalidCredentialsError, BuilderSignerError,
    MissingCapabilityError, SafeAlreadyDeployedError, SafeNotDeployedError,
    TransportError, HTTPError, MaxRetriesExceededError, DecodeError,
    TransactionFailedError, TransactionTimeoutError, OperationCancelledError,
    DeadlineExceededError
)

__all__ = [
    "__version__",
    "RelayClient",
    "ClientRelayerTransactionResponse",
    "BuilderConfig",
    "BuilderCredentials",
    "BuilderRemoteConfig",
    "builder_config_from_env",
    "sign_hmac",
    "CancelToken",
    "NetworkConfig",
    "ContractConfig",
    "ProxyContractConfig",
    "SafeContractConfig",
    "get_contract_config",
    "load_settings",
    "derive_proxy_wallet_address",
    "derive_safe_address",
    "aggregate",
    "Transaction",
    "SafeTransaction",
    "ProxyTransaction",
    "TransactionRequest",
    "RelayerTransaction",
    "RelayerTransactionState",
    "RelayerTxType",
    "TransactionType",
    "OperationType",
    "CallType",
    "Signer",
    "LocalSigner",
    "Web3GasEstimator",
    "HTTPClient",
    "RelayerError",
    "ErrorCode",
    "ConfigUnsupportedError",
    "InvalidArgumentError",
    "InvalidSignatureError",
    "SigningError",
    "InvalidCredentialsError",
    "BuilderSignerError",
    "MissingCapabilityError",
    "SafeAlreadyDeployedError",
    "SafeNotDeployedError",
    "TransportError",
    "HTTPError",
    "MaxRetriesExceededError",
    "DecodeError",
    "TransactionFailedError",
    "TransactionTimeoutError",
    "OperationCancelledError",
    "DeadlineExceededError",
]
