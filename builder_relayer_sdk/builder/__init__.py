"""
Request builders: turn caller intent into signed TransactionRequests.
"""
from .aggregate import aggregate, aggregate_safe_transactions, to_proxy_transactions, to_safe_transactions
from .create import SAFE_FACTORY_NAME, build_safe_create_transaction_request
from .proxy import DEFAULT_GAS_LIMIT, build_proxy_transaction_request, create_proxy_struct_hash
from .safe import build_safe_transaction_request, create_safe_struct_hash

__all__ = [
    "aggregate",
    "aggregate_safe_transactions",
    "to_proxy_transactions",
    "to_safe_transactions",
    "SAFE_FACTORY_NAME",
    "build_safe_create_transaction_request",
    "DEFAULT_GAS_LIMIT",
    "build_proxy_transaction_request",
    "create_proxy_struct_hash",
    "build_safe_transaction_request",
    "create_safe_struct_hash",
]
