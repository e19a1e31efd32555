"""
Reduce a batch of caller calls to the single call a wallet executes.
"""
from typing import Sequence

from ..config import ContractConfig
from ..encoder import create_safe_multisend_transaction, encode_proxy_transaction_data
from ..exceptions import InvalidArgumentError
from ..models import (
    AggregatedTransaction, CallType, OperationType, ProxyTransaction,
    RelayerTxType, SafeTransaction, Transaction
)


def to_safe_transactions(txns: Sequence[Transaction]) -> list:
    return [SafeTransaction(to=tx.to, operation=OperationType.CALL, data=tx.data, value=tx.value or "0") for tx in txns]


def to_proxy_transactions(txns: Sequence[Transaction]) -> list:
    return [ProxyTransaction(to=tx.to, type_code=CallType.CALL, data=tx.data, value=tx.value or "0") for tx in txns]


def aggregate_safe_transactions(txns: Sequence[SafeTransaction], safe_multisend: str) -> SafeTransaction:
    """
    Collapse Safe calls into one.

    A single call is returned unchanged; several calls become one delegatecall
    to the MultiSend contract.

    Raises:
        InvalidArgumentError: If ``txns`` is empty
    """
    if not txns:
        raise InvalidArgumentError("no transactions to execute", field="transactions")
    if len(txns) == 1:
        return txns[0]
    return create_safe_multisend_transaction(txns, safe_multisend)


def aggregate(calls: Sequence[Transaction], style: RelayerTxType, contract_config: ContractConfig) -> AggregatedTransaction:
    """
    Aggregate ``calls`` for the given wallet style.

    Safe: see aggregate_safe_transactions. Proxy: every call, even a lone one,
    is packed into a ``proxy(calls[])`` call on the proxy factory.
    """
    if not calls:
        raise InvalidArgumentError("no transactions to execute", field="transactions")

    if RelayerTxType(style) == RelayerTxType.SAFE:
        tx = aggregate_safe_transactions(to_safe_transactions(calls), contract_config.safe.safe_multisend)
        return AggregatedTransaction(to=tx.to, data=tx.data, value=tx.value, operation=int(tx.operation))

    data = encode_proxy_transaction_data(to_proxy_transactions(calls))
    return AggregatedTransaction(
        to=contract_config.proxy.proxy_factory,
        data=data,
        value="0",
        operation=int(OperationType.CALL),
    )
