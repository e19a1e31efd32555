"""
Tests for batch encoding and aggregation.
"""
import pytest
from eth_abi import decode as abi_decode
from eth_utils import to_checksum_address

from builder_relayer_sdk.builder import aggregate, aggregate_safe_transactions
from builder_relayer_sdk.config import get_contract_config
from builder_relayer_sdk.encoder import (
    MULTISEND_FUNCTION, PROXY_FUNCTION, create_safe_multisend_transaction,
    decode_proxy_transaction_data, encode_packed_multisend, encode_proxy_transaction_data
)
from builder_relayer_sdk.exceptions import InvalidArgumentError
from builder_relayer_sdk.models import (
    CallType, OperationType, ProxyTransaction, RelayerTxType, SafeTransaction, Transaction
)
from builder_relayer_sdk.utils import decode_hex

from tests.test_helpers.client_creator import POLYGON_CHAIN_ID, POLYGON_PROXY_FACTORY, SAFE_MULTISEND

TOKEN = to_checksum_address("0x2791bca1f2de4661ed88a30c99a7a9449aa84174")
SPENDER = to_checksum_address("0x4bfb41d5b3570defd03c39a9a4d8de6bd8b8982e")


def test_multisend_selector():
    assert MULTISEND_FUNCTION.selector.hex() == "8d80ff0a"
    assert PROXY_FUNCTION.signature == "proxy((uint8,address,uint256,bytes)[])"


def test_packed_multisend_layout():
    txns = [
        SafeTransaction(to=TOKEN, data="0xdeadbeef", value="5"),
        SafeTransaction(to=SPENDER, data="0x", value="0", operation=OperationType.DELEGATE_CALL),
    ]
    packed = encode_packed_multisend(txns)

    first_len = 1 + 20 + 32 + 32 + 4
    second_len = 1 + 20 + 32 + 32
    assert len(packed) == first_len + second_len

    assert packed[0] == 0
    assert packed[1:21] == decode_hex(TOKEN)
    assert int.from_bytes(packed[21:53], "big") == 5
    assert int.from_bytes(packed[53:85], "big") == 4
    assert packed[85:89] == b"\xde\xad\xbe\xef"

    second = packed[first_len:]
    assert second[0] == 1
    assert second[1:21] == decode_hex(SPENDER)
    assert int.from_bytes(second[53:85], "big") == 0


def test_multisend_transaction_wraps_packed_calls():
    txns = [SafeTransaction(to=TOKEN, data="0x01"), SafeTransaction(to=SPENDER, data="0x02")]
    tx = create_safe_multisend_transaction(txns, SAFE_MULTISEND)

    assert tx.to == SAFE_MULTISEND
    assert tx.value == "0"
    assert tx.operation == OperationType.DELEGATE_CALL
    calldata = decode_hex(tx.data)
    assert calldata[:4] == MULTISEND_FUNCTION.selector
    (packed,) = abi_decode(["bytes"], calldata[4:])
    assert packed == encode_packed_multisend(txns)


def test_aggregate_single_safe_call_passes_through():
    tx = SafeTransaction(to=TOKEN, data="0xabcd", value="1")
    assert aggregate_safe_transactions([tx], SAFE_MULTISEND) is tx


def test_aggregate_safe_rejects_empty_batch():
    with pytest.raises(InvalidArgumentError):
        aggregate_safe_transactions([], SAFE_MULTISEND)


def test_proxy_encoding_round_trip():
    txns = [
        ProxyTransaction(to=TOKEN, type_code=CallType.CALL, data="0x095ea7b3", value="0"),
        ProxyTransaction(to=SPENDER, type_code=CallType.CALL, data="0x", value="0x10"),
    ]
    data = encode_proxy_transaction_data(txns)
    assert decode_hex(data)[:4] == PROXY_FUNCTION.selector

    decoded = decode_proxy_transaction_data(data)
    assert [tx.to for tx in decoded] == [TOKEN, SPENDER]
    assert [tx.type_code for tx in decoded] == [CallType.CALL, CallType.CALL]
    assert [tx.value for tx in decoded] == ["0", "16"]
    assert [tx.data for tx in decoded] == ["0x095ea7b3", "0x"]


def test_proxy_decode_rejects_foreign_selector():
    with pytest.raises(InvalidArgumentError):
        decode_proxy_transaction_data("0x12345678")


def test_encoding_reports_bad_fields():
    with pytest.raises(InvalidArgumentError) as exc_info:
        encode_packed_multisend([SafeTransaction(to=TOKEN, data="0xzz")])
    assert exc_info.value.field == "data"

    with pytest.raises(InvalidArgumentError) as exc_info:
        encode_proxy_transaction_data([ProxyTransaction(to=TOKEN, value="ten")])
    assert exc_info.value.field == "value"


def test_aggregate_dispatches_on_style():
    config = get_contract_config(POLYGON_CHAIN_ID)
    calls = [Transaction(to=TOKEN, data="0x01"), Transaction(to=SPENDER, data="0x02", value=3)]

    safe = aggregate(calls, RelayerTxType.SAFE, config)
    assert safe.to == SAFE_MULTISEND
    assert safe.operation == int(OperationType.DELEGATE_CALL)
    assert safe.value == "0"

    single = aggregate(calls[:1], RelayerTxType.SAFE, config)
    assert single.to == TOKEN
    assert single.data == "0x01"
    assert single.operation == int(OperationType.CALL)

    proxy = aggregate(calls[:1], RelayerTxType.PROXY, config)
    assert proxy.to == POLYGON_PROXY_FACTORY
    assert proxy.operation == int(OperationType.CALL)
    assert [tx.to for tx in decode_proxy_transaction_data(proxy.data)] == [TOKEN]

    with pytest.raises(InvalidArgumentError):
        aggregate([], RelayerTxType.PROXY, config)
