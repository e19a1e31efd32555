"""
Tests for the bundled local signer and web3 gas estimator.
"""
from unittest.mock import MagicMock

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct, encode_typed_data
from eth_utils import keccak

from builder_relayer_sdk.cancellation import CancelToken
from builder_relayer_sdk.exceptions import MissingCapabilityError, OperationCancelledError
from builder_relayer_sdk.signer import GasEstimator, LocalSigner, Signer, Web3GasEstimator
from tests.test_helpers.client_creator import POLYGON_CHAIN_ID, TEST_ADDRESS, TEST_PRIV_KEY

TARGET = "0x" + "22" * 20

DOMAIN = {
    "name": "Test Domain",
    "chainId": POLYGON_CHAIN_ID,
    "verifyingContract": "0x" + "11" * 20,
}
TYPES = {
    "Greeting": [
        {"name": "text", "type": "string"},
        {"name": "count", "type": "uint256"},
    ]
}
MESSAGE = {"text": "hello", "count": 3}


def test_invalid_keys():
    with pytest.raises(ValueError):
        LocalSigner("", POLYGON_CHAIN_ID)
    with pytest.raises(ValueError):
        LocalSigner("0xnothex", POLYGON_CHAIN_ID)


def test_address(local_signer):
    assert local_signer.address == TEST_ADDRESS
    assert isinstance(local_signer, Signer)


def test_sign_message_recovers(local_signer):
    digest = keccak(b"payload")
    signature = local_signer.sign_message(digest)
    assert len(signature) == 65
    recovered = Account.recover_message(encode_defunct(primitive=digest), signature=signature)
    assert recovered == TEST_ADDRESS


def test_sign_message_rejects_empty(local_signer):
    with pytest.raises(ValueError):
        local_signer.sign_message(b"")


def test_sign_typed_data_recovers(local_signer):
    signature = local_signer.sign_typed_data(DOMAIN, TYPES, MESSAGE, "Greeting")
    assert signature[64] in (27, 28)
    signable = encode_typed_data(full_message={
        "types": TYPES,
        "primaryType": "Greeting",
        "domain": DOMAIN,
        "message": MESSAGE,
    })
    assert Account.recover_message(signable, signature=signature) == TEST_ADDRESS


def test_estimate_gas_without_estimator(local_signer):
    with pytest.raises(MissingCapabilityError):
        local_signer.estimate_gas({"from": TEST_ADDRESS, "to": TARGET, "data": "0x"})


def test_estimate_gas_delegates(local_signer):
    estimator = MagicMock()
    estimator.estimate_gas.return_value = 55000
    token = CancelToken()
    local_signer.with_gas_estimator(estimator)

    tx = {"from": TEST_ADDRESS, "to": TARGET, "data": "0x"}
    assert local_signer.estimate_gas(tx, cancel_token=token) == 55000
    estimator.estimate_gas.assert_called_once_with(tx, cancel_token=token)


class TestWeb3GasEstimator:

    def test_requires_rpc_or_w3(self):
        with pytest.raises(ValueError):
            Web3GasEstimator()

    def test_checksums_call(self):
        w3 = MagicMock()
        w3.eth.estimate_gas.return_value = 42000
        estimator = Web3GasEstimator(w3=w3)
        assert isinstance(estimator, GasEstimator)

        gas = estimator.estimate_gas({"from": TEST_ADDRESS.lower(), "to": TARGET, "data": "0xabcd"})

        assert gas == 42000
        call = w3.eth.estimate_gas.call_args[0][0]
        assert call["from"] == TEST_ADDRESS
        assert call["to"].lower() == TARGET
        assert call["data"] == "0xabcd"

    def test_cancelled_before_rpc(self):
        w3 = MagicMock()
        estimator = Web3GasEstimator(w3=w3)
        token = CancelToken()
        token.cancel()
        with pytest.raises(OperationCancelledError):
            estimator.estimate_gas({"from": TEST_ADDRESS, "to": TARGET}, cancel_token=token)
        w3.eth.estimate_gas.assert_not_called()
