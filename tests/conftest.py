"""
Pytest fixtures for the Builder Relayer SDK tests.
"""
import pytest

from builder_relayer_sdk._rate_limited_log import reset_rate_limits
from builder_relayer_sdk.models import RelayerTxType
from builder_relayer_sdk.signer.local import LocalSigner
from tests.test_helpers.client_creator import (
    POLYGON_CHAIN_ID, TEST_PRIV_KEY, TEST_RELAYER_URL,
    FakeSigner, create_builder_config, create_test_client
)


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    reset_rate_limits()
    yield
    reset_rate_limits()


@pytest.fixture
def local_signer():
    return LocalSigner(TEST_PRIV_KEY, POLYGON_CHAIN_ID)


@pytest.fixture
def fake_signer():
    return FakeSigner()


@pytest.fixture
def builder_config():
    return create_builder_config()


@pytest.fixture
def relayer_url():
    return TEST_RELAYER_URL


@pytest.fixture
def safe_client(fake_signer, builder_config):
    return create_test_client(signer=fake_signer, builder_config=builder_config)


@pytest.fixture
def proxy_client(fake_signer, builder_config):
    return create_test_client(
        signer=fake_signer,
        builder_config=builder_config,
        relay_tx_type=RelayerTxType.PROXY,
    )


@pytest.fixture
def read_only_client():
    return create_test_client()
