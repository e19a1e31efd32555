"""
Tests for builder attribution headers.
"""
import base64
import hashlib
import hmac
import time

import pytest
import requests

from builder_relayer_sdk.builder_auth import (
    HEADER_API_KEY, HEADER_PASSPHRASE, HEADER_SIGNATURE, HEADER_TIMESTAMP,
    BuilderConfig, BuilderCredentials, BuilderRemoteConfig,
    builder_config_from_env, decode_secret, normalize_builder_timestamp, sign_hmac
)
from builder_relayer_sdk.cancellation import CancelToken
from builder_relayer_sdk.exceptions import (
    BuilderSignerError, InvalidCredentialsError, OperationCancelledError, RelayerError
)

from tests.test_helpers.client_creator import (
    TEST_BUILDER_KEY, TEST_BUILDER_PASSPHRASE, TEST_BUILDER_SECRET
)

REMOTE_HOST = "https://signer.example.com/sign-builder"
SECRET_BYTES = b"secret-key-bytes"


def test_normalize_builder_timestamp():
    before = int(time.time() * 1000)
    now = normalize_builder_timestamp(0)
    assert before <= now <= int(time.time() * 1000)

    assert normalize_builder_timestamp(1_700_000_000) == 1_700_000_000_000
    assert normalize_builder_timestamp(1_700_000_000_123) == 1_700_000_000_123
    assert normalize_builder_timestamp(10**12) == 10**12


@pytest.mark.parametrize("encoded", [
    "c2VjcmV0LWtleS1ieXRlcw==",
    "c2VjcmV0LWtleS1ieXRlcw",
])
def test_decode_secret_padding_variants(encoded):
    assert decode_secret(encoded) == SECRET_BYTES


@pytest.mark.parametrize("encoded", ["-_8=", "-_8", "+/8=", "+/8"])
def test_decode_secret_alphabets(encoded):
    assert decode_secret(encoded) == b"\xfb\xff"


@pytest.mark.parametrize("encoded", ["not base64!!", "a", "c2Vj*mV0"])
def test_decode_secret_rejects_garbage(encoded):
    with pytest.raises(InvalidCredentialsError):
        decode_secret(encoded)


@pytest.mark.parametrize("encoded", ["ab-/", "a_+8", "-_+/"])
def test_decode_secret_rejects_mixed_alphabets(encoded):
    with pytest.raises(InvalidCredentialsError):
        decode_secret(encoded)


def test_sign_hmac_matches_reference():
    message = "1700000000000POST/submit{\"a\":1}"
    expected = base64.urlsafe_b64encode(
        hmac.new(SECRET_BYTES, message.encode(), hashlib.sha256).digest()
    ).decode()
    assert sign_hmac(TEST_BUILDER_SECRET, message) == expected
    # Deterministic, padded url-safe output
    assert sign_hmac(TEST_BUILDER_SECRET, message) == sign_hmac(TEST_BUILDER_SECRET, message)
    assert expected.endswith("=")


def test_local_headers(builder_config):
    body = '{"type":"SAFE"}'
    headers = builder_config.headers("POST", "/submit", body, timestamp=1_700_000_000)

    assert set(headers) == {HEADER_API_KEY, HEADER_PASSPHRASE, HEADER_SIGNATURE, HEADER_TIMESTAMP}
    assert headers[HEADER_API_KEY] == TEST_BUILDER_KEY
    assert headers[HEADER_PASSPHRASE] == TEST_BUILDER_PASSPHRASE
    assert headers[HEADER_TIMESTAMP] == "1700000000000"
    assert headers[HEADER_SIGNATURE] == sign_hmac(TEST_BUILDER_SECRET, "1700000000000POST/submit" + body)


def test_local_headers_without_body(builder_config):
    headers = builder_config.headers("GET", "/transactions", None, timestamp=1_700_000_000_000)
    assert headers[HEADER_SIGNATURE] == sign_hmac(TEST_BUILDER_SECRET, "1700000000000GET/transactions")
    assert builder_config.headers("GET", "/transactions", "", timestamp=1_700_000_000_000) == headers


def test_headers_are_not_cached(builder_config):
    first = builder_config.headers("POST", "/submit", "{}", timestamp=1_700_000_000)
    second = builder_config.headers("POST", "/submit", "{}", timestamp=1_700_000_001)
    assert first[HEADER_SIGNATURE] != second[HEADER_SIGNATURE]


BASE_SIGNING = {"secret": TEST_BUILDER_SECRET, "method": "POST", "path": "/submit", "body": "{}", "timestamp": 1_700_000_000}


@pytest.mark.parametrize("changed", [
    {"secret": "b3RoZXItc2VjcmV0LWJ5dGVz"},
    {"method": "GET"},
    {"path": "/transactions"},
    {"body": "{\"a\":1}"},
    {"timestamp": 1_700_000_001},
])
def test_signature_changes_with_each_input(changed):
    def signature(secret, method, path, body, timestamp):
        config = BuilderConfig.local(TEST_BUILDER_KEY, secret, TEST_BUILDER_PASSPHRASE)
        return config.headers(method, path, body, timestamp=timestamp)[HEADER_SIGNATURE]

    assert signature(**BASE_SIGNING) != signature(**{**BASE_SIGNING, **changed})


def test_config_validity():
    assert BuilderConfig.local("k", "c2VjcmV0", "p").is_valid()
    assert not BuilderConfig.local("k", "", "p").is_valid()
    assert BuilderConfig.remote(REMOTE_HOST).is_valid()
    assert not BuilderConfig.remote("").is_valid()
    assert not BuilderConfig().is_valid()


def test_config_takes_exactly_one_mode():
    with pytest.raises(InvalidCredentialsError):
        BuilderConfig(
            credentials=BuilderCredentials("k", "c2VjcmV0", "p"),
            remote_signer=BuilderRemoteConfig(REMOTE_HOST),
        )


def test_invalid_local_credentials():
    with pytest.raises(InvalidCredentialsError):
        BuilderConfig.local("k", "", "p").headers("POST", "/submit", "{}")
    with pytest.raises(InvalidCredentialsError):
        BuilderConfig.local("k", "%%%", "p").headers("POST", "/submit", "{}")
    with pytest.raises(InvalidCredentialsError):
        BuilderConfig().headers("POST", "/submit", "{}")


def test_secrets_not_in_repr():
    config = BuilderConfig.local("k", TEST_BUILDER_SECRET, "pass")
    assert TEST_BUILDER_SECRET not in repr(config)
    assert "pass'" not in repr(config)


REMOTE_RESPONSE = {
    HEADER_API_KEY: "remote-key",
    HEADER_PASSPHRASE: "remote-pass",
    HEADER_SIGNATURE: "remote-sig",
    HEADER_TIMESTAMP: "1700000000000",
}


def test_remote_headers(requests_mock):
    requests_mock.post(REMOTE_HOST, json=REMOTE_RESPONSE)
    config = BuilderConfig.remote(REMOTE_HOST, token="t0ken")

    headers = config.headers("POST", "/submit", '{"x":1}')

    assert headers == REMOTE_RESPONSE
    request = requests_mock.last_request
    assert request.headers["Authorization"] == "Bearer t0ken"
    assert request.json() == {"method": "POST", "path": "/submit", "body": '{"x":1}'}


def test_remote_headers_forward_normalized_timestamp(requests_mock):
    requests_mock.post(REMOTE_HOST, json=REMOTE_RESPONSE)
    BuilderConfig.remote(REMOTE_HOST).headers("GET", "/transactions", None, timestamp=1_700_000_000)

    request = requests_mock.last_request
    assert "Authorization" not in request.headers
    assert request.json() == {"method": "GET", "path": "/transactions", "body": "", "timestamp": 1_700_000_000_000}


@pytest.mark.parametrize("response", [
    {k.lower(): v for k, v in REMOTE_RESPONSE.items()},
    {k.title(): v for k, v in REMOTE_RESPONSE.items()},
])
def test_remote_header_key_variants(requests_mock, response):
    requests_mock.post(REMOTE_HOST, json=response)
    assert BuilderConfig.remote(REMOTE_HOST).headers("POST", "/submit", "{}") == REMOTE_RESPONSE


def test_remote_uses_given_session(requests_mock):
    requests_mock.post(REMOTE_HOST, json=REMOTE_RESPONSE)
    session = requests.Session()
    config = BuilderConfig.remote(REMOTE_HOST, session=session)
    assert config.headers("POST", "/submit", "{}") == REMOTE_RESPONSE
    assert requests_mock.call_count == 1


@pytest.mark.parametrize("mock_kwargs", [
    {"status_code": 500, "json": REMOTE_RESPONSE},
    {"status_code": 401, "text": "unauthorized"},
    {"status_code": 200, "text": "not json"},
    {"status_code": 200, "json": ["a", "b"]},
    {"status_code": 200, "json": {HEADER_API_KEY: "only-key"}},
    {"exc": requests.exceptions.ConnectionError("refused")},
])
def test_remote_failures_are_fatal(requests_mock, mock_kwargs):
    requests_mock.post(REMOTE_HOST, **mock_kwargs)
    with pytest.raises(BuilderSignerError) as exc_info:
        BuilderConfig.remote(REMOTE_HOST).headers("POST", "/submit", "{}")
    assert isinstance(exc_info.value, RelayerError)
    # No retry
    assert requests_mock.call_count == 1


def test_remote_respects_cancellation(requests_mock):
    requests_mock.post(REMOTE_HOST, json=REMOTE_RESPONSE)
    token = CancelToken()
    token.cancel()
    with pytest.raises(OperationCancelledError):
        BuilderConfig.remote(REMOTE_HOST).headers("POST", "/submit", "{}", cancel_token=token)
    assert requests_mock.call_count == 0


def test_builder_config_from_env_local():
    config = builder_config_from_env({
        "BUILDER_API_KEY": "k",
        "BUILDER_SECRET": "c2VjcmV0",
        "BUILDER_PASS_PHRASE": "p",
    })
    assert config.credentials == BuilderCredentials("k", "c2VjcmV0", "p")
    assert config.remote_signer is None


def test_builder_config_from_env_fallback_names():
    config = builder_config_from_env({
        "POLY_BUILDER_API_KEY": "k",
        "POLY_BUILDER_SECRET": "c2VjcmV0",
        "POLY_BUILDER_PASSPHRASE": "p",
    })
    assert config.is_valid()


def test_builder_config_from_env_prefers_remote():
    config = builder_config_from_env({
        "BUILDER_REMOTE_HOST": REMOTE_HOST,
        "BUILDER_REMOTE_TOKEN": "tok",
        "BUILDER_API_KEY": "k",
        "BUILDER_SECRET": "c2VjcmV0",
        "BUILDER_PASS_PHRASE": "p",
    })
    assert config.credentials is None
    assert config.remote_signer.host == REMOTE_HOST
    assert config.remote_signer.token == "tok"


def test_builder_config_from_env_missing(caplog):
    assert builder_config_from_env({}) is None
    assert builder_config_from_env({"BUILDER_API_KEY": "k"}) is None
    assert "Incomplete builder credentials" in caplog.text
