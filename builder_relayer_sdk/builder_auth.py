"""
Builder attribution headers.

Authenticated relayer requests carry four ``POLY_BUILDER_*`` headers proving
which builder submitted them. They are produced either locally, from API
credentials and an HMAC-SHA256 over ``timestamp + method + path + body``, or
by a remote signing service holding those credentials.
"""
import base64
import binascii
import hashlib
import hmac
import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import requests

from .cancellation import CancelToken, ensure_token
from .exceptions import BuilderSignerError, InvalidCredentialsError

logger = logging.getLogger(__name__)

HEADER_API_KEY = "POLY_BUILDER_API_KEY"
HEADER_PASSPHRASE = "POLY_BUILDER_PASSPHRASE"
HEADER_SIGNATURE = "POLY_BUILDER_SIGNATURE"
HEADER_TIMESTAMP = "POLY_BUILDER_TIMESTAMP"

BUILDER_HEADERS = (HEADER_API_KEY, HEADER_PASSPHRASE, HEADER_SIGNATURE, HEADER_TIMESTAMP)

# Timestamps below this are taken to be seconds
TIMESTAMP_MILLIS_THRESHOLD = 1_000_000_000_000

DEFAULT_REMOTE_TIMEOUT = 10


def normalize_builder_timestamp(timestamp: int = 0) -> int:
    """
    Return ``timestamp`` in Unix milliseconds.

    Zero means now. Values below 10**12 are assumed to be seconds and scaled.
    """
    if timestamp == 0:
        return int(time.time() * 1000)
    if timestamp < TIMESTAMP_MILLIS_THRESHOLD:
        return timestamp * 1000
    return timestamp


def _b64decode(secret: str, altchars: Optional[bytes], padded: bool) -> bytes:
    # b64decode maps altchars onto "+/" before validating, so reject the other alphabet here
    foreign = "+/" if altchars else "-_"
    if any(c in foreign for c in secret):
        raise binascii.Error(f"characters outside the alphabet: {foreign}")
    if padded:
        if len(secret) % 4:
            raise binascii.Error("incorrect padding")
        data = secret
    else:
        if "=" in secret:
            raise binascii.Error("unexpected padding")
        data = secret + "=" * (-len(secret) % 4)
    return base64.b64decode(data, altchars=altchars, validate=True)


# (altchars, padded) in the order they are tried
_SECRET_ENCODINGS = (
    (b"-_", True),
    (b"-_", False),
    (None, True),
    (None, False),
)


def decode_secret(secret: str) -> bytes:
    """
    Decode a base64 builder secret.

    URL-safe padded, URL-safe unpadded, standard padded and standard unpadded
    alphabets are tried in that order.

    Raises:
        InvalidCredentialsError: If no encoding accepts the secret
    """
    last_error: Optional[Exception] = None
    for altchars, padded in _SECRET_ENCODINGS:
        try:
            return _b64decode(secret, altchars, padded)
        except (binascii.Error, ValueError) as e:
            last_error = e
    raise InvalidCredentialsError(f"invalid base64 secret: {last_error}")


def sign_hmac(secret: str, message: str) -> str:
    """
    HMAC-SHA256 ``message`` with the decoded ``secret``.

    Returns:
        URL-safe base64 (padded) of the digest
    """
    key = decode_secret(secret)
    digest = hmac.new(key, message.encode("utf-8"), hashlib.sha256).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii")


@dataclass
class BuilderCredentials:
    key: str
    secret: str
    passphrase: str

    def is_valid(self) -> bool:
        return bool(self.key and self.secret and self.passphrase)

    def __repr__(self) -> str:
        return f"BuilderCredentials(key={self.key!r}, secret='***', passphrase='***')"


@dataclass
class BuilderRemoteConfig:
    """
    Remote signing service.

    Args:
        host: Full URL the signing payload is POSTed to
        token: Optional bearer token
        session: Optional requests.Session to send with
        timeout: Request timeout in seconds
    """
    host: str
    token: str = ""
    session: Optional[requests.Session] = None
    timeout: float = DEFAULT_REMOTE_TIMEOUT

    def is_valid(self) -> bool:
        return bool(self.host)

    def __repr__(self) -> str:
        return f"BuilderRemoteConfig(host={self.host!r}, token={'***' if self.token else ''!r})"


def _lookup(raw: Mapping[str, Any], header: str) -> str:
    for key in (header, header.lower()):
        value = raw.get(key)
        if value not in (None, ""):
            return str(value)
    for key, value in raw.items():
        if isinstance(key, str) and key.upper() == header and value not in (None, ""):
            return str(value)
    return ""


class BuilderConfig:
    """
    Builder attribution configuration: exactly one of local credentials or a
    remote signer.

    Args:
        credentials: Local API credentials
        remote_signer: Remote signing service

    Raises:
        InvalidCredentialsError: If both are given
    """

    def __init__(
        self,
        credentials: Optional[BuilderCredentials] = None,
        remote_signer: Optional[BuilderRemoteConfig] = None,
    ):
        if credentials is not None and remote_signer is not None:
            raise InvalidCredentialsError("builder config takes local credentials or a remote signer, not both")
        self.credentials = credentials
        self.remote_signer = remote_signer

    @classmethod
    def local(cls, key: str, secret: str, passphrase: str) -> "BuilderConfig":
        return cls(credentials=BuilderCredentials(key=key, secret=secret, passphrase=passphrase))

    @classmethod
    def remote(
        cls,
        host: str,
        token: str = "",
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_REMOTE_TIMEOUT,
    ) -> "BuilderConfig":
        return cls(remote_signer=BuilderRemoteConfig(host=host, token=token, session=session, timeout=timeout))

    def is_valid(self) -> bool:
        if self.credentials is not None:
            return self.credentials.is_valid()
        if self.remote_signer is not None:
            return self.remote_signer.is_valid()
        return False

    def headers(
        self,
        method: str,
        path: str,
        body: Optional[str] = None,
        timestamp: int = 0,
        cancel_token: Optional[CancelToken] = None,
    ) -> Dict[str, str]:
        """
        Produce attribution headers for one request.

        Headers are computed fresh on every call.

        Args:
            method: HTTP method, e.g. "POST"
            path: Request path, e.g. "/submit"
            body: Exact body string that will be sent
            timestamp: Unix seconds or milliseconds; 0 means now
            cancel_token: Cancellation for the remote signer call

        Returns:
            Mapping of the four POLY_BUILDER_* header names to values

        Raises:
            InvalidCredentialsError: If the config is missing or invalid
            BuilderSignerError: If the remote signer fails
            OperationCancelledError: If cancelled before the remote call
        """
        if self.credentials is not None:
            return self._local_headers(method, path, body, timestamp)
        if self.remote_signer is not None:
            return self._remote_headers(method, path, body, timestamp, ensure_token(cancel_token))
        raise InvalidCredentialsError("missing builder config")

    def _local_headers(self, method: str, path: str, body: Optional[str], timestamp: int) -> Dict[str, str]:
        creds = self.credentials
        if not creds.is_valid():
            raise InvalidCredentialsError("builder credentials require key, secret and passphrase")

        ts = normalize_builder_timestamp(timestamp)
        message = f"{ts}{method}{path}"
        if body:
            message += body

        return {
            HEADER_API_KEY: creds.key,
            HEADER_PASSPHRASE: creds.passphrase,
            HEADER_TIMESTAMP: str(ts),
            HEADER_SIGNATURE: sign_hmac(creds.secret, message),
        }

    def _remote_headers(
        self,
        method: str,
        path: str,
        body: Optional[str],
        timestamp: int,
        cancel_token: CancelToken,
    ) -> Dict[str, str]:
        remote = self.remote_signer
        if not remote.is_valid():
            raise InvalidCredentialsError("remote builder signer requires a host")

        payload: Dict[str, Any] = {"method": method, "path": path, "body": body or ""}
        if timestamp:
            payload["timestamp"] = normalize_builder_timestamp(timestamp)

        request_headers = {"Content-Type": "application/json"}
        if remote.token:
            request_headers["Authorization"] = f"Bearer {remote.token}"

        timeout = remote.timeout
        remaining = cancel_token.remaining()
        if remaining is not None:
            timeout = min(timeout, max(remaining, 0.001))

        cancel_token.raise_if_cancelled()
        post = remote.session.post if remote.session is not None else requests.post
        try:
            response = post(remote.host, json=payload, headers=request_headers, timeout=timeout)
        except requests.RequestException as e:
            raise BuilderSignerError(f"builder signer request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise BuilderSignerError(f"builder signer error: status {response.status_code}")

        try:
            raw = response.json()
        except ValueError as e:
            raise BuilderSignerError(f"decode builder headers: {e}") from e
        if not isinstance(raw, dict):
            raise BuilderSignerError("decode builder headers: expected a JSON object")

        headers = {name: _lookup(raw, name) for name in BUILDER_HEADERS}
        missing = [name for name, value in headers.items() if not value]
        if missing:
            raise BuilderSignerError(f"invalid builder headers response: missing {', '.join(missing)}")

        logger.debug(f"Obtained builder headers from remote signer for {method} {path}")
        return headers

    def __repr__(self) -> str:
        if self.credentials is not None:
            return f"BuilderConfig(credentials={self.credentials!r})"
        return f"BuilderConfig(remote_signer={self.remote_signer!r})"


def _first_env(environ: Mapping[str, str], *names: str) -> str:
    for name in names:
        value = environ.get(name, "").strip()
        if value:
            return value
    return ""


def builder_config_from_env(environ: Optional[Mapping[str, str]] = None) -> Optional[BuilderConfig]:
    """
    Build a BuilderConfig from environment variables.

    A remote signer (``BUILDER_REMOTE_HOST``, ``BUILDER_REMOTE_TOKEN``) wins
    over local credentials (``BUILDER_API_KEY``, ``BUILDER_SECRET``,
    ``BUILDER_PASS_PHRASE``, each with a ``POLY_BUILDER_*`` fallback).

    Returns:
        The config, or None if neither is configured
    """
    env = os.environ if environ is None else environ

    host = _first_env(env, "BUILDER_REMOTE_HOST", "POLY_BUILDER_REMOTE_HOST")
    if host:
        return BuilderConfig.remote(host, token=_first_env(env, "BUILDER_REMOTE_TOKEN", "POLY_BUILDER_REMOTE_TOKEN"))

    key = _first_env(env, "BUILDER_API_KEY", "POLY_BUILDER_API_KEY")
    secret = _first_env(env, "BUILDER_SECRET", "POLY_BUILDER_SECRET")
    passphrase = _first_env(env, "BUILDER_PASS_PHRASE", "POLY_BUILDER_PASSPHRASE")
    if key and secret and passphrase:
        return BuilderConfig.local(key, secret, passphrase)
    if key or secret or passphrase:
        logger.warning("Incomplete builder credentials in environment; builder attribution disabled")
    return None
