"""
Resilient HTTP transport for the relayer API.

Requests are retried on network errors, 5xx and 429 with exponential backoff.
A 429 ``Retry-After`` header overrides the next delay. Every wait goes through
the caller's CancelToken so cancellation interrupts backoff immediately.
"""
import json
import logging
from functools import lru_cache
from typing import Any, Dict, Mapping, Optional

import requests
from pydantic import TypeAdapter, ValidationError
from requests.adapters import HTTPAdapter
from urllib3.exceptions import InvalidHeader
from urllib3.util.retry import Retry

from ._rate_limited_log import rate_limited_log
from .cancellation import CancelToken, ensure_token
from .exceptions import (
    DecodeError, MaxRetriesExceededError, TransportError, http_error_for_status
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30
DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY = 0.5

# Caps the backoff exponent
MAX_BACKOFF_EXPONENT = 10

# Only used for its Retry-After parser
_RETRY_AFTER_PARSER = Retry(total=0)


@lru_cache(maxsize=64)
def _adapter_for(model: Any) -> TypeAdapter:
    return TypeAdapter(model)


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """
    Parse a Retry-After header given in seconds or as an HTTP date.

    Returns:
        Seconds to wait (0 for a date in the past), or None when the header
        is absent or unparseable
    """
    if value is None or not value.strip():
        return None
    try:
        return max(0.0, float(_RETRY_AFTER_PARSER.parse_retry_after(value.strip())))
    except InvalidHeader:
        return None


def _new_session() -> requests.Session:
    session = requests.Session()
    # Retries are handled by HTTPClient.request
    adapter = HTTPAdapter(max_retries=Retry(total=0, read=False, raise_on_status=False))
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


class HTTPClient:
    """
    JSON-over-HTTP client with retries.

    A single HTTPClient (and its connection pool) may be shared by many
    threads; it holds no per-request state.

    Cancellation is checked before each attempt and interrupts backoff sleeps,
    but ``CancelToken.cancel()`` cannot abort a request already on the wire.
    Such a request is bounded only by the per-attempt timeout, which is
    ``timeout`` or the token's remaining deadline if that is shorter. A token
    without a deadline can therefore wait up to ``timeout`` seconds after
    being cancelled.

    Args:
        session: requests.Session to send with (a pooled one is created if omitted)
        timeout: Per-attempt timeout in seconds
        max_retries: Retries after the first attempt
        base_delay: First backoff delay in seconds; doubles per retry
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay: float = DEFAULT_BASE_DELAY,
    ):
        self.session = session if session is not None else _new_session()
        self.timeout = timeout
        self.max_retries = max(0, max_retries)
        self.base_delay = base_delay

    def backoff(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (1-based)."""
        exponent = min(max(attempt - 1, 0), MAX_BACKOFF_EXPONENT)
        return self.base_delay * (2 ** exponent)

    def _attempt_timeout(self, token: CancelToken) -> float:
        remaining = token.remaining()
        if remaining is None:
            return self.timeout
        return max(0.001, min(self.timeout, remaining))

    def request(
        self,
        method: str,
        url: str,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[str] = None,
        response_model: Any = None,
        cancel_token: Optional[CancelToken] = None,
    ) -> Any:
        """
        Send a request, retrying transient failures.

        Args:
            method: HTTP method
            url: Absolute URL
            params: Query parameters
            headers: Extra request headers
            body: Request body, sent byte-for-byte as given
            response_model: Type to validate the JSON response into
                (a pydantic model, or e.g. ``List[Model]``); raw JSON if None
            cancel_token: Cancellation for the whole call, including backoff

        Returns:
            The validated response, raw JSON, or None for an empty body

        Raises:
            HTTPError: On a non-retryable (4xx other than 429) response
            MaxRetriesExceededError: When every attempt failed
            DecodeError: If a 2xx body cannot be decoded
            OperationCancelledError: If the token fires
        """
        token = ensure_token(cancel_token)
        request_headers: Dict[str, str] = {"Accept": "application/json"}
        if body is not None:
            request_headers["Content-Type"] = "application/json"
        if headers:
            request_headers.update(headers)
        payload = body.encode("utf-8") if body is not None else None

        max_attempts = self.max_retries + 1
        last_error: Optional[Exception] = None

        for attempt in range(1, max_attempts + 1):
            token.raise_if_cancelled()
            retry_after = None
            logger.debug(f"{method} {url} (attempt {attempt}/{max_attempts})")
            try:
                response = self.session.request(
                    method,
                    url,
                    params=params,
                    headers=request_headers,
                    data=payload,
                    timeout=self._attempt_timeout(token),
                )
            except requests.RequestException as e:
                last_error = TransportError(f"{method} {url}: {e}")
                last_error.__cause__ = e
            else:
                status = response.status_code
                if 200 <= status < 300:
                    return self._decode(response, response_model)

                error = http_error_for_status(status, response.text)
                if status != 429 and status < 500:
                    logger.debug(f"{method} {url} failed with status {status}")
                    raise error
                last_error = error
                if status == 429:
                    header = response.headers.get("Retry-After")
                    retry_after = parse_retry_after(header)
                    if header and retry_after is None:
                        rate_limited_log(f"Ignoring unparseable Retry-After header: {header!r}", logger_instance=logger)

            if attempt == max_attempts:
                break

            delay = retry_after if retry_after is not None else self.backoff(attempt)
            logger.warning(f"Retrying {method} {url} after {delay}s due to: {last_error}")
            token.sleep(delay)

        logger.error(f"{method} {url} failed after {max_attempts} attempts: {last_error}")
        raise MaxRetriesExceededError(last_error) from last_error

    def _decode(self, response: requests.Response, response_model: Any) -> Any:
        if not response.content:
            return None
        try:
            data = json.loads(response.text)
        except ValueError as e:
            raise DecodeError(f"invalid JSON response: {e}") from e
        if response_model is None:
            return data
        try:
            return _adapter_for(response_model).validate_python(data)
        except ValidationError as e:
            raise DecodeError(f"unexpected response shape: {e}") from e

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "HTTPClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


__all__ = ["HTTPClient", "parse_retry_after"]
