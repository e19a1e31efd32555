"""
Exceptions for the Builder Relayer SDK.
"""
from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    """
    Coarse error kinds surfaced by the SDK.

    Every RelayerError carries one of these in its ``code`` attribute so callers
    can branch on the kind without matching on exception classes.
    """
    CONFIG_UNSUPPORTED = "CONFIG_UNSUPPORTED"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    SIGNING_FAILED = "SIGNING_FAILED"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    MISSING_CAPABILITY = "MISSING_CAPABILITY"
    ALREADY_DEPLOYED = "ALREADY_DEPLOYED"
    NOT_DEPLOYED = "NOT_DEPLOYED"
    TRANSPORT = "TRANSPORT"
    HTTP = "HTTP"
    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    TOO_MANY_REQUESTS = "TOO_MANY_REQUESTS"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"
    MAX_RETRIES_EXCEEDED = "MAX_RETRIES_EXCEEDED"
    DECODE_FAILED = "DECODE_FAILED"
    ONCHAIN_FAILURE = "ONCHAIN_FAILURE"
    TIMEOUT = "TIMEOUT"
    CANCELLED = "CANCELLED"


class RelayerError(Exception):
    """Base exception for all SDK errors."""
    code: Optional[ErrorCode] = None

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__doc__ or self.__class__.__name__)


class ConfigUnsupportedError(RelayerError):
    """Config is not supported on the chainId."""
    code = ErrorCode.CONFIG_UNSUPPORTED


class InvalidArgumentError(RelayerError, ValueError):
    """Raised when a numeric or hex field cannot be parsed."""
    code = ErrorCode.INVALID_ARGUMENT

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        if field:
            message = f"invalid {field}: {message}"
        super().__init__(message)


class InvalidSignatureError(RelayerError, ValueError):
    """Raised when a signature has the wrong length or recovery byte."""
    code = ErrorCode.INVALID_SIGNATURE


class SigningError(RelayerError):
    """Raised when the underlying signer rejects a signing request."""
    code = ErrorCode.SIGNING_FAILED


class InvalidCredentialsError(RelayerError):
    """Builder config is required."""
    code = ErrorCode.INVALID_CREDENTIALS


class BuilderSignerError(InvalidCredentialsError):
    """Raised when the remote builder signer cannot produce headers."""


class MissingCapabilityError(RelayerError):
    """Signer is needed to interact with this endpoint."""
    code = ErrorCode.MISSING_CAPABILITY


class SafeAlreadyDeployedError(RelayerError):
    """Safe already deployed."""
    code = ErrorCode.ALREADY_DEPLOYED


class SafeNotDeployedError(RelayerError):
    """Safe not deployed."""
    code = ErrorCode.NOT_DEPLOYED


class TransportError(RelayerError):
    """Raised when a request fails below the HTTP layer (DNS, connect, reset)."""
    code = ErrorCode.TRANSPORT


class HTTPError(RelayerError):
    """Raised when the relayer answers with a non-2xx status."""
    code = ErrorCode.HTTP

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(f"http error: status {status_code} body={body[:512]}")


class BadRequestError(HTTPError):
    code = ErrorCode.BAD_REQUEST


class UnauthorizedError(HTTPError):
    code = ErrorCode.UNAUTHORIZED


class TooManyRequestsError(HTTPError):
    code = ErrorCode.TOO_MANY_REQUESTS


class InternalServerError(HTTPError):
    code = ErrorCode.INTERNAL_SERVER_ERROR


def http_error_for_status(status_code: int, body: str = "") -> HTTPError:
    """
    Map an HTTP status to the matching HTTPError subclass.

    Args:
        status_code: HTTP status code of the response
        body: Response body text

    Returns:
        HTTPError instance (plain HTTPError for unmapped 4xx codes)
    """
    if status_code == 400:
        return BadRequestError(status_code, body)
    if status_code in (401, 403):
        return UnauthorizedError(status_code, body)
    if status_code == 429:
        return TooManyRequestsError(status_code, body)
    if status_code >= 500:
        return InternalServerError(status_code, body)
    return HTTPError(status_code, body)


class MaxRetriesExceededError(RelayerError):
    """
    Raised when every attempt of a request failed.

    The last underlying error stays available as ``last_error`` (and as
    ``__cause__``); ``status_code`` is that error's status when it was an HTTP
    error.
    """
    code = ErrorCode.MAX_RETRIES_EXCEEDED

    def __init__(self, last_error: Optional[Exception] = None):
        self.last_error = last_error
        message = "max retries exceeded"
        if last_error is not None:
            message = f"{message}: {last_error}"
        super().__init__(message)

    @property
    def status_code(self) -> Optional[int]:
        return getattr(self.last_error, "status_code", None)

    @property
    def http_code(self) -> Optional[ErrorCode]:
        if isinstance(self.last_error, HTTPError):
            return self.last_error.code
        return None


class DecodeError(RelayerError):
    """Raised when a response body is not valid JSON or misses expected fields."""
    code = ErrorCode.DECODE_FAILED


class TransactionFailedError(RelayerError):
    """Raised when a polled transaction reaches the designated failure state."""
    code = ErrorCode.ONCHAIN_FAILURE

    def __init__(self, transaction_hash: str = ""):
        self.transaction_hash = transaction_hash
        super().__init__(f"transaction failed onchain: {transaction_hash}")


class TransactionTimeoutError(RelayerError):
    """Transaction not found or not in desired state (timeout)."""
    code = ErrorCode.TIMEOUT


class OperationCancelledError(RelayerError):
    """Operation cancelled."""
    code = ErrorCode.CANCELLED


class DeadlineExceededError(OperationCancelledError):
    """Operation deadline exceeded."""
