"""
Standardized error model with retry semantics.

This module defines a hierarchy of service errors that classify whether
an error is retryable, and maps object-storage client exceptions onto
that hierarchy so operations can return a structured failure instead of
raising.
"""

from __future__ import annotations

import uuid

from minio.error import InvalidResponseError, S3Error, ServerError
from urllib3.exceptions import HTTPError as TransportError


class ServiceError(Exception):
    """Standardized service error with retry classification.

    ServiceError carries structured information about failures:
    - code: Machine-readable error code (e.g., "NOT_FOUND")
    - message_safe: Human-readable message for logs and display
    - message_debug: Detailed debug info
    - retryable: Whether the operation can be retried
    - cause: The underlying exception, if any
    - debug_id: Unique ID for support correlation
    """

    def __init__(
        self,
        code: str,
        message_safe: str,
        message_debug: str | None = None,
        retryable: bool = False,
        cause: Exception | None = None,
        debug_id: str | None = None,
    ):
        """Initialize a ServiceError.

        Args:
            code: Machine-readable error code.
            message_safe: Human-readable message.
            message_debug: Optional detailed debug message.
            retryable: Whether the operation can be retried.
            cause: Optional underlying exception.
            debug_id: Optional correlation ID (auto-generated if None).
        """
        super().__init__(message_safe)
        self.code = code
        self.message_safe = message_safe
        self.message_debug = message_debug
        self.retryable = retryable
        self.cause = cause
        self.debug_id = debug_id or str(uuid.uuid4())[:8]

    def __str__(self) -> str:
        """Return string representation."""
        return f"[{self.code}] {self.message_safe}"

    def __repr__(self) -> str:
        """Return detailed representation."""
        return (
            f"ServiceError(code={self.code!r}, "
            f"message_safe={self.message_safe!r}, "
            f"retryable={self.retryable}, "
            f"debug_id={self.debug_id!r})"
        )


class RetryableError(ServiceError):
    """Error that indicates the operation can be retried.

    Use this for transient failures like:
    - Network timeouts
    - Slow-down / throttling responses from the store
    - Temporary service unavailability (503)
    """

    def __init__(
        self,
        code: str,
        message_safe: str,
        message_debug: str | None = None,
        cause: Exception | None = None,
        debug_id: str | None = None,
    ):
        super().__init__(
            code=code,
            message_safe=message_safe,
            message_debug=message_debug,
            retryable=True,
            cause=cause,
            debug_id=debug_id,
        )


class TerminalError(ServiceError):
    """Error that indicates the operation should not be retried.

    Use this for permanent failures like:
    - Invalid input
    - Authorization failures (401, 403)
    - Missing objects or buckets (404)
    - Misconfiguration
    """

    def __init__(
        self,
        code: str,
        message_safe: str,
        message_debug: str | None = None,
        cause: Exception | None = None,
        debug_id: str | None = None,
    ):
        super().__init__(
            code=code,
            message_safe=message_safe,
            message_debug=message_debug,
            retryable=False,
            cause=cause,
            debug_id=debug_id,
        )


class StorageUnavailableError(TerminalError):
    """The object-storage client could not be built from configuration."""

    def __init__(self, reason: str):
        super().__init__(
            code=ErrorCode.CONFIGURATION_ERROR,
            message_safe=f"Object storage is not configured: {reason}",
        )
        self.reason = reason


# Common error codes
class ErrorCode:
    """Standard error codes for common failure scenarios."""

    # Network/connectivity
    CONNECTION_ERROR = "CONNECTION_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"

    # Storage
    STORAGE_READ_ERROR = "STORAGE_READ_ERROR"
    STORAGE_WRITE_ERROR = "STORAGE_WRITE_ERROR"

    # Authentication/Authorization
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"

    # Validation
    INVALID_INPUT = "INVALID_INPUT"
    NOT_FOUND = "NOT_FOUND"

    # Rate limiting
    RATE_LIMITED = "RATE_LIMITED"

    # Setup
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Internal
    INTERNAL_ERROR = "INTERNAL_ERROR"


# S3 error codes, grouped by how the caller should treat them
_NOT_FOUND_CODES = frozenset({"NoSuchKey", "NoSuchBucket", "NoSuchObject", "ResourceNotFound"})
_UNAUTHORIZED_CODES = frozenset(
    {"InvalidAccessKeyId", "SignatureDoesNotMatch", "ExpiredToken", "InvalidToken"}
)
_FORBIDDEN_CODES = frozenset({"AccessDenied", "AllAccessDisabled", "AccountProblem"})
_THROTTLED_CODES = frozenset({"SlowDown", "RequestTimeTooSkewed", "ServiceUnavailable"})

# Fallback code per operation kind when the backend gives nothing more specific
_WRITE_OPERATIONS = frozenset({"put", "delete", "ensure_bucket"})


def classify_storage_exception(exc: BaseException, operation: str) -> ServiceError:
    """Map an exception raised during a storage call to a ServiceError.

    The backend's own message is kept verbatim so it can be shown to the
    user unchanged.

    Args:
        exc: The exception raised by the client or while reading input.
        operation: Name of the storage operation ("put", "get", ...).

    Returns:
        A RetryableError or TerminalError describing the failure.
    """
    if isinstance(exc, ServiceError):
        return exc

    if isinstance(exc, S3Error):
        message = exc.message or str(exc)
        debug = str(exc)
        if exc.code in _NOT_FOUND_CODES:
            return TerminalError(ErrorCode.NOT_FOUND, message, debug, cause=exc)
        if exc.code in _UNAUTHORIZED_CODES:
            return TerminalError(ErrorCode.UNAUTHORIZED, message, debug, cause=exc)
        if exc.code in _FORBIDDEN_CODES:
            return TerminalError(ErrorCode.FORBIDDEN, message, debug, cause=exc)
        if exc.code in _THROTTLED_CODES:
            return RetryableError(ErrorCode.RATE_LIMITED, message, debug, cause=exc)
        return TerminalError(_fallback_code(operation), message, debug, cause=exc)

    if isinstance(exc, (ServerError, InvalidResponseError)):
        return RetryableError(ErrorCode.SERVICE_UNAVAILABLE, str(exc), cause=exc)

    if isinstance(exc, TransportError):
        return RetryableError(ErrorCode.CONNECTION_ERROR, str(exc) or type(exc).__name__, cause=exc)

    if isinstance(exc, FileNotFoundError):
        return TerminalError(ErrorCode.INVALID_INPUT, f"Staged file not found: {exc.filename}", cause=exc)

    if isinstance(exc, OSError):
        return TerminalError(ErrorCode.STORAGE_READ_ERROR, str(exc), cause=exc)

    if isinstance(exc, (TypeError, ValueError)):
        return TerminalError(ErrorCode.INVALID_INPUT, str(exc), cause=exc)

    return TerminalError(ErrorCode.INTERNAL_ERROR, str(exc) or type(exc).__name__, cause=exc)


def _fallback_code(operation: str) -> str:
    if operation in _WRITE_OPERATIONS:
        return ErrorCode.STORAGE_WRITE_ERROR
    return ErrorCode.STORAGE_READ_ERROR
