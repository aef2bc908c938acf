"""
Service runtime layer for bucket-provider.

This package provides shared infrastructure for storage operations:
- RunContext: Call-scoped context with a per-call id
- ServiceError: Standardized errors with retry semantics
- OutcomeChannel: Per-call outcome events for display layers
"""

from .context import RunContext
from .errors import (
    ErrorCode,
    RetryableError,
    ServiceError,
    StorageUnavailableError,
    TerminalError,
    classify_storage_exception,
)
from .events import OutcomeChannel, OutcomeEvent, ResponseNotifier, ResponseNotifierBridge

__all__ = [
    "RunContext",
    "ErrorCode",
    "ServiceError",
    "RetryableError",
    "TerminalError",
    "StorageUnavailableError",
    "classify_storage_exception",
    "OutcomeChannel",
    "OutcomeEvent",
    "ResponseNotifier",
    "ResponseNotifierBridge",
]
