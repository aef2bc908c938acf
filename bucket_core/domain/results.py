"""
Result types returned by storage operations.

Every operation returns either Success carrying its payload or Failure
carrying a StorageFailure. Both are truthy/falsy so callers can keep
treating "no truthy result" as the failure signal.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, TypeVar, Union

from bucket_core.runtime.errors import ServiceError

T = TypeVar("T")


@dataclass(frozen=True)
class StorageFailure:
    """Structured description of why an operation failed."""

    code: str
    message: str
    retryable: bool = False
    debug_id: str | None = None

    @classmethod
    def from_error(cls, error: ServiceError) -> "StorageFailure":
        return cls(
            code=error.code,
            message=error.message_safe,
            retryable=error.retryable,
            debug_id=error.debug_id,
        )


@dataclass(frozen=True)
class Success(Generic[T]):
    """Operation completed; ``value`` holds its payload."""

    value: T
    call_id: str

    ok = True

    def __bool__(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Failure:
    """Operation failed; ``error`` says why."""

    error: StorageFailure
    call_id: str

    ok = False

    def __bool__(self) -> bool:
        return False

    def unwrap(self):
        raise ServiceError(
            code=self.error.code,
            message_safe=self.error.message,
            retryable=self.error.retryable,
            debug_id=self.error.debug_id,
        )


OperationResult = Union[Success[T], Failure]


@dataclass(frozen=True)
class UploadOutcome:
    """Where an uploaded object ended up."""

    key: str
    location_url: str
    etag: str | None = None
    version_id: str | None = None

    succeeded = True


@dataclass(frozen=True)
class StoredObject:
    """An object fetched from the store, body included."""

    key: str
    body: bytes
    content_type: str | None = None
    size: int = 0
    etag: str | None = None
    last_modified: datetime | None = None
    metadata: dict[str, str] = field(default_factory=dict)
