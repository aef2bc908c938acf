"""
Call-scoped context for storage operations.

RunContext carries the per-call identifier that ties together the log
lines, the returned result, and the outcome event of a single operation.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RunContext(BaseModel):
    """Call-scoped context for a storage operation.

    Attributes:
        call_id: Unique identifier for this invocation.
        operation: Operation name (e.g., "put", "get").
        bucket: Target bucket.
        key: Target object key, if the operation has one.
        started_at: When the call began.
    """

    call_id: str
    operation: str
    bucket: str
    key: str | None = None
    started_at: datetime = Field(default_factory=_utcnow)

    model_config = {"frozen": True}

    @classmethod
    def new(cls, operation: str, bucket: str, key: str | None = None) -> "RunContext":
        """Create a context with a freshly generated call id."""
        return cls(
            call_id=uuid.uuid4().hex[:12],
            operation=operation,
            bucket=bucket,
            key=key,
        )

    def elapsed_ms(self) -> float:
        """Milliseconds since the call started."""
        return (_utcnow() - self.started_at).total_seconds() * 1000

    def log_fields(self) -> dict[str, str]:
        """Fields bound onto every log record of this call."""
        fields = {
            "call_id": self.call_id,
            "operation": self.operation,
            "bucket": self.bucket,
        }
        if self.key is not None:
            fields["key"] = self.key
        return fields
