"""
Protocol for object-store access.

Defines the interface the rest of the application depends on, so the
MinIO-backed BucketProvider can be swapped for a test double.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from bucket_core.domain.results import OperationResult, StoredObject, UploadOutcome


@runtime_checkable
class ObjectStore(Protocol):
    """Async object-store operations against a single bucket."""

    async def put(self, file_input: Any, key: str, content_type: str) -> OperationResult[UploadOutcome]:
        """
        Upload inline data or a staged file under ``key``.

        Args:
            file_input: InlineData, StagedFile, a base64 string or a
                record with a ``path``.
            key: Object key inside the bucket.
            content_type: MIME type stored with the object.
        """
        ...

    async def get(self, key: str) -> OperationResult[StoredObject]:
        """Fetch an object with its body and metadata."""
        ...

    async def get_as_encoded_string(self, key: str) -> OperationResult[str]:
        """Fetch an object body as a base64 string."""
        ...

    async def generate_presigned_get_url(
        self, key: str, expires_in: int | None = None
    ) -> OperationResult[str]:
        """Create a time-limited signed GET URL for ``key``."""
        ...

    async def delete(self, key: str) -> OperationResult[bool]:
        """Delete the object stored under ``key``."""
        ...

    async def exists(self, key: str) -> OperationResult[bool]:
        """Check whether ``key`` exists without downloading it."""
        ...

    async def ensure_bucket(self) -> OperationResult[bool]:
        """Create the bucket if missing; True when it was created."""
        ...
