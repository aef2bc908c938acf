"""
Object-storage provider.

BucketProvider uploads, fetches, signs and deletes objects in one
configured bucket. Every public operation:

- runs its single backend round trip in a worker thread,
- never raises for backend or input problems, returning Failure instead,
- publishes exactly one OutcomeEvent with a human-readable message.

get_as_encoded_string holds the whole object in memory twice (raw and
base64), so it is only suitable for objects that comfortably fit in RAM.
Use generate_presigned_get_url for large objects.
"""

from __future__ import annotations

import asyncio
import base64
from datetime import datetime, timedelta
from email.utils import parsedate_to_datetime
from typing import Any, Callable, TypeVar
from urllib.parse import quote

from loguru import logger
from minio import Minio
from minio.error import S3Error

from bucket_core.config import settings
from bucket_core.domain.file_input import classify_file_input, normalize
from bucket_core.domain.results import (
    Failure,
    OperationResult,
    StorageFailure,
    StoredObject,
    Success,
    UploadOutcome,
)
from bucket_core.infrastructure.minio import get_minio_client, parse_endpoint
from bucket_core.runtime.context import RunContext
from bucket_core.runtime.errors import classify_storage_exception
from bucket_core.runtime.events import (
    SEVERITY_ERROR,
    SEVERITY_SUCCESS,
    OutcomeChannel,
    OutcomeEvent,
)

T = TypeVar("T")

# S3 caps presigned URLs at seven days
MAX_PRESIGN_SECONDS = 7 * 24 * 60 * 60

RETRIEVE_ERROR_PREFIX = "Could not retrieve file from S3: "

_MISSING_OBJECT_CODES = frozenset({"NoSuchKey", "NoSuchObject"})


class BucketProvider:
    """
    Async facade over a single object-storage bucket.

    Usage:
        provider = BucketProvider()
        result = await provider.put("data:image/png;base64,QUJD", "a.png", "image/png")
        if result:
            print(result.value.location_url)
    """

    def __init__(
        self,
        client: Minio | None = None,
        bucket: str | None = None,
        channel: OutcomeChannel | None = None,
        endpoint: str | None = None,
        part_size: int | None = None,
        presign_expires: int | None = None,
        auto_create_bucket: bool | None = None,
    ):
        """
        Initialize the provider.

        Args:
            client: Storage client; resolved from the connector on first use if None.
            bucket: Target bucket (defaults to settings.BUCKET_NAME).
            channel: Channel receiving outcome events.
            endpoint: Public endpoint URL used to build object locations.
            part_size: Multipart part size in bytes.
            presign_expires: Default lifetime of presigned URLs in seconds.
            auto_create_bucket: Create the bucket before the first upload.
        """
        self._client = client
        self.bucket = bucket or settings.BUCKET_NAME
        self.channel = channel or OutcomeChannel()
        self.endpoint = endpoint or settings.BUCKET_ENDPOINT
        self.part_size = part_size or settings.BUCKET_UPLOAD_PART_SIZE
        self.presign_expires = presign_expires or settings.BUCKET_PRESIGN_EXPIRES_SECONDS
        self.auto_create_bucket = (
            settings.BUCKET_AUTO_CREATE if auto_create_bucket is None else auto_create_bucket
        )
        self._bucket_ready = False

    def _resolve_client(self) -> Minio:
        # Raises StorageUnavailableError when storage is not configured
        if self._client is None:
            self._client = get_minio_client()
        return self._client

    def object_url(self, key: str) -> str:
        """Path-style URL of ``key`` in this bucket."""
        host, secure = parse_endpoint(self.endpoint)
        scheme = "https" if secure else "http"
        return f"{scheme}://{host}/{self.bucket}/{quote(key, safe='/')}"

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def put(self, file_input: Any, key: str, content_type: str) -> OperationResult[UploadOutcome]:
        """
        Upload inline data or a staged file.

        Inline data is decoded into memory; staged files are streamed from
        disk in parts of ``part_size`` bytes.

        Args:
            file_input: InlineData, StagedFile, a base64/data-URI string,
                or a record carrying a ``path``.
            key: Object key inside the bucket.
            content_type: MIME type stored with the object.

        Returns:
            Success with an UploadOutcome, or Failure.
        """
        ctx = RunContext.new("put", self.bucket, key)

        def upload(client: Minio) -> UploadOutcome:
            source_input = classify_file_input(file_input)
            # A bad endpoint must fail before anything is written
            fallback_url = self.object_url(key)
            if self.auto_create_bucket:
                self._ensure_bucket(client)

            with normalize(source_input) as source:
                logger.bind(**ctx.log_fields()).info(
                    f"Uploading {source.length} bytes ({source.origin}) to {self.bucket}/{key}"
                )
                written = client.put_object(
                    bucket_name=self.bucket,
                    object_name=key,
                    data=source.stream,
                    length=source.length,
                    content_type=content_type,
                    part_size=self.part_size,
                )

            # Only multipart uploads get a location back from the store
            return UploadOutcome(
                key=key,
                location_url=getattr(written, "location", None) or fallback_url,
                etag=written.etag,
                version_id=written.version_id,
            )

        return await self._run(ctx, upload, "File uploaded successfully.")

    async def get(self, key: str) -> OperationResult[StoredObject]:
        """
        Fetch an object with its body and metadata.

        Returns:
            Success with a StoredObject, or Failure.
        """
        ctx = RunContext.new("get", self.bucket, key)
        return await self._run(
            ctx,
            lambda client: self._fetch(client, key),
            "File retrieved successfully.",
            error_prefix=RETRIEVE_ERROR_PREFIX,
        )

    async def get_as_encoded_string(self, key: str) -> OperationResult[str]:
        """
        Fetch an object and return its body base64-encoded.

        The whole object is materialized in memory.

        Returns:
            Success with the base64 string, or Failure.
        """
        ctx = RunContext.new("get_as_encoded_string", self.bucket, key)

        def fetch_encoded(client: Minio) -> str:
            stored = self._fetch(client, key)
            return base64.b64encode(stored.body).decode("ascii")

        return await self._run(
            ctx,
            fetch_encoded,
            "File retrieved successfully.",
            error_prefix=RETRIEVE_ERROR_PREFIX,
        )

    async def generate_presigned_get_url(
        self, key: str, expires_in: int | None = None
    ) -> OperationResult[str]:
        """
        Create a signed GET URL for ``key`` without transferring the body.

        Args:
            key: Object key.
            expires_in: Lifetime in seconds (defaults to ``presign_expires``).

        Returns:
            Success with the URL, or Failure.
        """
        ctx = RunContext.new("generate_presigned_get_url", self.bucket, key)
        lifetime = self.presign_expires if expires_in is None else expires_in

        def presign(client: Minio) -> str:
            if isinstance(lifetime, bool) or not isinstance(lifetime, int):
                raise ValueError(f"expires_in must be an integer number of seconds, got {lifetime!r}")
            if not 1 <= lifetime <= MAX_PRESIGN_SECONDS:
                raise ValueError(f"expires_in must be between 1 and {MAX_PRESIGN_SECONDS} seconds")
            return client.presigned_get_object(
                bucket_name=self.bucket,
                object_name=key,
                expires=timedelta(seconds=lifetime),
            )

        return await self._run(
            ctx,
            presign,
            f"Presigned URL generated (expires in {lifetime}s).",
            error_prefix=RETRIEVE_ERROR_PREFIX,
        )

    async def delete(self, key: str) -> OperationResult[bool]:
        """
        Delete the object stored under ``key``.

        Whether deleting a missing key fails is up to the backend; plain
        S3 reports success.

        Returns:
            Success(True), or Failure.
        """
        ctx = RunContext.new("delete", self.bucket, key)

        def remove(client: Minio) -> bool:
            client.remove_object(bucket_name=self.bucket, object_name=key)
            return True

        return await self._run(ctx, remove, "File deleted successfully.")

    async def exists(self, key: str) -> OperationResult[bool]:
        """Check whether ``key`` exists without downloading it."""
        ctx = RunContext.new("exists", self.bucket, key)

        def probe(client: Minio) -> bool:
            try:
                client.stat_object(bucket_name=self.bucket, object_name=key)
            except S3Error as e:
                if e.code in _MISSING_OBJECT_CODES:
                    return False
                raise
            return True

        return await self._run(ctx, probe, "Object lookup completed.")

    async def ensure_bucket(self) -> OperationResult[bool]:
        """
        Create the bucket if it does not exist yet.

        Returns:
            Success(True) if the bucket was created, Success(False) if it
            already existed, or Failure.
        """
        ctx = RunContext.new("ensure_bucket", self.bucket)
        return await self._run(ctx, self._ensure_bucket, "Bucket is ready.")

    # ------------------------------------------------------------------
    # Helpers (run inside the worker thread)
    # ------------------------------------------------------------------

    def _ensure_bucket(self, client: Minio) -> bool:
        if self._bucket_ready:
            return False
        created = False
        if not client.bucket_exists(bucket_name=self.bucket):
            if settings.BUCKET_REGION:
                client.make_bucket(bucket_name=self.bucket, location=settings.BUCKET_REGION)
            else:
                client.make_bucket(bucket_name=self.bucket)
            logger.info(f"Created bucket '{self.bucket}'")
            created = True
        self._bucket_ready = True
        return created

    def _fetch(self, client: Minio, key: str) -> StoredObject:
        response = client.get_object(bucket_name=self.bucket, object_name=key)
        try:
            body = response.read()
            headers = response.headers
        finally:
            response.close()
            response.release_conn()

        etag = headers.get("ETag")
        return StoredObject(
            key=key,
            body=body,
            content_type=headers.get("Content-Type"),
            size=len(body),
            etag=etag.strip('"') if etag else None,
            last_modified=_parse_http_date(headers.get("Last-Modified")),
            metadata={
                name[len("x-amz-meta-"):]: value
                for name, value in headers.items()
                if name.lower().startswith("x-amz-meta-")
            },
        )

    async def _run(
        self,
        ctx: RunContext,
        call: Callable[[Minio], T],
        success_message: str,
        error_prefix: str = "",
    ) -> OperationResult[T]:
        log = logger.bind(**ctx.log_fields())
        log.info(f"{ctx.operation} started for {self.bucket}/{ctx.key or ''}")

        try:
            client = self._resolve_client()
            value = await asyncio.to_thread(call, client)
        except Exception as e:
            error = classify_storage_exception(e, ctx.operation)
            log.error(
                f"{ctx.operation} failed after {ctx.elapsed_ms():.0f}ms: {error} "
                f"(debug_id={error.debug_id})"
            )
            if error.message_debug:
                log.debug(f"{ctx.operation} backend detail (debug_id={error.debug_id}): {error.message_debug}")
            self._publish(ctx, False, f"{error_prefix}{error.message_safe}")
            return Failure(StorageFailure.from_error(error), ctx.call_id)

        log.info(f"{ctx.operation} succeeded in {ctx.elapsed_ms():.0f}ms")
        self._publish(ctx, True, success_message)
        return Success(value, ctx.call_id)

    def _publish(self, ctx: RunContext, succeeded: bool, message: str) -> None:
        self.channel.publish(
            OutcomeEvent(
                call_id=ctx.call_id,
                operation=ctx.operation,
                succeeded=succeeded,
                message=message,
                severity=SEVERITY_SUCCESS if succeeded else SEVERITY_ERROR,
                key=ctx.key,
            )
        )


def _parse_http_date(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
