"""
MinIO client connector for bucket-provider.

This module provides a singleton S3-compatible client shared by every
storage operation. The client is built once from settings and is
read-only afterwards, so it is safe to use from concurrent calls.

When the backend selector does not pick object storage, or required
connection values are missing, the connector refuses to build a client
instead of handing out an unusable one.
"""

from __future__ import annotations

from urllib.parse import urlsplit

from loguru import logger
from minio import Minio

from bucket_core.config import settings
from bucket_core.runtime.errors import StorageUnavailableError


def parse_endpoint(endpoint_url: str) -> tuple[str, bool]:
    """
    Split a full endpoint URL into the host and TLS flag MinIO expects.

    Args:
        endpoint_url: e.g. "https://objects.example.com" or "localhost:9000".

    Returns:
        Tuple of (host[:port], secure).

    Raises:
        StorageUnavailableError: If no host can be found in the URL.
    """
    candidate = endpoint_url.strip()
    if "://" not in candidate:
        candidate = f"https://{candidate}"

    parts = urlsplit(candidate)
    if not parts.netloc:
        raise StorageUnavailableError(f"invalid endpoint '{endpoint_url}'")
    if parts.path not in ("", "/"):
        raise StorageUnavailableError(f"endpoint '{endpoint_url}' must not contain a path")

    return parts.netloc, parts.scheme == "https"


class MinioClientConnector:
    """
    Singleton connector for the object store.

    Usage:
        client = MinioClientConnector.get_instance()
        client.put_object(bucket_name="uploads", ...)
    """

    _instance: Minio | None = None

    @classmethod
    def get_instance(cls) -> Minio:
        """
        Get or create the MinIO client instance.

        Returns:
            Minio: The MinIO client instance.

        Raises:
            StorageUnavailableError: If configuration does not allow a client.
        """
        if cls._instance is None:
            if not settings.uses_object_storage:
                raise StorageUnavailableError(
                    f"STORAGE_BACKEND is '{settings.STORAGE_BACKEND}', not 's3'"
                )
            if not settings.BUCKET_ACCESS_KEY or not settings.BUCKET_SECRET_KEY:
                raise StorageUnavailableError("BUCKET_ACCESS_KEY and BUCKET_SECRET_KEY are required")

            host, secure = parse_endpoint(settings.BUCKET_ENDPOINT)
            try:
                cls._instance = Minio(
                    endpoint=host,
                    access_key=settings.BUCKET_ACCESS_KEY,
                    secret_key=settings.BUCKET_SECRET_KEY,
                    secure=secure,
                    region=settings.BUCKET_REGION,
                )
                logger.info(f"Connected to object storage at '{settings.BUCKET_ENDPOINT}'")
            except Exception as e:
                logger.error(f"Failed to create object storage client for '{settings.BUCKET_ENDPOINT}': {e}")
                raise

        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the cached client (used when settings change)."""
        cls._instance = None


def get_minio_client() -> Minio:
    """
    Convenience function to get the MinIO client.

    Returns:
        Minio: The MinIO client instance.
    """
    return MinioClientConnector.get_instance()


def try_get_minio_client() -> Minio | None:
    """
    Get the client, or None when object storage is not configured.

    Returns:
        The MinIO client, or None if the connector refused to build one.
    """
    try:
        return MinioClientConnector.get_instance()
    except StorageUnavailableError as e:
        logger.warning(str(e))
        return None
