"""
Bucket module factory.

This module provides factory functions to create the storage provider and
its outcome channel, handling dependency injection and configuration.
"""

from __future__ import annotations

from functools import lru_cache

from app.bucket.protocols import ObjectStore
from app.bucket.services.bucket_provider import BucketProvider
from bucket_core.infrastructure.minio import try_get_minio_client
from bucket_core.runtime.events import OutcomeChannel, ResponseNotifier, ResponseNotifierBridge


@lru_cache()
def get_outcome_channel() -> OutcomeChannel:
    """Get the process-wide outcome channel."""
    return OutcomeChannel()


@lru_cache()
def get_bucket_provider() -> ObjectStore:
    """
    Get the bucket provider instance.

    When object storage is not configured the provider is still returned;
    each of its operations then fails with a CONFIGURATION_ERROR result.
    """
    return BucketProvider(client=try_get_minio_client(), channel=get_outcome_channel())


def attach_response_notifier(notifier: ResponseNotifier):
    """
    Mirror every outcome event into a single-slot notifier.

    Returns:
        A callable that detaches the notifier again.
    """
    return get_outcome_channel().subscribe(ResponseNotifierBridge(notifier))
