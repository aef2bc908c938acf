# Bucket services

from .bucket_provider import BucketProvider

__all__ = [
    "BucketProvider",
]
