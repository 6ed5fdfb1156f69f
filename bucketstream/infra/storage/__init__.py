"""Resilient streaming transfers against S3-compatible object storage.

Sessions come from ``acquire_session``; ``list_keys``, ``download`` and
``upload`` take the session plus a logical ``<bucket>[/<key>]`` path.
"""

from .client import (
    InvalidPathError,
    ObjectLocation,
    ObjectStore,
    ReadError,
    StorageConnectionError,
    StorageError,
    TransferError,
)
from .paths import resolve_path, resolve_upload_path
from .retry import RetryPolicy
from .s3_client import S3Session
from .session import acquire_session
from .sniff import detect_content_type
from .transfer import (
    MAX_UPLOAD_PARTS,
    MIN_PART_SIZE,
    calculate_part_size,
    download,
    list_keys,
    upload,
)

__all__ = [
    "InvalidPathError",
    "MAX_UPLOAD_PARTS",
    "MIN_PART_SIZE",
    "ObjectLocation",
    "ObjectStore",
    "ReadError",
    "RetryPolicy",
    "S3Session",
    "StorageConnectionError",
    "StorageError",
    "TransferError",
    "acquire_session",
    "calculate_part_size",
    "detect_content_type",
    "download",
    "list_keys",
    "resolve_path",
    "resolve_upload_path",
    "upload",
]
