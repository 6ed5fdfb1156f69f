"""Listing, download and upload of single objects with bounded retry.

Every operation takes an ``ObjectStore`` session obtained from
``acquire_session`` and a logical ``<bucket>[/<key>]`` path. Store failures
are retried with increasing backoff and surface as ``StorageError`` once the
attempts are exhausted; path errors fail immediately.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from typing import BinaryIO

from bucketstream.infra.storage.client import InvalidPathError, ObjectStore
from bucketstream.infra.storage.paths import resolve_path, resolve_upload_path
from bucketstream.infra.storage.retry import RetryPolicy, call_with_retry
from bucketstream.infra.storage.sniff import SNIFF_LEN, detect_content_type
from bucketstream.infra.storage.streams import PeekableReader, SequentialWriter

logger = logging.getLogger(__name__)

# S3 rejects non-final parts smaller than this.
MIN_PART_SIZE = 5 * 1024 * 1024
# Maximum part number allowed by S3
MAX_UPLOAD_PARTS = 10000

CONTENT_DISPOSITION = "attachment"


def calculate_part_size(file_size: int, max_parts: int = MAX_UPLOAD_PARTS) -> int:
    """Return a chunk size that keeps ``file_size`` within ``max_parts`` parts.

    The result is never below ``MIN_PART_SIZE``.
    """
    if max_parts < 1:
        raise ValueError("max_parts must be at least 1")
    return max(math.ceil(max(file_size, 0) / max_parts), MIN_PART_SIZE)


def _stream_size(stream: BinaryIO) -> int | None:
    """Return the bytes left in ``stream``, or None if it cannot seek."""
    try:
        if hasattr(stream, "seekable") and not stream.seekable():
            return None
        pos = stream.tell()
        stream.seek(0, 2)  # Seek to end
        size = stream.tell()
        stream.seek(pos)  # Restore position
    except (AttributeError, OSError, ValueError):
        return None
    return size - pos


def _resolve_part_size(
    part_size: int | None, max_parts: int, size: int | None
) -> int:
    required = calculate_part_size(size or 0, max_parts)
    if part_size is None:
        return required
    if part_size < required:
        logger.debug(
            "Raising part size from %d to %d bytes to stay within %d parts",
            part_size,
            required,
            max_parts,
        )
    return max(part_size, required)


def list_keys(
    session: ObjectStore,
    path: str,
    *,
    policy: RetryPolicy | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> list[str]:
    """List every key under ``path`` relative to it, recursively.

    Keys keep the store's order. A failed page restarts the listing from the
    first page on the next attempt.

    Raises:
        InvalidPathError: If ``path`` has no bucket segment.
        StorageError: If every attempt failed.
    """
    location = resolve_path(path)
    prefix = location.key

    def list_once(attempt: int) -> list[str]:
        return [
            key[len(prefix) :] if key.startswith(prefix) else key
            for key in session.iter_keys(bucket=location.bucket, prefix=prefix)
        ]

    return call_with_retry(
        list_once,
        description=f"list files in {location.uri}",
        policy=policy,
        sleep=sleep,
    )


def download(
    session: ObjectStore,
    path: str,
    sink: BinaryIO,
    *,
    verbose: bool = False,
    policy: RetryPolicy | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Stream the object at ``path`` into ``sink``.

    Bytes reach the sink sequentially in offset order. A failed attempt is
    retried only if the sink can be rewound to where it started, or if it
    has not received any bytes yet.

    Raises:
        InvalidPathError: If ``path`` does not name an object.
        StorageError: If every attempt failed.
    """
    location = resolve_path(path)
    if not location.key:
        raise InvalidPathError(f"illegal path: {path!r} does not name an object")

    writer = SequentialWriter(sink)

    def download_once(attempt: int) -> None:
        session.download_fileobj(
            bucket=location.bucket, key=location.key, fileobj=writer
        )
        writer.flush()

    call_with_retry(
        download_once,
        description=f"download file from {location.uri}",
        policy=policy,
        verbose=verbose,
        sleep=sleep,
        can_retry=writer.reset,
    )


def upload(
    session: ObjectStore,
    to_path: str,
    from_path: str,
    source: BinaryIO,
    *,
    part_size: int | None = None,
    max_upload_parts: int = MAX_UPLOAD_PARTS,
    size_hint: int | None = None,
    verbose: bool = False,
    policy: RetryPolicy | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Stream ``source`` into a single object at ``to_path``.

    Args:
        session: Store session.
        to_path: Destination ``<bucket>[/<key>]``. A bare bucket uses the
            base name of ``from_path`` as the key.
        from_path: Name of the local source, used for the default key.
        source: Readable stream, uploaded from its current position.
        part_size: Explicit multipart chunk size. Raised when needed to
            respect ``max_upload_parts``; derived from the size when None.
        max_upload_parts: Part count ceiling.
        size_hint: Source length when the stream cannot report it.
        verbose: Log attempt notices at INFO.
        policy: Attempt ceiling and backoff.
        sleep: Blocking sleep between attempts.

    Raises:
        InvalidPathError: If no bucket or key can be resolved.
        ReadError: If the source cannot be read.
        StorageError: If every attempt failed.
    """
    location = resolve_upload_path(to_path, from_path)
    size = size_hint if size_hint is not None else _stream_size(source)
    chunk_size = _resolve_part_size(part_size, max_upload_parts, size)
    reader = PeekableReader(source)

    def upload_once(attempt: int) -> None:
        content_type = detect_content_type(reader.peek(SNIFF_LEN))
        logger.debug(
            "Uploading with content type %s and part size %d",
            content_type,
            chunk_size,
        )
        session.upload_fileobj(
            bucket=location.bucket,
            key=location.key,
            fileobj=reader,
            content_type=content_type,
            content_disposition=CONTENT_DISPOSITION,
            part_size=chunk_size,
        )

    call_with_retry(
        upload_once,
        description=f"upload file to {location.uri}",
        policy=policy,
        verbose=verbose,
        sleep=sleep,
        can_retry=reader.rewind,
    )
