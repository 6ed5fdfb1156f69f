from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from bucketstream.infra.storage.client import StorageConnectionError
from bucketstream.infra.storage.paths import resolve_path
from bucketstream.infra.storage.retry import RetryPolicy, call_with_retry
from bucketstream.infra.storage.s3_client import S3Session

if TYPE_CHECKING:
    from bucketstream.common.config import Settings

logger = logging.getLogger(__name__)


def acquire_session(
    settings: "Settings",
    path: str,
    *,
    verbose: bool = False,
    sleep: Callable[[float], None] = time.sleep,
) -> S3Session:
    """Build a session and confirm it can list the bucket named by ``path``.

    Session construction and the health probe are retried together, so a
    failed construction is rebuilt on the next attempt rather than probed.

    Args:
        settings: Connection configuration, built once by the caller.
        path: Logical path whose bucket is probed.
        verbose: Log attempt notices at INFO.
        sleep: Blocking sleep between attempts.

    Returns:
        A probed session, safe to share across transfers.

    Raises:
        InvalidPathError: If ``path`` has no bucket segment.
        StorageConnectionError: If every attempt failed.
    """
    location = resolve_path(path)

    def connect(attempt: int) -> S3Session:
        session = S3Session(settings=settings)
        session.probe(bucket=location.bucket)
        return session

    session = call_with_retry(
        connect,
        description=f"connect to s3://{location.bucket}",
        policy=RetryPolicy.from_settings(settings),
        verbose=verbose,
        sleep=sleep,
        error_cls=StorageConnectionError,
    )
    logger.debug(
        "Connected to S3",
        extra={"extra": {"bucket": location.bucket, "region": settings.S3_REGION}},
    )
    return session
