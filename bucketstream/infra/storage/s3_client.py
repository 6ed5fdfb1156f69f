"""S3-compatible session implementation.

This module provides the concrete ``ObjectStore`` used in production. It
works with AWS S3, MinIO, and other S3-compatible object storage services.

Dependencies:
    - boto3
    - botocore
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, BinaryIO, Iterator

import boto3
from boto3.s3.transfer import TransferConfig
from botocore.config import Config

if TYPE_CHECKING:
    from bucketstream.common.config import Settings


class S3Session:
    """Authenticated, configured connection to an S3-compatible store.

    The session is built once from ``Settings`` and never mutated, so a
    single instance may be shared by concurrent transfers. Each transfer
    allocates its own transient SDK state.
    """

    # Ranged parts must reach the sink in order, see SequentialWriter.
    DOWNLOAD_CONFIG = TransferConfig(
        max_concurrency=1,
        use_threads=False,
        preferred_transfer_client="classic",
    )

    def __init__(self, *, settings: "Settings") -> None:
        """Initialize the boto3 client from settings.

        Args:
            settings: Connection configuration (region, endpoint, TLS,
                addressing style, optional static credentials).
        """
        self._settings = settings
        self._client = self._build_client(settings)

    @property
    def settings(self) -> "Settings":
        return self._settings

    @staticmethod
    def _build_client(settings: "Settings") -> Any:
        """Create a boto3 S3 client from settings."""
        addressing_style = "path" if settings.S3_FORCE_PATH_STYLE else "auto"
        config = Config(s3={"addressing_style": addressing_style})

        session = boto3.session.Session(
            aws_access_key_id=settings.S3_ACCESS_KEY_ID,
            aws_secret_access_key=settings.S3_SECRET_ACCESS_KEY,
            region_name=settings.S3_REGION,
        )
        return session.client(
            "s3",
            endpoint_url=settings.S3_ENDPOINT_URL,
            use_ssl=not settings.S3_NO_SSL,
            config=config,
        )

    def probe(self, *, bucket: str) -> None:
        """List zero keys to check credentials and reachability."""
        self._client.list_objects(Bucket=bucket, MaxKeys=0)

    def iter_keys(self, *, bucket: str, prefix: str) -> Iterator[str]:
        """Yield keys under ``prefix`` page by page."""
        paginator = self._client.get_paginator("list_objects")
        for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
            for obj in page.get("Contents", []):
                yield obj["Key"]

    def download_fileobj(self, *, bucket: str, key: str, fileobj: BinaryIO) -> None:
        """Stream an object into ``fileobj`` with a single worker."""
        self._client.download_fileobj(
            Bucket=bucket,
            Key=key,
            Fileobj=fileobj,
            Config=self.DOWNLOAD_CONFIG,
        )

    def upload_fileobj(
        self,
        *,
        bucket: str,
        key: str,
        fileobj: BinaryIO,
        content_type: str,
        content_disposition: str,
        part_size: int,
    ) -> None:
        """Stream ``fileobj`` into an object using multipart chunks."""
        config = TransferConfig(
            multipart_threshold=part_size,
            multipart_chunksize=part_size,
            preferred_transfer_client="classic",
        )
        self._client.upload_fileobj(
            Fileobj=fileobj,
            Bucket=bucket,
            Key=key,
            ExtraArgs={
                "ContentType": content_type,
                "ContentDisposition": content_disposition,
            },
            Config=config,
        )
