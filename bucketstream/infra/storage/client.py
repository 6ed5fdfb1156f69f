"""Object store protocol, addressing and error types.

This module defines the capabilities the transfer operations need from an
object store session, and the error taxonomy shared by every operation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO, Iterator, Protocol


class TransferError(RuntimeError):
    """Base class for every error raised by the transfer layer."""


class InvalidPathError(TransferError, ValueError):
    """Raised when a logical path has no resolvable bucket segment."""


class StorageConnectionError(TransferError, ConnectionError):
    """Raised when a session cannot be established or fails its probe."""


class StorageError(TransferError):
    """Raised when a list/get/put operation fails after all attempts."""


class ReadError(TransferError, OSError):
    """Raised when the local source stream cannot be read."""


@dataclass(frozen=True, slots=True)
class ObjectLocation:
    """Bucket and key resolved from a logical path."""

    bucket: str
    key: str

    @property
    def uri(self) -> str:
        return f"s3://{self.bucket}/{self.key}"


class ObjectStore(Protocol):
    """Protocol for the session handle passed into transfer operations.

    Implementations must be safe to share between threads and must not be
    mutated after construction.
    """

    def probe(self, *, bucket: str) -> None:
        """Issue a zero-result listing to confirm reachability.

        Args:
            bucket: Bucket to list.

        Raises:
            Exception: Whatever the underlying transport raises.
        """
        ...

    def iter_keys(self, *, bucket: str, prefix: str) -> Iterator[str]:
        """Yield every key under ``prefix``, following pagination.

        Args:
            bucket: Bucket to list.
            prefix: Key prefix; an empty prefix lists the whole bucket.

        Returns:
            Iterator of full object keys in store order.
        """
        ...

    def download_fileobj(self, *, bucket: str, key: str, fileobj: BinaryIO) -> None:
        """Stream an object's bytes into ``fileobj``.

        Args:
            bucket: Source bucket name.
            key: Source object key.
            fileobj: Writable sink. Bytes arrive in offset order.
        """
        ...

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
        """Stream ``fileobj`` into a single object using multipart upload.

        Args:
            bucket: Target bucket name.
            key: Target object key.
            fileobj: Readable source.
            content_type: MIME type stored with the object.
            content_disposition: Content-Disposition stored with the object.
            part_size: Multipart chunk size in bytes.
        """
        ...
