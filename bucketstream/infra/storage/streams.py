"""Reader and writer adapters between caller streams and the S3 SDK."""

from __future__ import annotations

import io
import logging
from typing import BinaryIO

from bucketstream.infra.storage.client import ReadError

logger = logging.getLogger(__name__)


def _tell(stream: object) -> int | None:
    """Return the stream position, or None when it cannot be repositioned."""
    try:
        if hasattr(stream, "seekable") and not stream.seekable():  # type: ignore[attr-defined]
            return None
        return stream.tell()  # type: ignore[attr-defined]
    except (AttributeError, OSError, ValueError):
        return None


class SequentialWriter(io.RawIOBase):
    """Write-only view of a sink that hides any positional capability.

    The SDK downloads into seekable targets by seeking to each part's offset,
    which breaks sinks such as pipes and sockets. Presenting the sink as
    non-seekable makes the SDK write every byte in offset order through plain
    ``write`` calls. Combined with a concurrency of one this guarantees the
    sink sees one sequential, non-overlapping stream.
    """

    def __init__(self, sink: BinaryIO) -> None:
        super().__init__()
        self._sink = sink
        self._start = _tell(sink)
        self.bytes_written = 0

    def writable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def readable(self) -> bool:
        return False

    def write(self, data) -> int:  # type: ignore[override]
        written = self._sink.write(data)
        # Some sinks return None from write().
        count = len(data) if written is None else written
        self.bytes_written += count
        return count

    def flush(self) -> None:
        # The caller owns the sink and may already have closed it.
        if getattr(self._sink, "closed", False):
            return
        flush = getattr(self._sink, "flush", None)
        if flush is not None:
            flush()

    def reset(self) -> bool:
        """Discard everything written so far, if the sink allows it.

        Returns:
            True when the sink is back at its starting state and a new
            attempt may write from the beginning.
        """
        if self.bytes_written == 0:
            return True
        if self._start is None or not hasattr(self._sink, "truncate"):
            return False
        try:
            self._sink.seek(self._start)
            self._sink.truncate(self._start)
        except (OSError, ValueError) as exc:
            logger.debug("Cannot rewind download sink: %s", exc)
            return False
        self.bytes_written = 0
        return True


class PeekableReader(io.RawIOBase):
    """Source wrapper whose leading bytes can be inspected without loss.

    ``peek`` reads the head of the stream once and keeps it; subsequent
    ``read`` calls replay that head before continuing with the rest of the
    underlying stream, so the full content still reaches the store.
    """

    def __init__(self, source: BinaryIO) -> None:
        super().__init__()
        self._source = source
        self._start = _tell(source)
        self._head = b""
        self._head_pos = 0
        self._peeked = False
        self.consumed = False

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    @property
    def rewindable(self) -> bool:
        return self._start is not None

    def peek(self, size: int) -> bytes:
        """Return up to ``size`` leading bytes without consuming them.

        Raises:
            ReadError: If the underlying read fails.
        """
        if not self._peeked:
            chunks: list[bytes] = []
            remaining = size
            while remaining > 0:
                chunk = self._read_source(remaining, head=True)
                if not chunk:
                    break
                chunks.append(chunk)
                remaining -= len(chunk)
            self._head = b"".join(chunks)
            self._peeked = True
        return self._head[:size]

    def read(self, size: int = -1) -> bytes:
        """Read ``size`` bytes, short only at end of stream.

        The SDK treats a short read as end of input and would fall back to a
        single in-memory PUT, so chunks are filled across the head boundary
        and across short reads of the source.
        """
        if size is None or size < 0:
            data = self._head[self._head_pos :] + self._read_source(-1)
            self._head_pos = len(self._head)
            return data

        chunks: list[bytes] = []
        if self._head_pos < len(self._head):
            chunk = self._head[self._head_pos : self._head_pos + size]
            self._head_pos += len(chunk)
            chunks.append(chunk)
            size -= len(chunk)
        while size > 0:
            chunk = self._read_source(size)
            if not chunk:
                break
            chunks.append(chunk)
            size -= len(chunk)
        return b"".join(chunks)

    def readinto(self, buffer) -> int:  # type: ignore[override]
        data = self.read(len(buffer))
        buffer[: len(data)] = data
        return len(data)

    def rewind(self) -> bool:
        """Reposition at the start so the stream can be uploaded again.

        Returns:
            True on success. A source that cannot seek can still be replayed
            while only its peeked head has been read.
        """
        if self._start is not None:
            try:
                self._source.seek(self._start)
            except (OSError, ValueError) as exc:
                logger.debug("Cannot rewind upload source: %s", exc)
                return False
            self._head = b""
            self._head_pos = 0
            self._peeked = False
            self.consumed = False
            return True
        if not self.consumed:
            self._head_pos = 0
            return True
        return False

    def _read_source(self, size: int, *, head: bool = False) -> bytes:
        try:
            data = self._source.read(size)
        except OSError as exc:
            raise ReadError(f"Failed to read source stream: {exc}") from exc
        if data is None:
            # Non-blocking source with nothing available yet.
            return b""
        if data and not head:
            self.consumed = True
        return data
