"""Tests for the sink and source adapters."""

import io

import pytest

from bucketstream.infra.storage.client import ReadError
from bucketstream.infra.storage.streams import PeekableReader, SequentialWriter


class PipeSink:
    """Write-only sink without seek, like a pipe or socket."""

    def __init__(self) -> None:
        self.chunks: list[bytes] = []

    def write(self, data: bytes) -> None:
        self.chunks.append(bytes(data))


class PipeSource:
    """Read-only source without seek that returns short reads."""

    def __init__(self, data: bytes, step: int = 3) -> None:
        self._data = data
        self._pos = 0
        self._step = step

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            chunk = self._data[self._pos :]
            self._pos = len(self._data)
            return chunk
        size = min(size, self._step)
        chunk = self._data[self._pos : self._pos + size]
        self._pos += len(chunk)
        return chunk


class BrokenSource:
    def read(self, size: int = -1) -> bytes:
        raise OSError("device not ready")


class TestSequentialWriter:
    def test_hides_seek(self):
        writer = SequentialWriter(io.BytesIO())
        assert writer.writable()
        assert not writer.seekable()
        assert not writer.readable()

    def test_writes_in_order(self):
        sink = PipeSink()
        writer = SequentialWriter(sink)
        writer.write(b"abc")
        writer.write(b"def")
        assert b"".join(sink.chunks) == b"abcdef"
        assert writer.bytes_written == 6

    def test_reset_truncates_seekable_sink(self):
        sink = io.BytesIO()
        sink.write(b"prefix-")
        writer = SequentialWriter(sink)
        writer.write(b"partial")
        assert writer.reset()
        writer.write(b"full")
        assert sink.getvalue() == b"prefix-full"

    def test_reset_without_writes_is_always_possible(self):
        assert SequentialWriter(PipeSink()).reset()

    def test_reset_fails_for_pipe_after_writes(self):
        writer = SequentialWriter(PipeSink())
        writer.write(b"x")
        assert not writer.reset()


class TestPeekableReader:
    def test_peek_does_not_lose_bytes(self):
        reader = PeekableReader(PipeSource(b"hello world"))
        assert reader.peek(5) == b"hello"
        assert reader.peek(5) == b"hello"
        assert reader.read() == b"hello world"

    def test_chunked_reads_replay_head(self):
        reader = PeekableReader(PipeSource(b"0123456789"))
        reader.peek(4)
        out = []
        while chunk := reader.read(3):
            out.append(chunk)
        assert b"".join(out) == b"0123456789"

    def test_peek_short_stream(self):
        reader = PeekableReader(io.BytesIO(b"ab"))
        assert reader.peek(512) == b"ab"
        assert reader.read() == b"ab"

    def test_peek_failure_raises_read_error(self):
        reader = PeekableReader(BrokenSource())
        with pytest.raises(ReadError, match="device not ready"):
            reader.peek(512)

    def test_rewind_seekable_source(self):
        source = io.BytesIO(b"skip:payload")
        source.seek(5)
        reader = PeekableReader(source)
        reader.peek(3)
        assert reader.read() == b"payload"
        assert reader.rewind()
        assert reader.read() == b"payload"

    def test_rewind_pipe_before_consuming_past_head(self):
        reader = PeekableReader(PipeSource(b"abcdef"))
        reader.peek(4)
        assert reader.read(2) == b"ab"
        assert not reader.consumed
        assert reader.rewind()
        assert reader.read() == b"abcdef"

    def test_rewind_pipe_after_consuming_fails(self):
        reader = PeekableReader(PipeSource(b"abcdef"))
        reader.peek(2)
        reader.read()
        assert reader.consumed
        assert not reader.rewind()

    def test_readinto(self):
        reader = PeekableReader(io.BytesIO(b"abcdef"))
        reader.peek(2)
        buffer = bytearray(4)
        assert reader.readinto(buffer) == 4
        assert bytes(buffer) == b"abcd"

    def test_read_fills_past_head(self):
        data = bytes(range(256)) * 8
        reader = PeekableReader(PipeSource(data, step=100))
        reader.peek(512)
        assert reader.read(1000) == data[:1000]
        assert reader.read(1000) == data[1000:2000]
        assert reader.read(1000) == data[2000:]
        assert reader.read(1000) == b""

    def test_read_after_head_fills_short_source_reads(self):
        reader = PeekableReader(PipeSource(b"0123456789", step=3))
        reader.peek(2)
        assert reader.read(2) == b"01"
        assert reader.read(7) == b"2345678"
