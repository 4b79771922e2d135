"""Reading and writing WebSocket frames over a byte stream."""

from __future__ import annotations

import sys
from typing import Any, Optional

from .errors import MessageTooLong, WriteBufferFull
from .frame import Frame, FrameHeader, parse_header

_READ_CHUNK = 4096


class FrameCodec:
    """Buffers incoming bytes into frames and outgoing frames into bytes."""

    def __init__(self, partial: bytes = b"") -> None:
        self._in_buffer = bytearray(partial)
        self._out_buffer = bytearray()
        self.max_out_buffer_len: int = sys.maxsize
        self.out_buffer_write_len: int = 0
        self._header: Optional[tuple[FrameHeader, int]] = None

    @property
    def in_buffer(self) -> bytes:
        """Received bytes not yet consumed by a frame."""
        return bytes(self._in_buffer)

    @property
    def out_buffer(self) -> bytes:
        """Encoded bytes waiting to be written."""
        return bytes(self._out_buffer)

    def read_frame(self, stream: Any, max_size: Optional[int] = None) -> Optional[Frame]:
        """Read one frame; return ``None`` if the stream ended first."""
        while True:
            if self._header is None:
                parsed = parse_header(self._in_buffer, 0)
                if parsed is not None:
                    header, length, end = parsed
                    del self._in_buffer[:end]
                    self._header = (header, length)

            if self._header is not None:
                header, length = self._header
                if max_size is not None and length > max_size:
                    raise MessageTooLong(length, max_size)
                if length <= len(self._in_buffer):
                    payload = bytes(self._in_buffer[:length])
                    del self._in_buffer[:length]
                    self._header = None
                    return Frame(header, payload)

            chunk = stream.read(_READ_CHUNK)
            if chunk is None:
                raise BlockingIOError("read would block")
            if not chunk:
                return None
            self._in_buffer += chunk

    def buffer_frame(self, stream: Any, frame: Frame) -> None:
        """Queue ``frame`` for writing, writing out once past the target length."""
        if len(frame) + len(self._out_buffer) > self.max_out_buffer_len:
            raise WriteBufferFull(frame)
        self._out_buffer += frame.format()
        if len(self._out_buffer) > self.out_buffer_write_len:
            self.write_out_buffer(stream)

    def write_out_buffer(self, stream: Any) -> None:
        """Write every queued byte to ``stream``; does not flush."""
        while self._out_buffer:
            written = stream.write(bytes(self._out_buffer))
            if written is None:
                raise BlockingIOError("write would block")
            if written == 0:
                raise ConnectionResetError("Connection reset while sending")
            del self._out_buffer[:written]


class FrameSocket:
    """A stream that reads and writes whole frames."""

    def __init__(self, stream: Any, partial: bytes = b"") -> None:
        self.stream = stream
        self.codec = FrameCodec(partial)

    def read(self, max_size: Optional[int] = None) -> Optional[Frame]:
        """Read a frame, or ``None`` when the stream has ended."""
        return self.codec.read_frame(self.stream, max_size)

    def write(self, frame: Frame) -> None:
        """Queue a frame; call ``flush`` to make sure it is written."""
        self.codec.buffer_frame(self.stream, frame)

    def flush(self) -> None:
        """Write all queued frames and flush the stream."""
        self.codec.write_out_buffer(self.stream)
        flush = getattr(self.stream, "flush", None)
        if flush is not None:
            flush()

    def send(self, frame: Frame) -> None:
        """Write and immediately flush a frame."""
        self.write(frame)
        self.flush()

    def into_inner(self) -> tuple[Any, bytes]:
        """Return the stream and the received bytes not yet consumed."""
        return self.stream, self.codec.in_buffer