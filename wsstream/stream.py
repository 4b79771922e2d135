"""A stream wrapper that may be plain or protected with TLS."""

from __future__ import annotations

import enum
import io
import socket
from typing import Any, Optional


class Mode(enum.Enum):
    """Stream mode: plain TCP (``ws://``) or TLS (``wss://``)."""

    PLAIN = "plain"
    TLS = "tls"


class MaybeTlsStream:
    """A byte stream, either plain or already wrapped in TLS.

    The wrapped object may be a socket (``recv``/``send``) or a file-like
    object (``read``/``write``).
    """

    def __init__(self, stream: Any, mode: Mode = Mode.PLAIN) -> None:
        self.stream = stream
        self.mode = Mode(mode)

    def read(self, size: int = -1) -> Optional[bytes]:
        """Read up to ``size`` bytes; an empty result means end of stream."""
        recv = getattr(self.stream, "recv", None)
        if recv is not None:
            return recv(size if size > 0 else io.DEFAULT_BUFFER_SIZE)
        return self.stream.read(size)

    def write(self, data: bytes) -> Optional[int]:
        """Write ``data``; returns the number of bytes written."""
        send = getattr(self.stream, "send", None)
        if send is not None:
            return send(data)
        return self.stream.write(data)

    def flush(self) -> None:
        """Flush the wrapped stream, if it buffers anything."""
        flush = getattr(self.stream, "flush", None)
        if flush is not None:
            flush()

    def set_nodelay(self, nodelay: bool) -> None:
        """Switch the TCP_NODELAY option of the wrapped stream."""
        delegate = getattr(self.stream, "set_nodelay", None)
        if delegate is not None:
            delegate(nodelay)
            return
        setsockopt = getattr(self.stream, "setsockopt", None)
        if setsockopt is None:
            raise io.UnsupportedOperation("stream has no TCP_NODELAY option")
        setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, int(bool(nodelay)))

    def __repr__(self) -> str:
        label = "Plain" if self.mode is Mode.PLAIN else "Tls"
        return f"MaybeTlsStream.{label}({self.stream!r})"


__all__ = ["MaybeTlsStream", "Mode"]