"""A WebSocket connection over a byte stream."""

from __future__ import annotations

from typing import Any, Iterator, Optional, Union

from .errors import ConnectionClosed
from .frame import CloseFrame
from .message import Message
from .protocol import Role, WebSocketConfig, WebSocketContext

MessageLike = Union[Message, str, bytes, bytearray, memoryview]


class WebSocket:
    """Reads and writes WebSocket messages over an already upgraded stream.

    The stream must offer ``read(size)`` and ``write(data)``; ``flush()`` is
    used when present. No handshake is performed here.
    """

    def __init__(
        self,
        stream: Any,
        role: Role,
        config: Optional[WebSocketConfig] = None,
        partial: bytes = b"",
    ) -> None:
        self.stream = stream
        self._context = WebSocketContext(role, config, partial)

    @property
    def role(self) -> Role:
        """Whether this end is the client or the server."""
        return self._context.role

    @property
    def config(self) -> WebSocketConfig:
        """The current configuration."""
        return self._context.config

    def set_config(self, **kwargs: Any) -> None:
        """Change configuration fields given by name."""
        self._context.set_config(**kwargs)

    def can_read(self) -> bool:
        """Tell whether messages may still be read.

        Reading stops after a close message is received; it remains possible
        after sending one, since the peer may still send data before replying.
        """
        return self._context.can_read()

    def can_write(self) -> bool:
        """Tell whether messages may still be written."""
        return self._context.can_write()

    def read(self) -> Message:
        """Read one message, sending queued pong and close replies on the way.

        Keep calling ``read`` or ``flush`` after a close message until
        ``ConnectionClosed`` is raised; the stream may then be dropped.
        """
        return self._context.read(self.stream)

    def send(self, message: MessageLike) -> None:
        """Write a message and flush it at once."""
        self.write(message)
        self.flush()

    def write(self, message: MessageLike) -> None:
        """Queue a message; call ``flush`` to make sure it is sent."""
        self._context.write(self.stream, message)

    def flush(self) -> None:
        """Write every queued message and automatic reply, then flush."""
        self._context.flush(self.stream)

    def close(self, close: Optional[CloseFrame] = None) -> None:
        """Start the close handshake; the close frame is always queued."""
        self._context.close(self.stream, close)

    def __iter__(self) -> Iterator[Message]:
        """Yield incoming messages until the connection closes normally."""
        while True:
            try:
                message = self.read()
            except ConnectionClosed:
                return
            yield message


__all__ = ["WebSocket"]