"""Exceptions raised by the WebSocket stream, and helpers for non-blocking IO."""

from __future__ import annotations

import errno
import enum
from typing import Any, Callable, TypeVar

T = TypeVar("T")

_WOULD_BLOCK_ERRNOS = frozenset({errno.EAGAIN, errno.EWOULDBLOCK})


class WebSocketError(Exception):
    """Base class of every error raised by this package."""


class ConnectionClosed(WebSocketError):
    """The close handshake is complete; the connection may be dropped."""

    def __init__(self, message: str = "Connection closed normally") -> None:
        super().__init__(message)


class AlreadyClosed(WebSocketError):
    """An operation was attempted on a connection that is already closed."""

    def __init__(self, message: str = "Trying to work with closed connection") -> None:
        super().__init__(message)


class ProtocolErrorKind(enum.Enum):
    """The ways in which a peer can violate the WebSocket protocol."""

    SEND_AFTER_CLOSING = "Sending after closing is not allowed"
    RECEIVED_AFTER_CLOSING = "Remote sent after having closed"
    NON_ZERO_RESERVED_BITS = "Reserved bits are non-zero"
    UNMASKED_FRAME_FROM_CLIENT = "Received an unmasked frame from client"
    MASKED_FRAME_FROM_SERVER = "Received a masked frame from server"
    FRAGMENTED_CONTROL_FRAME = "Fragmented control frame"
    CONTROL_FRAME_TOO_BIG = "Control frame too big (payload must be 125 bytes or less)"
    UNKNOWN_CONTROL_FRAME_TYPE = "Unknown control frame type"
    UNKNOWN_DATA_FRAME_TYPE = "Unknown data frame type"
    UNEXPECTED_CONTINUE_FRAME = "Continue frame but nothing to continue"
    EXPECTED_FRAGMENT = "While waiting for more fragments received"
    RESET_WITHOUT_CLOSING_HANDSHAKE = "Connection reset without closing handshake"
    INVALID_OPCODE = "Encountered invalid opcode"
    INVALID_CLOSE_SEQUENCE = "Invalid close sequence"


class ProtocolError(WebSocketError):
    """The peer broke the protocol; ``kind`` tells how, ``detail`` adds context."""

    def __init__(self, kind: ProtocolErrorKind, detail: Any = None) -> None:
        self.kind = kind
        self.detail = detail
        text = kind.value if detail is None else f"{kind.value}: {detail}"
        super().__init__(text)


class MessageTooLong(WebSocketError):
    """A message or frame exceeds the configured size limit."""

    def __init__(self, size: int, max_size: int) -> None:
        self.size = size
        self.max_size = max_size
        super().__init__(f"Message too long: {size} > {max_size}")


class WriteBufferFull(WebSocketError):
    """The write buffer cannot take the message; the message is handed back."""

    def __init__(self, message: Any) -> None:
        self.message = message
        super().__init__("Write buffer is full")


class Utf8Error(WebSocketError):
    """Text data is not valid UTF-8."""

    def __init__(self, message: str = "UTF-8 encoding error") -> None:
        super().__init__(message)


def is_would_block(error: BaseException) -> bool:
    """Tell whether ``error`` means that a non-blocking operation would block."""
    if isinstance(error, BlockingIOError):
        return True
    return isinstance(error, OSError) and error.errno in _WOULD_BLOCK_ERRNOS


def no_block(call: Callable[..., T], *args: Any, **kwargs: Any) -> T | None:
    """Run ``call``; return ``None`` instead of raising when it would block."""
    try:
        return call(*args, **kwargs)
    except OSError as exc:
        if is_would_block(exc):
            return None
        raise