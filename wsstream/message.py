"""WebSocket messages, and assembly of fragmented messages."""

from __future__ import annotations

import codecs
import enum
from dataclasses import dataclass
from typing import Optional, Union

from .errors import MessageTooLong, Utf8Error
from .frame import CloseFrame, Frame

BytesLike = Union[bytes, bytearray, memoryview]


class Message:
    """Base class of every WebSocket message."""

    __slots__ = ()

    def to_data(self) -> bytes:
        """Return the message content as bytes."""
        raise TypeError(f"{type(self).__name__} carries no data")

    def __len__(self) -> int:
        """Length of the message content in bytes."""
        return len(self.to_data())

    def to_text(self) -> str:
        """Return the message content as text, decoding bytes as UTF-8."""
        try:
            return self.to_data().decode("utf-8")
        except UnicodeDecodeError as exc:
            raise Utf8Error() from exc

    def __str__(self) -> str:
        try:
            return self.to_text()
        except Utf8Error:
            return f"Binary Data<length={len(self)}>"


def _as_bytes(data: BytesLike) -> bytes:
    if isinstance(data, str):
        raise TypeError("binary payload must be bytes-like, not str")
    return bytes(data)


@dataclass(frozen=True)
class TextMessage(Message):
    """A text message."""

    text: str = ""

    def to_data(self) -> bytes:
        return self.text.encode("utf-8")

    def to_text(self) -> str:
        return self.text


@dataclass(frozen=True)
class BinaryMessage(Message):
    """A binary message."""

    data: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", _as_bytes(self.data))

    def to_data(self) -> bytes:
        return self.data


@dataclass(frozen=True)
class PingMessage(Message):
    """A ping; the payload should be no longer than 125 bytes."""

    data: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", _as_bytes(self.data))

    def to_data(self) -> bytes:
        return self.data


@dataclass(frozen=True)
class PongMessage(Message):
    """A pong; the payload should be no longer than 125 bytes."""

    data: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", _as_bytes(self.data))

    def to_data(self) -> bytes:
        return self.data


@dataclass(frozen=True)
class CloseMessage(Message):
    """A close message with an optional close frame."""

    close: Optional[CloseFrame] = None

    def to_data(self) -> bytes:
        return b"" if self.close is None else self.close.reason.encode("utf-8")

    def to_text(self) -> str:
        return "" if self.close is None else self.close.reason


@dataclass(frozen=True)
class FrameMessage(Message):
    """A raw frame; never produced when reading messages."""

    frame: Frame

    def __len__(self) -> int:
        return len(self.frame)

    def to_data(self) -> bytes:
        return bytes(self.frame.payload)

    def to_text(self) -> str:
        return self.frame.to_text()


def message_from(value: Union[Message, str, BytesLike]) -> Message:
    """Build a message: text from ``str``, binary from bytes-like values."""
    if isinstance(value, Message):
        return value
    if isinstance(value, str):
        return TextMessage(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return BinaryMessage(bytes(value))
    raise TypeError(f"cannot build a message from {type(value).__name__}")


class IncompleteMessageType(enum.Enum):
    """The kind of a message being assembled from fragments."""

    TEXT = "text"
    BINARY = "binary"


class IncompleteMessage:
    """A message whose fragments are still arriving."""

    def __init__(self, message_type: IncompleteMessageType) -> None:
        self.message_type = IncompleteMessageType(message_type)
        self._size = 0
        self._binary = bytearray()
        self._text_parts: list[str] = []
        self._decoder = codecs.getincrementaldecoder("utf-8")()

    def __len__(self) -> int:
        """Number of payload bytes collected so far."""
        return self._size

    def extend(self, data: BytesLike, size_limit: Optional[int] = None) -> None:
        """Append a fragment, enforcing ``size_limit`` on the total size."""
        chunk = bytes(data)
        portion = len(chunk)
        if size_limit is not None and (
            self._size > size_limit or portion > size_limit - self._size
        ):
            raise MessageTooLong(self._size + portion, size_limit)

        if self.message_type is IncompleteMessageType.BINARY:
            self._binary += chunk
        else:
            try:
                text = self._decoder.decode(chunk, final=False)
            except UnicodeDecodeError as exc:
                raise Utf8Error() from exc
            if text:
                self._text_parts.append(text)
        self._size += portion

    def complete(self) -> Message:
        """Turn the collected fragments into a finished message."""
        if self.message_type is IncompleteMessageType.BINARY:
            return BinaryMessage(bytes(self._binary))
        try:
            tail = self._decoder.decode(b"", final=True)
        except UnicodeDecodeError as exc:
            raise Utf8Error() from exc
        return TextMessage("".join(self._text_parts) + tail)


__all__ = [
    "BinaryMessage",
    "CloseMessage",
    "FrameMessage",
    "IncompleteMessage",
    "IncompleteMessageType",
    "Message",
    "PingMessage",
    "PongMessage",
    "TextMessage",
    "message_from",
]