"""The WebSocket protocol state machine that turns frames into messages."""

from __future__ import annotations

import dataclasses
import enum
import logging
import sys
from dataclasses import dataclass
from typing import Any, Optional, Union

from .codec import FrameCodec
from .coding import CloseCode, Control, Data, OpCode
from .errors import (
    AlreadyClosed,
    ConnectionClosed,
    ProtocolError,
    ProtocolErrorKind,
    WriteBufferFull,
    no_block,
)
from .frame import CloseFrame, Frame, close_frame, data_frame, ping_frame, pong_frame
from .message import (
    BinaryMessage,
    CloseMessage,
    FrameMessage,
    IncompleteMessage,
    IncompleteMessageType,
    Message,
    PingMessage,
    PongMessage,
    TextMessage,
    message_from,
)

logger = logging.getLogger(__name__)

_MAX_CONTROL_PAYLOAD = 125


class Role(enum.Enum):
    """Which end of the connection this socket is."""

    SERVER = "server"
    CLIENT = "client"


@dataclass(frozen=True)
class WebSocketConfig:
    """Limits and options of a WebSocket connection.

    ``write_buffer_size`` is the amount of buffered output to reach before
    writing to the stream; ``max_write_buffer_size`` caps the output buffer.
    ``max_message_size`` and ``max_frame_size`` limit incoming data; ``None``
    means no limit. ``accept_unmasked_frames`` lets a server accept unmasked
    frames from clients, against RFC 6455.
    """

    write_buffer_size: int = 128 * 1024
    max_write_buffer_size: int = sys.maxsize
    max_message_size: Optional[int] = 64 << 20
    max_frame_size: Optional[int] = 16 << 20
    accept_unmasked_frames: bool = False


class _State(enum.Enum):
    ACTIVE = "active"
    CLOSED_BY_US = "closed by us"
    CLOSED_BY_PEER = "closed by peer"
    CLOSE_ACKNOWLEDGED = "close acknowledged"
    TERMINATED = "terminated"

    @property
    def is_active(self) -> bool:
        return self is _State.ACTIVE

    @property
    def can_read(self) -> bool:
        return self in (_State.ACTIVE, _State.CLOSED_BY_US)

    def check_not_terminated(self) -> None:
        if self is _State.TERMINATED:
            raise AlreadyClosed()


_PONG = OpCode(Control.PONG)


class WebSocketContext:
    """Protocol state of one WebSocket connection, independent of its stream."""

    def __init__(
        self,
        role: Role,
        config: Optional[WebSocketConfig] = None,
        partial: bytes = b"",
    ) -> None:
        self.role = Role(role)
        self._config = config if config is not None else WebSocketConfig()
        self._codec = FrameCodec(partial)
        self._state = _State.ACTIVE
        self._incomplete: Optional[IncompleteMessage] = None
        self._additional_send: Optional[Frame] = None
        self._apply_limits()

    def _apply_limits(self) -> None:
        self._codec.max_out_buffer_len = self._config.max_write_buffer_size
        self._codec.out_buffer_write_len = self._config.write_buffer_size

    @property
    def config(self) -> WebSocketConfig:
        """The current configuration."""
        return self._config

    def set_config(self, **kwargs: Any) -> None:
        """Change configuration fields given by name."""
        self._config = dataclasses.replace(self._config, **kwargs)
        self._apply_limits()

    def can_read(self) -> bool:
        """Tell whether messages may still be read."""
        return self._state.can_read

    def can_write(self) -> bool:
        """Tell whether messages may still be written."""
        return self._state.is_active

    def read(self, stream: Any) -> Message:
        """Read one message, sending queued pong and close replies on the way."""
        self._state.check_not_terminated()
        while True:
            if self._additional_send is not None:
                no_block(self.flush, stream)
            elif self.role is Role.SERVER and not self._state.can_read:
                self._state = _State.TERMINATED
                raise ConnectionClosed()

            message = self._read_message_frame(stream)
            if message is not None:
                logger.debug("Received message %s", message)
                return message

    def write(self, stream: Any, message: Union[Message, str, bytes]) -> None:
        """Queue a message for sending; call ``flush`` to make sure it is sent."""
        self._state.check_not_terminated()
        if not self._state.is_active:
            raise ProtocolError(ProtocolErrorKind.SEND_AFTER_CLOSING)

        message = message_from(message)
        if isinstance(message, TextMessage):
            frame = data_frame(message.text.encode("utf-8"), OpCode(Data.TEXT), True)
        elif isinstance(message, BinaryMessage):
            frame = data_frame(message.data, OpCode(Data.BINARY), True)
        elif isinstance(message, PingMessage):
            frame = ping_frame(message.data)
        elif isinstance(message, PongMessage):
            self._set_additional(pong_frame(message.data))
            self._write(stream, None)
            return
        elif isinstance(message, CloseMessage):
            self.close(stream, message.close)
            return
        elif isinstance(message, FrameMessage):
            frame = dataclasses.replace(
                message.frame, header=dataclasses.replace(message.frame.header)
            )
        else:
            raise TypeError(f"cannot send {type(message).__name__}")

        if self._write(stream, frame):
            self.flush(stream)

    def flush(self, stream: Any) -> None:
        """Write every queued frame, including automatic replies, and flush."""
        self._write(stream, None)
        self._codec.write_out_buffer(stream)
        flush = getattr(stream, "flush", None)
        if flush is not None:
            flush()

    def close(self, stream: Any, close: Optional[CloseFrame] = None) -> None:
        """Start the close handshake; the close frame is always queued."""
        if self._state.is_active:
            self._state = _State.CLOSED_BY_US
            self._write(stream, close_frame(close))
        self.flush(stream)

    def _write(self, stream: Any, frame: Optional[Frame]) -> bool:
        """Buffer ``frame`` and any automatic reply; tell whether to flush now."""
        if frame is not None:
            self._buffer_frame(stream, frame)

        should_flush = False
        additional = self._additional_send
        if additional is not None:
            self._additional_send = None
            logger.debug("Sending pong/close")
            try:
                self._buffer_frame(stream, additional)
            except WriteBufferFull as exc:
                self._set_additional(exc.message)
            else:
                should_flush = True

        if self.role is Role.SERVER and not self._state.can_read:
            # The server closes the TCP connection first (RFC 6455).
            self._codec.write_out_buffer(stream)
            self._state = _State.TERMINATED
            raise ConnectionClosed()
        return should_flush

    def _buffer_frame(self, stream: Any, frame: Frame) -> None:
        if self.role is Role.CLIENT:
            frame.set_random_mask()
        try:
            self._codec.buffer_frame(stream, frame)
        except ConnectionResetError as exc:
            if not self._state.can_read:
                raise ConnectionClosed() from exc
            raise

    def _set_additional(self, frame: Frame) -> None:
        current = self._additional_send
        if current is None or current.header.opcode == _PONG:
            self._additional_send = frame

    def _read_message_frame(self, stream: Any) -> Optional[Message]:
        try:
            frame = self._codec.read_frame(stream, self._config.max_frame_size)
        except ConnectionResetError as exc:
            if not self._state.can_read:
                raise ConnectionClosed() from exc
            raise

        if frame is None:
            previous, self._state = self._state, _State.TERMINATED
            if previous in (_State.CLOSED_BY_PEER, _State.CLOSE_ACKNOWLEDGED):
                raise ConnectionClosed()
            raise ProtocolError(ProtocolErrorKind.RESET_WITHOUT_CLOSING_HANDSHAKE)

        if not self._state.can_read:
            raise ProtocolError(ProtocolErrorKind.RECEIVED_AFTER_CLOSING)

        header = frame.header
        if header.rsv1 or header.rsv2 or header.rsv3:
            raise ProtocolError(ProtocolErrorKind.NON_ZERO_RESERVED_BITS)

        if self.role is Role.SERVER:
            if frame.is_masked():
                frame.apply_mask()
            elif not self._config.accept_unmasked_frames:
                raise ProtocolError(ProtocolErrorKind.UNMASKED_FRAME_FROM_CLIENT)
        elif frame.is_masked():
            raise ProtocolError(ProtocolErrorKind.MASKED_FRAME_FROM_SERVER)

        code = header.opcode.code
        if isinstance(code, Control):
            return self._handle_control(code, frame)
        return self._handle_data(code, frame)

    def _handle_control(self, code: Control, frame: Frame) -> Optional[Message]:
        if not frame.header.is_final:
            raise ProtocolError(ProtocolErrorKind.FRAGMENTED_CONTROL_FRAME)
        if len(frame.payload) > _MAX_CONTROL_PAYLOAD:
            raise ProtocolError(ProtocolErrorKind.CONTROL_FRAME_TOO_BIG)
        if code is Control.CLOSE:
            deliver, close = self._do_close(frame.to_close())
            return CloseMessage(close) if deliver else None
        if code is Control.PING:
            data = bytes(frame.payload)
            if self._state.is_active:
                self._set_additional(pong_frame(data))
            return PingMessage(data)
        if code is Control.PONG:
            return PongMessage(bytes(frame.payload))
        raise ProtocolError(ProtocolErrorKind.UNKNOWN_CONTROL_FRAME_TYPE, int(code))

    def _handle_data(self, code: Data, frame: Frame) -> Optional[Message]:
        fin = frame.header.is_final
        limit = self._config.max_message_size

        if code is Data.CONTINUE:
            if self._incomplete is None:
                raise ProtocolError(ProtocolErrorKind.UNEXPECTED_CONTINUE_FRAME)
            self._incomplete.extend(frame.payload, limit)
            if not fin:
                return None
            incomplete, self._incomplete = self._incomplete, None
            return incomplete.complete()

        if self._incomplete is not None:
            raise ProtocolError(ProtocolErrorKind.EXPECTED_FRAGMENT, str(code))

        if code in (Data.TEXT, Data.BINARY):
            kind = (
                IncompleteMessageType.TEXT
                if code is Data.TEXT
                else IncompleteMessageType.BINARY
            )
            message = IncompleteMessage(kind)
            message.extend(frame.payload, limit)
            if fin:
                return message.complete()
            self._incomplete = message
            return None

        raise ProtocolError(ProtocolErrorKind.UNKNOWN_DATA_FRAME_TYPE, int(code))

    def _do_close(
        self, close: Optional[CloseFrame]
    ) -> tuple[bool, Optional[CloseFrame]]:
        """Handle a received close frame; tell whether to hand it to the user."""
        logger.debug("Received close frame: %r", close)
        state = self._state
        if state is _State.ACTIVE:
            self._state = _State.CLOSED_BY_PEER
            if close is not None and not close.code.is_allowed():
                close = CloseFrame(CloseCode.PROTOCOL, "Protocol violation")
            reply = close_frame(close)
            logger.debug("Replying to close with %r", reply)
            self._set_additional(reply)
            return True, close
        if state in (_State.CLOSED_BY_PEER, _State.CLOSE_ACKNOWLEDGED):
            return False, None
        if state is _State.CLOSED_BY_US:
            self._state = _State.CLOSE_ACKNOWLEDGED
            return True, close
        raise RuntimeError("close frame received on a terminated connection")


__all__ = ["Role", "WebSocketConfig", "WebSocketContext"]