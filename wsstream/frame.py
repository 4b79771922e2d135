"""WebSocket frames, frame headers and close frames."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Optional

from .coding import CloseCode, Control, Data, OpCode, opcode_from_byte, opcode_to_byte
from .errors import ProtocolError, ProtocolErrorKind, Utf8Error
from .mask import apply_mask as _apply_mask
from .mask import generate_mask


@dataclass
class CloseFrame:
    """The payload of a close frame: a code and a reason."""

    code: CloseCode
    reason: str = ""

    def __str__(self) -> str:
        return f"{self.reason} ({self.code})"


def _extra_length_bytes(length: int) -> int:
    if length < 126:
        return 0
    if length < 65536:
        return 2
    return 8


def _extra_bytes_for_length_byte(length_byte: int) -> int:
    length_byte &= 0x7F
    if length_byte == 126:
        return 2
    if length_byte == 127:
        return 8
    return 0


def _default_opcode() -> OpCode:
    return OpCode(Control.CLOSE)


@dataclass
class FrameHeader:
    """The header of a WebSocket frame."""

    is_final: bool = True
    rsv1: bool = False
    rsv2: bool = False
    rsv3: bool = False
    opcode: OpCode = field(default_factory=_default_opcode)
    mask: Optional[bytes] = None

    def encoded_len(self, length: int) -> int:
        """Size of this header when encoded for a payload of ``length`` bytes."""
        return 2 + _extra_length_bytes(length) + (4 if self.mask is not None else 0)

    def format(self, length: int) -> bytes:
        """Encode this header for a payload of ``length`` bytes."""
        first = opcode_to_byte(self.opcode)
        if self.is_final:
            first |= 0x80
        if self.rsv1:
            first |= 0x40
        if self.rsv2:
            first |= 0x20
        if self.rsv3:
            first |= 0x10

        extra = _extra_length_bytes(length)
        if extra == 0:
            second = length
        elif extra == 2:
            second = 126
        else:
            second = 127
        if self.mask is not None:
            second |= 0x80

        out = bytearray((first, second))
        if extra == 2:
            out += struct.pack("!H", length)
        elif extra == 8:
            out += struct.pack("!Q", length)
        if self.mask is not None:
            out += self.mask
        return bytes(out)

    def set_random_mask(self) -> None:
        """Store a freshly generated mask; the payload is not touched."""
        self.mask = generate_mask()


def parse_header(
    buffer: bytes, offset: int = 0
) -> Optional[tuple[FrameHeader, int, int]]:
    """Parse a frame header from ``buffer`` starting at ``offset``.

    Returns ``None`` when there is not enough data, otherwise a tuple of the
    header, the payload length and the offset just past the header.
    """
    view = memoryview(buffer)
    pos = offset
    if len(view) - pos < 2:
        return None
    first, second = view[pos], view[pos + 1]
    pos += 2

    is_final = bool(first & 0x80)
    rsv1 = bool(first & 0x40)
    rsv2 = bool(first & 0x20)
    rsv3 = bool(first & 0x10)
    opcode = opcode_from_byte(first & 0x0F)
    masked = bool(second & 0x80)

    length_byte = second & 0x7F
    extra = _extra_bytes_for_length_byte(length_byte)
    if extra:
        if len(view) - pos < extra:
            return None
        length = int.from_bytes(view[pos:pos + extra], "big")
        pos += extra
    else:
        length = length_byte

    mask: Optional[bytes] = None
    if masked:
        if len(view) - pos < 4:
            return None
        mask = bytes(view[pos:pos + 4])
        pos += 4

    if opcode.is_reserved:
        raise ProtocolError(ProtocolErrorKind.INVALID_OPCODE, first & 0x0F)

    header = FrameHeader(
        is_final=is_final, rsv1=rsv1, rsv2=rsv2, rsv3=rsv3, opcode=opcode, mask=mask
    )
    return header, length, pos


@dataclass
class Frame:
    """A WebSocket frame: a header and its payload."""

    header: FrameHeader
    payload: bytes = b""

    def __len__(self) -> int:
        """Length of the encoded frame: header plus payload."""
        size = len(self.payload)
        return self.header.encoded_len(size) + size

    def is_masked(self) -> bool:
        """Tell whether the frame carries a mask."""
        return self.header.mask is not None

    def set_random_mask(self) -> None:
        """Give the frame a random mask; masking happens on ``format``."""
        self.header.set_random_mask()

    def apply_mask(self) -> None:
        """Unmask the payload of a received masked frame and drop the mask."""
        mask = self.header.mask
        if mask is not None:
            self.header.mask = None
            self.payload = _apply_mask(self.payload, mask)

    def to_text(self) -> str:
        """Decode the payload as UTF-8."""
        try:
            return bytes(self.payload).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise Utf8Error() from exc

    def to_close(self) -> Optional[CloseFrame]:
        """Interpret the payload as the body of a close frame."""
        if len(self.payload) == 0:
            return None
        if len(self.payload) == 1:
            raise ProtocolError(ProtocolErrorKind.INVALID_CLOSE_SEQUENCE)
        code = CloseCode(int.from_bytes(self.payload[:2], "big"))
        try:
            reason = bytes(self.payload[2:]).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise Utf8Error() from exc
        return CloseFrame(code, reason)

    def format(self) -> bytes:
        """Encode the frame, masking the payload if the header has a mask."""
        payload = bytes(self.payload)
        head = self.header.format(len(payload))
        if self.header.mask is not None:
            payload = _apply_mask(payload, self.header.mask)
        return head + payload

    def __str__(self) -> str:
        h = self.header
        flag = lambda value: str(value).lower()  # noqa: E731
        return (
            "\n<FRAME>\n"
            f"final: {flag(h.is_final)}\n"
            f"reserved: {flag(h.rsv1)} {flag(h.rsv2)} {flag(h.rsv3)}\n"
            f"opcode: {h.opcode}\n"
            f"length: {len(self)}\n"
            f"payload length: {len(self.payload)}\n"
            f"payload: 0x{bytes(self.payload).hex()}\n"
            "            "
        )


def data_frame(data: bytes, opcode: OpCode, is_final: bool = True) -> Frame:
    """Create a data frame."""
    if not opcode.is_data:
        raise ValueError(f"invalid opcode for data frame: {opcode}")
    return Frame(FrameHeader(is_final=is_final, opcode=opcode), bytes(data))


def ping_frame(data: bytes = b"") -> Frame:
    """Create a ping control frame."""
    return Frame(FrameHeader(opcode=OpCode(Control.PING)), bytes(data))


def pong_frame(data: bytes = b"") -> Frame:
    """Create a pong control frame."""
    return Frame(FrameHeader(opcode=OpCode(Control.PONG)), bytes(data))


def close_frame(close: Optional[CloseFrame] = None) -> Frame:
    """Create a close control frame, with an optional code and reason."""
    if close is None:
        payload = b""
    else:
        payload = struct.pack("!H", int(close.code)) + close.reason.encode("utf-8")
    return Frame(FrameHeader(), payload)


__all__ = [
    "CloseFrame",
    "Data",
    "Frame",
    "FrameHeader",
    "close_frame",
    "data_frame",
    "parse_header",
    "ping_frame",
    "pong_frame",
]