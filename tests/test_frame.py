import pytest

from wsstream.coding import CloseCode, Control, Data, OpCode
from wsstream.errors import ProtocolError, ProtocolErrorKind, Utf8Error
from wsstream.frame import (
    CloseFrame,
    Frame,
    FrameHeader,
    close_frame,
    data_frame,
    parse_header,
    ping_frame,
    pong_frame,
)


def test_parse():
    raw = bytes([0x82, 0x07, 0x01, 0x02, 0x03, 0x04, 0x05, 0x06, 0x07])
    header, length, end = parse_header(raw, 0)
    assert length == 7
    assert end == 2
    frame = Frame(header, raw[end:])
    assert frame.payload == bytes([0x01, 0x02, 0x03, 0x04, 0x05, 0x06, 0x07])
    assert header.opcode == OpCode(Data.BINARY)
    assert header.is_final


def test_format_ping():
    frame = ping_frame(bytes([0x01, 0x02]))
    assert frame.format() == bytes([0x89, 0x02, 0x01, 0x02])
    assert len(frame) == 4


def test_display():
    f = data_frame(b"hi there", OpCode(Data.TEXT), True)
    view = str(f)
    assert "payload:" in view
    assert "opcode: TEXT" in view
    assert "payload length: 8" in view


def test_parse_insufficient_returns_none():
    assert parse_header(b"", 0) is None
    assert parse_header(bytes([0x82]), 0) is None
    assert parse_header(bytes([0x82, 0x7E, 0x00]), 0) is None
    assert parse_header(bytes([0x82, 0x82, 0x01, 0x02]), 0) is None


def test_parse_with_offset():
    raw = bytes([0xFF, 0x8A, 0x01, 0x03])
    header, length, end = parse_header(raw, 1)
    assert header.opcode == OpCode(Control.PONG)
    assert length == 1
    assert end == 3


def test_parse_invalid_opcode():
    with pytest.raises(ProtocolError) as info:
        parse_header(bytes([0x83, 0x00]), 0)
    assert info.value.kind is ProtocolErrorKind.INVALID_OPCODE
    assert info.value.detail == 3


def test_length_16_bit_format():
    frame = data_frame(bytes(200), OpCode(Data.BINARY), True)
    encoded = frame.format()
    assert encoded[:4] == bytes([0x82, 0x7E, 0x00, 0xC8])
    assert len(encoded) == 204 == len(frame)
    header, length, end = parse_header(encoded, 0)
    assert (length, end) == (200, 4)


def test_length_64_bit_format():
    frame = data_frame(bytes(70000), OpCode(Data.BINARY), True)
    encoded = frame.format()
    assert encoded[:10] == bytes([0x82, 0x7F, 0, 0, 0, 0, 0, 0x01, 0x11, 0x70])
    header, length, end = parse_header(encoded, 0)
    assert (length, end) == (70000, 10)


@pytest.mark.parametrize(
    "length, masked, expected",
    [(0, False, 2), (125, False, 2), (126, False, 4), (65535, False, 4),
     (65536, False, 10), (125, True, 6), (65536, True, 14)],
)
def test_encoded_len(length, masked, expected):
    header = FrameHeader(mask=b"\x01\x02\x03\x04" if masked else None)
    assert header.encoded_len(length) == expected


def test_format_with_fixed_mask():
    header = FrameHeader(opcode=OpCode(Data.TEXT), mask=b"\x01\x02\x03\x04")
    frame = Frame(header, b"\x00\x00")
    assert frame.format() == bytes([0x81, 0x82, 0x01, 0x02, 0x03, 0x04, 0x01, 0x02])
    assert frame.payload == b"\x00\x00"


def test_masked_round_trip():
    frame = data_frame(b"hello", OpCode(Data.TEXT), True)
    frame.set_random_mask()
    assert frame.is_masked()
    raw = frame.format()
    header, length, end = parse_header(raw, 0)
    assert header.mask == frame.header.mask
    received = Frame(header, raw[end:end + length])
    received.apply_mask()
    assert not received.is_masked()
    assert received.payload == b"hello"
    assert received.to_text() == "hello"


def test_reserved_bits_round_trip():
    header = FrameHeader(is_final=False, rsv1=True, rsv3=True, opcode=OpCode(Data.CONTINUE))
    raw = Frame(header, b"x").format()
    assert raw[0] == 0x50
    parsed, _, _ = parse_header(raw, 0)
    assert parsed == header


def test_to_text_invalid():
    with pytest.raises(Utf8Error):
        data_frame(b"\xff\xfe", OpCode(Data.BINARY), True).to_text()


def test_close_frame_round_trip():
    frame = close_frame(CloseFrame(CloseCode.NORMAL, "bye"))
    assert frame.payload == b"\x03\xe8bye"
    assert frame.header.opcode == OpCode(Control.CLOSE)
    assert frame.to_close() == CloseFrame(CloseCode.NORMAL, "bye")


def test_close_frame_empty():
    frame = close_frame(None)
    assert frame.payload == b""
    assert frame.to_close() is None
    assert frame.format() == bytes([0x88, 0x00])


def test_close_invalid_sequence():
    with pytest.raises(ProtocolError) as info:
        Frame(FrameHeader(), b"\x03").to_close()
    assert info.value.kind is ProtocolErrorKind.INVALID_CLOSE_SEQUENCE


def test_close_invalid_utf8():
    with pytest.raises(Utf8Error):
        Frame(FrameHeader(), b"\x03\xe8\xff").to_close()


def test_close_frame_str():
    assert str(CloseFrame(CloseCode.AWAY, "gone")) == "gone (1001)"


def test_data_frame_rejects_control_opcode():
    with pytest.raises(ValueError):
        data_frame(b"", OpCode(Control.PING), True)


def test_pong_frame_format():
    assert pong_frame(b"\x01").format() == bytes([0x8A, 0x01, 0x01])