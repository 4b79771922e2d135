import pytest

from wsstream.coding import CloseCode
from wsstream.errors import MessageTooLong, Utf8Error
from wsstream.frame import CloseFrame, ping_frame
from wsstream.message import (
    BinaryMessage,
    CloseMessage,
    FrameMessage,
    IncompleteMessage,
    IncompleteMessageType,
    PingMessage,
    PongMessage,
    TextMessage,
    message_from,
)


def test_display():
    assert str(TextMessage("test")) == "test"
    assert str(BinaryMessage(bytes([0, 1, 3, 4, 241]))) == "Binary Data<length=5>"


def test_binary_convert():
    msg = message_from(bytes([6, 7, 8, 9, 10, 241]))
    assert isinstance(msg, BinaryMessage)
    with pytest.raises(Utf8Error):
        msg.to_text()


def test_binary_convert_bytearray():
    msg = message_from(bytearray([6, 7, 8, 9, 10, 241]))
    assert isinstance(msg, BinaryMessage)
    with pytest.raises(Utf8Error):
        msg.to_text()


def test_binary_convert_into_bytes():
    data = bytes([6, 7, 8, 9, 10, 241])
    assert message_from(data).to_data() == data


def test_text_convert():
    msg = message_from("kiwotsukete")
    assert isinstance(msg, TextMessage)
    assert msg.to_text() == "kiwotsukete"


def test_message_from_rejects_other_types():
    with pytest.raises(TypeError):
        message_from(42)


def test_message_from_passes_messages_through():
    msg = PingMessage(b"\x01")
    assert message_from(msg) is msg


def test_text_length_counts_bytes():
    msg = TextMessage("é")
    assert len(msg) == len("é".encode("utf-8"))


def test_empty_message_has_zero_length():
    assert len(TextMessage("")) == 0
    assert len(CloseMessage()) == 0


def test_ping_pong_text_and_data():
    assert PingMessage(b"hi").to_text() == "hi"
    assert PongMessage(bytearray(b"yo")).to_data() == b"yo"


def test_messages_of_different_kinds_differ():
    assert PingMessage(b"a") != PongMessage(b"a")
    assert BinaryMessage(b"a") == BinaryMessage(bytearray(b"a"))


def test_close_message_with_frame():
    msg = CloseMessage(CloseFrame(CloseCode.NORMAL, "bye"))
    assert msg.to_text() == "bye"
    assert msg.to_data() == b"bye"
    assert len(msg) == 3


def test_close_message_without_frame():
    msg = CloseMessage()
    assert msg.to_text() == ""
    assert msg.to_data() == b""


def test_frame_message():
    msg = FrameMessage(ping_frame(b"\x01\x02"))
    assert len(msg) == 4
    assert msg.to_data() == b"\x01\x02"


def test_incomplete_binary():
    msg = IncompleteMessage(IncompleteMessageType.BINARY)
    msg.extend(b"\x01\x02")
    msg.extend(b"\x03")
    assert len(msg) == 3
    assert msg.complete() == BinaryMessage(b"\x01\x02\x03")


def test_incomplete_text_split_character():
    encoded = "añb".encode("utf-8")
    msg = IncompleteMessage(IncompleteMessageType.TEXT)
    msg.extend(encoded[:2])
    assert len(msg) == 2
    msg.extend(encoded[2:])
    assert len(msg) == len(encoded)
    assert msg.complete() == TextMessage("añb")


def test_incomplete_text_dangling_byte_fails_on_complete():
    msg = IncompleteMessage(IncompleteMessageType.TEXT)
    msg.extend("ñ".encode("utf-8")[:1])
    with pytest.raises(Utf8Error):
        msg.complete()


def test_incomplete_text_invalid_bytes():
    msg = IncompleteMessage(IncompleteMessageType.TEXT)
    with pytest.raises(Utf8Error):
        msg.extend(b"ok\xff")


def test_size_limit():
    msg = IncompleteMessage(IncompleteMessageType.TEXT)
    msg.extend(b"Hello, ", 10)
    with pytest.raises(MessageTooLong) as info:
        msg.extend(b"World!", 10)
    assert info.value.size == 13
    assert info.value.max_size == 10


def test_size_limit_exact_fit_is_accepted():
    msg = IncompleteMessage(IncompleteMessageType.BINARY)
    msg.extend(b"\x01\x02", 2)
    assert msg.complete().to_data() == b"\x01\x02"


def test_size_limit_binary():
    msg = IncompleteMessage(IncompleteMessageType.BINARY)
    with pytest.raises(MessageTooLong) as info:
        msg.extend(b"\x01\x02\x03", 2)
    assert (info.value.size, info.value.max_size) == (3, 2)