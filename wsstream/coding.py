"""Opcodes and close codes defined by RFC 6455."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import ClassVar, Union


class Data(enum.IntEnum):
    """Data frame opcodes."""

    CONTINUE = 0
    TEXT = 1
    BINARY = 2
    RESERVED_3 = 3
    RESERVED_4 = 4
    RESERVED_5 = 5
    RESERVED_6 = 6
    RESERVED_7 = 7

    @property
    def is_reserved(self) -> bool:
        return self.value >= 3

    def __str__(self) -> str:
        return f"RESERVED_DATA_{self.value}" if self.is_reserved else self.name


class Control(enum.IntEnum):
    """Control frame opcodes."""

    CLOSE = 8
    PING = 9
    PONG = 10
    RESERVED_11 = 11
    RESERVED_12 = 12
    RESERVED_13 = 13
    RESERVED_14 = 14
    RESERVED_15 = 15

    @property
    def is_reserved(self) -> bool:
        return self.value >= 11

    def __str__(self) -> str:
        return f"RESERVED_CONTROL_{self.value}" if self.is_reserved else self.name


@dataclass(frozen=True)
class OpCode:
    """A frame opcode: either a data opcode or a control opcode."""

    code: Union[Data, Control]

    def __post_init__(self) -> None:
        if not isinstance(self.code, (Data, Control)):
            raise TypeError(f"opcode must be Data or Control, not {self.code!r}")

    @property
    def is_data(self) -> bool:
        return isinstance(self.code, Data)

    @property
    def is_control(self) -> bool:
        return isinstance(self.code, Control)

    @property
    def is_reserved(self) -> bool:
        return self.code.is_reserved

    def __str__(self) -> str:
        return str(self.code)


def opcode_from_byte(byte: int) -> OpCode:
    """Decode a 4-bit opcode value."""
    if 0 <= byte <= 7:
        return OpCode(Data(byte))
    if 8 <= byte <= 15:
        return OpCode(Control(byte))
    raise ValueError(f"opcode out of range: {byte}")


def opcode_to_byte(opcode: OpCode) -> int:
    """Encode an opcode as its 4-bit value."""
    return int(opcode.code)


_NAMED_CODES = {
    1000: "NORMAL",
    1001: "AWAY",
    1002: "PROTOCOL",
    1003: "UNSUPPORTED",
    1005: "STATUS",
    1006: "ABNORMAL",
    1007: "INVALID",
    1008: "POLICY",
    1009: "SIZE",
    1010: "EXTENSION",
    1011: "ERROR",
    1012: "RESTART",
    1013: "AGAIN",
    1015: "TLS",
}

_DISALLOWED = frozenset({"BAD", "RESERVED", "STATUS", "ABNORMAL", "TLS"})


def _category(value: int) -> str:
    named = _NAMED_CODES.get(value)
    if named is not None:
        return named
    if 1016 <= value <= 2999:
        return "RESERVED"
    if 3000 <= value <= 3999:
        return "IANA"
    if 4000 <= value <= 4999:
        return "LIBRARY"
    return "BAD"


@dataclass(frozen=True)
class CloseCode:
    """Status code telling why an endpoint closes the connection."""

    value: int

    NORMAL: ClassVar["CloseCode"]
    AWAY: ClassVar["CloseCode"]
    PROTOCOL: ClassVar["CloseCode"]
    UNSUPPORTED: ClassVar["CloseCode"]
    STATUS: ClassVar["CloseCode"]
    ABNORMAL: ClassVar["CloseCode"]
    INVALID: ClassVar["CloseCode"]
    POLICY: ClassVar["CloseCode"]
    SIZE: ClassVar["CloseCode"]
    EXTENSION: ClassVar["CloseCode"]
    ERROR: ClassVar["CloseCode"]
    RESTART: ClassVar["CloseCode"]
    AGAIN: ClassVar["CloseCode"]
    TLS: ClassVar["CloseCode"]

    def __post_init__(self) -> None:
        if not 0 <= self.value <= 0xFFFF:
            raise ValueError(f"close code out of range: {self.value}")

    @property
    def category(self) -> str:
        """Name of the code, or RESERVED, IANA, LIBRARY or BAD for unnamed ones."""
        return _category(self.value)

    def is_allowed(self) -> bool:
        """Tell whether this code may be sent in a close frame."""
        return self.category not in _DISALLOWED

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)


for _code, _name in _NAMED_CODES.items():
    setattr(CloseCode, _name, CloseCode(_code))
del _code, _name


def close_code_from_int(code: int) -> CloseCode:
    """Build a close code from its numeric value."""
    return CloseCode(code)


def close_code_to_int(code: CloseCode) -> int:
    """Return the numeric value of a close code."""
    return code.value