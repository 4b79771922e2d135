"""Frame payload masking."""

from __future__ import annotations

import os


def generate_mask() -> bytes:
    """Generate a random four-byte frame mask."""
    return os.urandom(4)


def apply_mask(data: bytes, mask: bytes) -> bytes:
    """Mask or unmask ``data`` with the four-byte ``mask``; returns new bytes."""
    key = bytes(mask)
    if len(key) != 4:
        raise ValueError(f"mask must be 4 bytes long, got {len(key)}")
    size = len(data)
    if size == 0:
        return b""
    stream = (key * (size // 4 + 1))[:size]
    masked = int.from_bytes(bytes(data), "big") ^ int.from_bytes(stream, "big")
    return masked.to_bytes(size, "big")