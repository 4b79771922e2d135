"""WebSocket framing, messages and connection state over blocking byte streams."""

__version__ = "0.1.0"
__all__ = [
    "codec",
    "coding",
    "errors",
    "frame",
    "mask",
    "message",
    "protocol",
    "stream",
    "websocket",
]