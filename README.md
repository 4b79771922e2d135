# wsstream

WebSocket (RFC 6455) framing and message handling on top of any blocking,
file-like byte stream. Hand the stream of an already upgraded connection to
`WebSocket` and exchange messages over it.

The package needs nothing beyond the standard library.

## Sending and receiving messages

A stream needs `read(size)` and `write(data)`. The `flush()` method is called
when the stream has one. A `read` that returns `b""` means the stream has
ended. A `write` returns the number of bytes written. A connected socket
wrapped with `socket.makefile("rwb", buffering=0)` meets these needs.

```python
from wsstream.websocket import WebSocket
from wsstream.protocol import Role
from wsstream.message import TextMessage, CloseMessage

ws = WebSocket(stream, Role.CLIENT)
ws.send(TextMessage("hello"))
ws.send("also text")   # a str becomes a TextMessage
ws.send(b"\x01\x02")   # bytes become a BinaryMessage

for message in ws:
    if isinstance(message, CloseMessage):
        print("peer is closing:", message.close)
    else:
        print(message)
```

Iterating over a `WebSocket` yields messages until `ConnectionClosed` is raised
by `read`. After that the stream may be dropped.

`wsstream.message` holds the message types:

- `TextMessage`
- `BinaryMessage`
- `PingMessage`
- `PongMessage`
- `CloseMessage`
- `FrameMessage`, which carries a raw frame

Each message has `to_data()`, `to_text()` and `len()`. `message_from` builds a
message from a `str` or from bytes.

When a ping arrives, `read` queues the matching pong itself. The pong is sent
on the next `read`, `write` or `flush`. When a close frame arrives, a close
reply is queued in the same way.

To close from this end, call `close()`, optionally with a
`wsstream.frame.CloseFrame(code, reason)`. Codes such as `CloseCode.NORMAL`
are in `wsstream.coding`. Then keep calling `read` or `flush` until
`ConnectionClosed` is raised. A server raises it once both close frames have
been exchanged. A client raises it once the server has ended the stream.

Clients mask every frame they send. Servers reject unmasked frames unless
`accept_unmasked_frames` is set.

## Configuration

`wsstream.protocol.WebSocketConfig` is a frozen dataclass with these fields:

- `write_buffer_size`: output buffered before it is written to the stream.
  The default is 128 KiB.
- `max_write_buffer_size`: the cap on the output buffer. By default there is
  no practical limit.
- `max_message_size`: the default is 64 MiB. `None` means no limit.
- `max_frame_size`: the default is 16 MiB. `None` means no limit.
- `accept_unmasked_frames`: off by default.

Pass a config when creating the socket:
`WebSocket(stream, Role.SERVER, WebSocketConfig(...))`. To change fields on a
live connection, pass them by name:

```python
ws.set_config(max_message_size=1 << 20)
```

A `WebSocket` can also start from bytes already read off the stream, through
its `partial` argument. The protocol state machine is also available without a
stream attached, as `wsstream.protocol.WebSocketContext`.

## Working with frames directly

`wsstream.codec.FrameSocket` reads, writes, flushes and sends single frames.
Its `into_inner()` returns the stream and any bytes not yet consumed.
`wsstream.codec.FrameCodec` does the buffering behind it.

`wsstream.frame` builds and parses frames with these helpers:

- `data_frame`
- `ping_frame`
- `pong_frame`
- `close_frame`
- `parse_header`

`Frame.format()` encodes a frame to bytes. `wsstream.mask.apply_mask` masks
and unmasks payloads.

## Errors

Errors of the WebSocket protocol raise subclasses of
`wsstream.errors.WebSocketError`:

- `ProtocolError`: the peer broke the protocol. Its `kind` is a
  `ProtocolErrorKind`.
- `MessageTooLong`: a message or frame is over its limit. It has `size` and
  `max_size`.
- `WriteBufferFull`: the output buffer cannot take a frame. The frame is in
  `message`.
- `Utf8Error`: text is not valid UTF-8.
- `ConnectionClosed`: the close handshake is complete.
- `AlreadyClosed`: the connection was used after `ConnectionClosed`.

Errors from the stream itself, such as `OSError`, pass through unchanged.

For non-blocking streams, `no_block(call, *args)` in `wsstream.errors` returns
`None` instead of raising when the call would block.

## What the package does not do

The package works only on a connection that is already upgraded. It does not:

- perform the HTTP opening handshake, either as client or as server;
- connect to a `ws://` or `wss://` URL;
- set up TLS.

`wsstream.stream.MaybeTlsStream` only wraps a socket or file-like stream that
you have already opened, plain or TLS. It records which `Mode` it is in and
can switch `TCP_NODELAY` on the socket underneath.