# ananas_rpc

The wire-level pieces of a small RPC framework: error codes, endpoints,
length-prefixed framing, HTTP/1.1 and Redis protocol parsers, and the
encoding of name-service requests as Redis commands. Only the standard
library is used.

## Install

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Modules

### `ananas_rpc.errors`

`ErrorCode` is an `IntEnum` of failure reasons (`NO_SUCH_SERVICE`,
`DECODE_FAIL`, `TOO_LONG_FRAME`, `TIMEOUT`, ...). `error_message(code)`
gives the category text, such as `"ananas.error:DecodeFail"`, and
`"Bad ananas.rpc error code"` for unknown values. `RpcError(code, message)`
is the exception raised for these failures; it keeps `code`, `message`,
`category` and `code_message`.

### `ananas_rpc.endpoint`

`Endpoint` is a frozen dataclass of `proto` (a `Protocol`: `TCP`, `UDP`,
`SSL`), `ip` and `port`.

```python
from ananas_rpc.endpoint import endpoint_from_string, endpoint_to_string, is_valid_endpoint

ep = endpoint_from_string("tcp://127.0.0.1:8000")
assert endpoint_to_string(ep) == "tcp://127.0.0.1:8000"
assert is_valid_endpoint(ep)
```

Malformed text gives an endpoint without address, which
`is_valid_endpoint` rejects. `endpoint_to_socket_addr(ep)` returns
`(ip, port)`.

### `ananas_rpc.http`

`HttpRequest` and `HttpResponse` are dataclasses with `encode()` to wire
bytes. `HttpRequestParser` and `HttpResponseParser` parse incrementally:
`parse(data)` returns the number of bytes consumed, and bytes not consumed
must be passed again together with new data. The parser exposes `done`,
`wait_more` and `error`, and the message as `request` or `response`.
Malformed input raises `HttpParseError`; `reset()` starts over.

```python
from ananas_rpc.http import HttpRequestParser

parser = HttpRequestParser()
parser.parse(b"GET /index?x=1 HTTP/1.1\r\nHost: a\r\n\r\n")
assert parser.done
assert parser.request.path == "/index"
assert parser.request.query == "x=1"
assert parser.request.get_header("Host") == "a"
```

The body is read up to `Content-Length`; chunked encoding is not handled.
A header seen twice keeps its first value.

### `ananas_rpc.redis_protocol`

`ClientProtocol.parse(data)` parses a reply and `ServerProtocol.parse_request(data)`
a command (an array of bulk strings). Both return a `(ParseResult, consumed)`
pair, where `ParseResult` is `OK`, `WAIT` or `ERROR`, and keep their state
between calls until `reset()`.

```python
from ananas_rpc.redis_protocol import ClientProtocol, ParseResult

proto = ClientProtocol()
result, used = proto.parse(b"*2\r\n$4\r\nname\r\n$4\r\nbert\r\n")
assert result is ParseResult.OK
assert proto.params == [b"name", b"bert"]
```

`ClientProtocol.content` holds the raw reply bytes. On the server side,
`ServerProtocol.params` holds the raw array and bulk headers as well as the
argument values, and `raw_request` holds the request bytes.

### `ananas_rpc.name_service`

`RedisClientContext` turns name-service requests into Redis commands and
matches the replies to them in order.

```python
from ananas_rpc.endpoint import endpoint_from_string
from ananas_rpc.name_service import KeepaliveInfo, RedisClientContext, ServiceName, Status

ctx = RedisClientContext()
ep = endpoint_from_string("tcp://127.0.0.1:8000")

assert ctx.encode(KeepaliveInfo("svc", ep), now=100) == b"hset svc tcp://127.0.0.1:8000 100\r\n"
assert ctx.decode(b"+OK\r\n") == (Status(result=0), 5)

assert ctx.encode(ServiceName("svc")) == b"hgetall svc\r\n"
reply = b"*2\r\n$20\r\ntcp://127.0.0.1:8000\r\n$3\r\n100\r\n"
endpoints, used = ctx.decode(reply, now=120)
assert endpoints.endpoints == [ep]
```

A lookup keeps only endpoints whose last report is less than 30 seconds
before `now` (the current time when `now` is omitted). `decode` returns
`(None, consumed)` while a reply is incomplete and raises `RpcError` with
`DECODE_FAIL` for a malformed one.

### `ananas_rpc.coder`

A frame is a 4-byte little-endian total length, header included, followed
by the payload.

```python
from ananas_rpc.coder import bytes_to_frame, frame_to_bytes

wire = frame_to_bytes(b"payload")
assert wire == b"\x0b\x00\x00\x00payload"
assert bytes_to_frame(wire) == (b"payload", 11)
assert bytes_to_frame(wire[:5]) == (None, 0)
```

A length of 4 or less, or of 256 MiB or more, raises `RpcError` with
`TOO_LONG_FRAME`. `Decoder` (bytes to message, then an optional message to
message step) and `Encoder` (message to frame, then an optional frame to
bytes step) hold the steps a channel uses; a fresh `Decoder` and an
`Encoder` built with a message-to-frame step use the framing above, and
setting a custom first step replaces the defaults. Setting steps in the
wrong order raises `RuntimeError`.

## What this package does not do

It opens no sockets and runs no event loop: there is no RPC server, client,
channel or service dispatch, no TLS, and no protobuf serialization. Callers
feed it bytes from their own connections and send the bytes it produces.