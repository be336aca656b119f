"""HTTP/1.1 request and response messages with incremental parsers."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum, IntEnum

__all__ = [
    "HttpMethod",
    "HttpCode",
    "HttpParseError",
    "HttpRequest",
    "HttpRequestParser",
    "HttpResponse",
    "HttpResponseParser",
]

_CRLF = b"\r\n"
_SPACE = 0x20
# A start line or a single header line must not grow beyond this while waiting.
_MAX_LINE = 1024
_MIN_REQUEST_LINE = len("GET / HTTP/1.1")
_MIN_STATUS_LINE = len("HTTP/1.1 2")
_MIN_HEADER_LINE = len("k:v")

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1
_SIZE_MOD = 2**64
_LEADING_INT = re.compile(r"[ \t\n\v\f\r]*([+-]?\d+)")


class HttpMethod(Enum):
    """Request methods understood by the parser."""

    INVALID = "Invalid method"
    GET = "GET"
    POST = "POST"
    HEAD = "HEAD"
    PUT = "PUT"
    DELETE = "DELETE"


class HttpCode(IntEnum):
    """Common HTTP status codes."""

    OK = 200
    CREATED = 201
    ACCEPTED = 202
    NON_AUTH_INFO = 203
    NO_CONTENT = 204

    BAD_REQUEST = 400
    UNAUTH = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    METHOD_NOT_ALLOW = 405

    INNER_SERVER_ERROR = 500
    NOT_IMPL = 501
    BAD_GATEWAY = 502
    SERVICE_UNAVAIL = 503


class HttpParseError(ValueError):
    """Raised when bytes cannot be parsed as an HTTP message."""


def _to_int(text: str) -> int | None:
    """Parse a leading 32-bit integer, or return None when there is none."""
    match = _LEADING_INT.match(text)
    if match is None:
        return None
    value = int(match.group(1))
    if not _INT32_MIN <= value <= _INT32_MAX:
        return None
    return value


def _text(raw: bytes) -> str:
    return raw.decode("latin-1")


def _encode_head(start_line: str, headers: dict[str, str]) -> bytes:
    lines = [start_line]
    lines.extend(f"{name}:{value}" for name, value in headers.items())
    return ("\r\n".join(lines) + "\r\n\r\n").encode("latin-1")


@dataclass
class HttpRequest:
    """An HTTP request: method, path, query, headers and body."""

    method: HttpMethod = HttpMethod.INVALID
    path: str = ""
    query: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def reset(self) -> None:
        """Return to the empty state."""
        self.method = HttpMethod.INVALID
        self.path = ""
        self.query = ""
        self.headers = {}
        self.body = b""

    def set_method(self, name: str) -> None:
        """Set the method from its name; raise ValueError for unknown names."""
        try:
            method = HttpMethod(name)
        except ValueError:
            method = HttpMethod.INVALID
        if method is HttpMethod.INVALID:
            raise ValueError(f"invalid HTTP method: {name!r}")
        self.method = method

    def method_string(self) -> str:
        return self.method.value

    def get_header(self, field: str) -> str:
        """Return the header value, or an empty string when absent."""
        return self.headers.get(field, "")

    def set_header(self, field: str, value: str) -> None:
        """Add a header; an existing value for the same name is kept."""
        self.headers.setdefault(field, value)

    def append_body(self, data: bytes) -> None:
        self.body += bytes(data)

    def encode(self) -> bytes:
        """Serialise to wire bytes; a request without a method encodes to nothing."""
        if self.method is HttpMethod.INVALID:
            return b""
        target = f"{self.path}?{self.query}" if self.query else self.path
        head = _encode_head(f"{self.method_string()} {target} HTTP/1.1", self.headers)
        return head + self.body


@dataclass
class HttpResponse:
    """An HTTP response: status code, reason phrase, headers and body."""

    code: int = HttpCode.OK
    phrase: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def reset(self) -> None:
        """Return to the empty state."""
        self.code = HttpCode.OK
        self.phrase = ""
        self.headers = {}
        self.body = b""

    def get_header(self, field: str) -> str:
        """Return the header value, or an empty string when absent."""
        return self.headers.get(field, "")

    def set_header(self, field: str, value: str) -> None:
        """Add a header; an existing value for the same name is kept."""
        self.headers.setdefault(field, value)

    def append_body(self, data: bytes) -> None:
        self.body += bytes(data)

    def encode(self) -> bytes:
        """Serialise to wire bytes."""
        head = _encode_head(f"HTTP/1.1 {int(self.code)} {self.phrase}", self.headers)
        return head + self.body


class _State(Enum):
    ERROR = "error"
    START_LINE = "start_line"
    HEADERS = "headers"
    BODY = "body"
    DONE = "done"


class _MessageParser:
    """Shared state machine for requests and responses."""

    # Requests accept a header block that ends with the data, without a blank line.
    _lenient_header_end = False

    def __init__(self) -> None:
        self._message: HttpRequest | HttpResponse = self._new_message()
        self._reset()

    def _new_message(self) -> HttpRequest | HttpResponse:
        raise NotImplementedError

    def _parse_start_line(self, data: bytes, pos: int) -> int:
        raise NotImplementedError

    def _reset(self) -> None:
        self._wait_more = False
        self._state = _State.START_LINE
        self._content_length = 0
        self._message.reset()

    @property
    def done(self) -> bool:
        return self._state is _State.DONE

    @property
    def error(self) -> bool:
        return self._state is _State.ERROR

    @property
    def wait_more(self) -> bool:
        return self._wait_more

    def _parse(self, data: bytes) -> int:
        if self._state is _State.ERROR:
            raise HttpParseError("parser is in error state; reset it first")
        data = bytes(data)
        self._wait_more = False
        pos = 0
        try:
            while not self._wait_more and self._state is not _State.DONE:
                if self._state is _State.START_LINE:
                    pos = self._parse_start_line(data, pos)
                elif self._state is _State.HEADERS:
                    pos = self._parse_headers(data, pos)
                else:
                    pos = self._parse_body(data, pos)
        except HttpParseError:
            self._state = _State.ERROR
            raise
        return pos

    def _find_line(self, data: bytes, pos: int, what: str) -> int:
        """Return the CRLF position, or -1 after flagging that more data is needed."""
        crlf = data.find(_CRLF, pos)
        if crlf < 0:
            self._wait_more = True
            if len(data) - pos >= _MAX_LINE:
                raise HttpParseError(f"{what} too long")
        return crlf

    def _begin_body(self) -> None:
        length = self._message.get_header("Content-Length")
        if length:
            value = _to_int(length)
            self._content_length = 0 if value is None else value % _SIZE_MOD
        self._state = _State.BODY

    def _parse_headers(self, data: bytes, pos: int) -> int:
        if pos == len(data) and self._lenient_header_end:
            self._begin_body()
            return pos

        crlf = self._find_line(data, pos, "header line")
        if crlf < 0:
            return pos

        if crlf == pos:
            self._begin_body()
            return crlf + 2

        if crlf - pos < _MIN_HEADER_LINE:
            raise HttpParseError("header line too short")

        name, colon, value = data[pos:crlf].partition(b":")
        if not colon:
            raise HttpParseError("no colon in header line")
        self._message.set_header(_text(name).strip(" "), _text(value).strip(" "))
        return crlf + 2

    def _parse_body(self, data: bytes, pos: int) -> int:
        have = len(self._message.body)
        if have >= self._content_length:
            self._state = _State.DONE
            return pos

        needs = self._content_length - have
        if pos + needs > len(data):
            needs = len(data) - pos
            self._wait_more = True

        if needs > 0:
            self._message.append_body(data[pos : pos + needs])
            pos += needs
        return pos


def _skip_spaces(data: bytes, offset: int) -> int:
    offset += 1
    while offset < len(data) and data[offset] == _SPACE:
        offset += 1
    return offset


class HttpRequestParser(_MessageParser):
    """Incremental parser for HTTP requests."""

    _lenient_header_end = True

    def _new_message(self) -> HttpRequest:
        return HttpRequest()

    @property
    def request(self) -> HttpRequest:
        return self._message  # type: ignore[return-value]

    def reset(self) -> None:
        """Forget any partial request and start over."""
        self._reset()

    def parse(self, data: bytes) -> int:
        """Consume as much of ``data`` as possible; return the number of bytes used.

        Bytes not consumed must be passed again, followed by new data.
        """
        return self._parse(data)

    def _parse_start_line(self, data: bytes, pos: int) -> int:
        crlf = self._find_line(data, pos, "request line")
        if crlf < 0:
            return pos

        if crlf - pos < _MIN_REQUEST_LINE:
            raise HttpParseError("request line too short")

        space = data.find(b" ", pos)
        if space < 0:
            raise HttpParseError("no method in request line")
        try:
            self.request.set_method(_text(data[pos:space]))
        except ValueError as exc:
            raise HttpParseError(str(exc)) from exc

        offset = _skip_spaces(data, space)
        if offset == len(data):
            raise HttpParseError("no target in request line")
        space = data.find(b" ", offset)
        if space < 0:
            raise HttpParseError("no target in request line")

        path, mark, query = data[offset:space].partition(b"?")
        if mark:
            self.request.query = _text(query)
        self.request.path = _text(path)

        self._state = _State.HEADERS
        return crlf + 2


class HttpResponseParser(_MessageParser):
    """Incremental parser for HTTP responses."""

    def _new_message(self) -> HttpResponse:
        return HttpResponse()

    @property
    def response(self) -> HttpResponse:
        return self._message  # type: ignore[return-value]

    def reset(self) -> None:
        """Forget any partial response and start over."""
        self._reset()

    def parse(self, data: bytes) -> int:
        """Consume as much of ``data`` as possible; return the number of bytes used.

        Bytes not consumed must be passed again, followed by new data.
        """
        return self._parse(data)

    def _parse_start_line(self, data: bytes, pos: int) -> int:
        crlf = self._find_line(data, pos, "status line")
        if crlf < 0:
            return pos

        if crlf - pos < _MIN_STATUS_LINE:
            raise HttpParseError("status line too short")

        space = data.find(b" ", pos)
        if space < 0:
            raise HttpParseError("no version in status line")

        offset = _skip_spaces(data, space)
        if offset == len(data):
            raise HttpParseError("no status code in status line")
        space = data.find(b" ", offset)
        if space < 0:
            raise HttpParseError("no status code in status line")

        code = _to_int(_text(data[offset:space]))
        if code is None:
            raise HttpParseError("status code is not a number")
        self.response.code = code

        offset = _skip_spaces(data, space)
        if offset < len(data):
            self.response.phrase = _text(data[offset:crlf])

        self._state = _State.HEADERS
        return crlf + 2