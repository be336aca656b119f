"""Incremental parsers for the Redis wire protocol (RESP).

Both parsers keep their state between calls. A call reports how many bytes
it consumed; bytes not consumed must be passed again, followed by new data.
"""

from __future__ import annotations

from enum import Enum

__all__ = ["ParseResult", "ResponseType", "ServerProtocol", "ClientProtocol"]

_CRLF = b"\r\n"
_CR = 0x0D
_LF = 0x0A
_MINUS = 0x2D
_PLUS = 0x2B


class ParseResult(Enum):
    """Outcome of one parsing step."""

    OK = "ok"
    WAIT = "wait"
    ERROR = "error"


class ResponseType(Enum):
    """Kind of reply, chosen by its first byte."""

    NONE = "none"
    FINE = "+"
    ERROR = "-"
    STRING = "$"
    NUMBER = ":"
    MULTI = "*"


_TYPE_BY_BYTE = {
    ord("+"): ResponseType.FINE,
    ord("-"): ResponseType.ERROR,
    ord("$"): ResponseType.STRING,
    ord(":"): ResponseType.NUMBER,
    ord("*"): ResponseType.MULTI,
}


def _int_until_crlf(data: bytes, pos: int) -> tuple[ParseResult, int, int]:
    """Read a signed decimal ended by CRLF at ``pos``.

    Returns the result, the value and the position after the CRLF; on
    anything but OK the position is ``pos`` unchanged.
    """
    end = len(data)
    if end - pos < 3:
        return ParseResult.WAIT, 0, pos

    i = pos
    negative = False
    if data[i] == _MINUS:
        negative = True
        i += 1
    elif data[i] == _PLUS:
        i += 1

    value = 0
    while i < end:
        byte = data[i]
        if 0x30 <= byte <= 0x39:
            value = value * 10 + (byte - 0x30)
            i += 1
            continue
        if byte != _CR or (i + 1 < end and data[i + 1] != _LF):
            return ParseResult.ERROR, 0, pos
        if i + 1 == end:
            return ParseResult.WAIT, 0, pos
        return ParseResult.OK, -value if negative else value, i + 2

    return ParseResult.WAIT, 0, pos


def _parse_length(data: bytes, pos: int, marker: bytes) -> tuple[ParseResult, int, int]:
    """Read ``<marker><int>\\r\\n`` whose value must be at least -1.

    The position is unchanged unless the result is OK.
    """
    if len(data) - pos < 3:
        return ParseResult.WAIT, 0, pos
    if data[pos : pos + 1] != marker:
        return ParseResult.ERROR, 0, pos
    result, value, end = _int_until_crlf(data, pos + 1)
    if result is not ParseResult.OK:
        return result, 0, pos
    if value < -1:
        return ParseResult.ERROR, 0, pos
    return result, value, end


def _bulk_value(data: bytes, pos: int, length: int) -> tuple[ParseResult, int]:
    """Locate a ``length``-byte value ended by CRLF; return the result and its end."""
    if len(data) - pos < length + 2:
        return ParseResult.WAIT, pos
    tail = pos + length
    if data[tail : tail + 2] != _CRLF:
        return ParseResult.ERROR, pos
    return ParseResult.OK, tail


class _BulkListParser:
    """Parsing of a run of bulk strings, shared by both parsers."""

    _NO_LENGTH = -1

    def _start(self) -> None:
        self._param_len = self._NO_LENGTH
        self._n_params = 0
        self.params: list[bytes] = []

    def _on_bulk_header(self, raw: bytes) -> None:
        """Called with the raw bytes of each bulk length line."""

    def _on_null_bulk(self) -> None:
        """Called for a bulk string of length -1."""

    def _on_bulk_value(self, value: bytes, raw: bytes) -> None:
        self.params.append(value)

    def _parse_items(self, data: bytes, pos: int, count: int) -> tuple[ParseResult, int]:
        while self._n_params < count:
            result, pos = self._parse_str(data, pos)
            if result is not ParseResult.OK:
                return result, pos
            self._n_params += 1
        return ParseResult.OK, pos

    def _parse_str(self, data: bytes, pos: int) -> tuple[ParseResult, int]:
        if self._param_len == self._NO_LENGTH:
            result, length, end = _parse_length(data, pos, b"$")
            if result is not ParseResult.OK:
                return result, pos
            self._param_len = length
            self._on_bulk_header(data[pos:end])
            pos = end

        if self._param_len == -1:
            self._param_len = self._NO_LENGTH
            self._on_null_bulk()
            return ParseResult.OK, pos

        result, tail = _bulk_value(data, pos, self._param_len)
        if result is not ParseResult.OK:
            return result, pos
        self._on_bulk_value(data[pos:tail], data[pos : tail + 2])
        self._param_len = self._NO_LENGTH
        return ParseResult.OK, tail + 2


class ServerProtocol(_BulkListParser):
    """Parser for requests sent to a Redis server (arrays of bulk strings).

    ``params`` holds every piece of the request in arrival order: the raw
    array header, each raw bulk header and each argument value.
    """

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        """Forget the current request and start over."""
        self._start()
        self._multi = -1
        self._content = bytearray()

    @property
    def raw_request(self) -> bytes:
        """The bytes of the request parsed so far."""
        return bytes(self._content)

    def is_initial_state(self) -> bool:
        return self._multi == -1

    def parse_request(self, data: bytes) -> tuple[ParseResult, int]:
        """Parse ``data``; return the result and the number of bytes consumed."""
        data = bytes(data)
        pos = 0
        if self._multi == -1:
            result, multi, end = _parse_length(data, pos, b"*")
            if result is not ParseResult.OK:
                return result, pos
            self._multi = multi
            self._on_bulk_header(data[pos:end])
            pos = end
        return self._parse_items(data, pos, self._multi)

    def _on_bulk_header(self, raw: bytes) -> None:
        self._content += raw
        self.params.append(raw)

    def _on_null_bulk(self) -> None:
        self.params.append(b"")

    def _on_bulk_value(self, value: bytes, raw: bytes) -> None:
        self.params.append(value)
        self._content += raw


class ClientProtocol(_BulkListParser):
    """Parser for replies coming from a Redis server.

    Bulk string values land in ``params``; the raw reply bytes in ``content``.
    """

    _NO_LENGTH = -2

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        """Forget the current reply and start over."""
        self._start()
        self.type = ResponseType.NONE
        self._content = bytearray()
        self.multi = self._NO_LENGTH

    @property
    def content(self) -> bytes:
        """The bytes of the reply parsed so far."""
        return bytes(self._content)

    def parse(self, data: bytes) -> tuple[ParseResult, int]:
        """Parse ``data``; return the result and the number of bytes consumed."""
        data = bytes(data)
        if not data:
            raise ValueError("nothing to parse")

        if self.type is ResponseType.NONE:
            kind = _TYPE_BY_BYTE.get(data[0])
            if kind is None:
                return ParseResult.ERROR, 0
            self.type = kind

        if self.type in (ResponseType.FINE, ResponseType.ERROR, ResponseType.NUMBER):
            crlf = data.find(_CRLF, 1)
            if crlf < 0:
                return ParseResult.WAIT, 0
            result, end = ParseResult.OK, crlf + 2
        elif self.type is ResponseType.STRING:
            result, end = self._parse_str(data, 0)
        else:
            result, end = self._parse_multi(data, 0)

        if result is ParseResult.ERROR:
            return result, end
        self._content += data[:end]
        return result, end

    def _parse_multi(self, data: bytes, pos: int) -> tuple[ParseResult, int]:
        if self.multi == self._NO_LENGTH:
            result, multi, end = _parse_length(data, pos, b"*")
            if result is not ParseResult.OK:
                return result, pos
            self.multi = multi
            pos = end
        return self._parse_items(data, pos, self.multi)