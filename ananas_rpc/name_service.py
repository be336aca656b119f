"""Name-service messages and their encoding over a Redis connection.

A keepalive becomes ``hset <service> <endpoint> <time>``; an endpoint lookup
becomes ``hgetall <service>``, whose reply lists endpoints with the time they
last reported.
"""

from __future__ import annotations

import re
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum, auto

from .endpoint import Endpoint, endpoint_from_string, endpoint_to_string
from .errors import ErrorCode, RpcError
from .redis_protocol import ClientProtocol, ParseResult

__all__ = [
    "ServiceName",
    "KeepaliveInfo",
    "EndpointList",
    "Status",
    "RedisClientContext",
]

# An endpoint is alive if it reported within this many seconds.
_ALIVE_SECONDS = 30

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


@dataclass
class ServiceName:
    """Request for the endpoints of a service."""

    name: str = ""


@dataclass
class KeepaliveInfo:
    """Report that a service is alive at an endpoint."""

    servicename: str = ""
    endpoint: Endpoint = field(default_factory=Endpoint)


@dataclass
class EndpointList:
    """Endpoints of a service."""

    endpoints: list[Endpoint] = field(default_factory=list)


@dataclass
class Status:
    """Result of a keepalive."""

    result: int = 0


class _Oper(Enum):
    GET_ENDPOINTS = auto()
    KEEPALIVE = auto()


def _timestamp(raw: bytes) -> int:
    match = _LEADING_INT.match(raw.decode("latin-1"))
    if match is None:
        raise RpcError(ErrorCode.DECODE_FAIL, f"bad timestamp {raw!r}")
    return int(match.group(1))


class RedisClientContext:
    """Per-connection state: encodes requests and matches replies in order."""

    def __init__(self) -> None:
        self._proto = ClientProtocol()
        self._pending: deque[_Oper] = deque()

    def encode(self, msg: ServiceName | KeepaliveInfo, now: float | None = None) -> bytes:
        """Return the Redis command for ``msg``; ``now`` stamps keepalives."""
        if isinstance(msg, ServiceName):
            line = f"hgetall {msg.name}"
            oper = _Oper.GET_ENDPOINTS
        elif isinstance(msg, KeepaliveInfo):
            stamp = int(time.time() if now is None else now)
            line = f"hset {msg.servicename} {endpoint_to_string(msg.endpoint)} {stamp}"
            oper = _Oper.KEEPALIVE
        else:
            raise TypeError(f"cannot encode {type(msg).__name__} for the name server")

        self._pending.append(oper)
        return (line + "\r\n").encode("utf-8")

    def decode(
        self, data: bytes, now: float | None = None
    ) -> tuple[EndpointList | Status | None, int]:
        """Parse a reply; return the message (None while incomplete) and bytes consumed.

        ``now`` decides which endpoints of a lookup are still alive.
        """
        data = bytes(data)
        if not data:
            return None, 0

        result, used = self._proto.parse(data)
        if result is ParseResult.WAIT:
            return None, used
        if result is ParseResult.ERROR:
            raise RpcError(ErrorCode.DECODE_FAIL, "malformed name server reply")

        try:
            if not self._pending:
                raise RpcError(ErrorCode.DECODE_FAIL, "reply without a pending request")
            oper = self._pending.popleft()
            if oper is _Oper.GET_ENDPOINTS:
                current = time.time() if now is None else now
                message: EndpointList | Status = self._endpoint_list(current)
            else:
                message = Status(result=0)
        finally:
            self._proto.reset()

        return message, used

    def _endpoint_list(self, now: float) -> EndpointList:
        params = self._proto.params
        if len(params) % 2:
            raise RpcError(ErrorCode.DECODE_FAIL, "odd number of fields in endpoint list")

        endpoints = []
        pairs = iter(params)
        for url, stamp in zip(pairs, pairs):
            try:
                ep = endpoint_from_string(url.decode("latin-1"))
            except ValueError as exc:
                raise RpcError(ErrorCode.DECODE_FAIL, str(exc)) from exc
            if _timestamp(stamp) + _ALIVE_SECONDS > now:
                endpoints.append(ep)
        return EndpointList(endpoints=endpoints)