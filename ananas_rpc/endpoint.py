"""Service endpoints and their ``proto://ip:port`` text form."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import IntEnum

__all__ = [
    "Protocol",
    "Endpoint",
    "endpoint_from_string",
    "endpoint_to_string",
    "endpoint_to_socket_addr",
    "is_valid_endpoint",
]

# len("tcp://1.1.1.1:1")
_MIN_URL_LEN = 15

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class Protocol(IntEnum):
    """Transport of an endpoint."""

    TCP = 0
    UDP = 1
    SSL = 2


_SCHEMES = {"tcp": Protocol.TCP, "udp": Protocol.UDP, "ssl": Protocol.SSL}


@dataclass(frozen=True)
class Endpoint:
    """An address a service listens on or a client connects to."""

    proto: Protocol = Protocol.TCP
    ip: str = ""
    port: int = 0


def _leading_int(text: str) -> int:
    match = _LEADING_INT.match(text)
    if match is None:
        raise ValueError(f"invalid port: {text!r}")
    return int(match.group(1))


def endpoint_from_string(url: str) -> Endpoint:
    """Parse ``tcp://127.0.0.1:8000``; malformed input yields an invalid endpoint."""
    if len(url) < _MIN_URL_LEN:
        return Endpoint()

    sep = url.rfind("/")
    if sep == -1:
        return Endpoint()

    proto = _SCHEMES.get(url[:3])
    if proto is None:
        return Endpoint()

    host, colon, port = url[sep + 1 :].partition(":")
    if not colon:
        return Endpoint(proto=proto)

    return Endpoint(proto=proto, ip=host, port=_leading_int(port))


def endpoint_to_string(ep: Endpoint) -> str:
    """Format an endpoint as ``proto://ip:port``."""
    if ep.proto == Protocol.TCP:
        scheme = "tcp://"
    elif ep.proto == Protocol.UDP:
        scheme = "udp://"
    else:
        scheme = "ssl://"
    return f"{scheme}{ep.ip}:{ep.port}"


def endpoint_to_socket_addr(ep: Endpoint) -> tuple[str, int]:
    """Return the ``(host, port)`` pair used by the socket layer."""
    return (ep.ip, ep.port)


def is_valid_endpoint(ep: Endpoint) -> bool:
    """True if the endpoint has an address and a positive port."""
    return bool(ep.ip) and ep.port > 0