"""Framing of RPC messages and the coder chains attached to a channel.

A binary frame is a 4-byte little-endian total length (the header included)
followed by the serialized message. A channel decodes inbound bytes with a
:class:`Decoder` and encodes outbound messages with an :class:`Encoder`; both
start with the binary framing and can be replaced by custom protocols.
"""

from __future__ import annotations

import struct
from collections.abc import Callable
from enum import Enum
from typing import Any

from .errors import ErrorCode, RpcError

__all__ = [
    "HEADER_LEN",
    "MAX_FRAME_LEN",
    "DecodeState",
    "Decoder",
    "Encoder",
    "bytes_to_frame",
    "frame_to_bytes",
]

HEADER_LEN = 4
# Frames must be strictly shorter than this, header included.
MAX_FRAME_LEN = 256 * 1024 * 1024

_HEADER = struct.Struct("<i")

BytesToMessage = Callable[[bytes], "tuple[Any, int]"]
MessageToMessage = Callable[[Any], Any]
MessageToFrame = Callable[[Any], Any]
FrameToBytes = Callable[[Any], bytes]


class DecodeState(Enum):
    """Progress of decoding one message."""

    NONE = "none"
    WAITING = "waiting"
    ERROR = "error"
    OK = "ok"


def bytes_to_frame(data: bytes) -> tuple[bytes | None, int]:
    """Split one frame off ``data``.

    Returns the frame body and the number of bytes consumed, or ``(None, 0)``
    while the frame is incomplete. Raises :class:`RpcError` with
    ``TOO_LONG_FRAME`` when the length header is abnormal.
    """
    data = bytes(data)
    if len(data) < HEADER_LEN:
        return None, 0

    (total,) = _HEADER.unpack_from(data)
    if total <= HEADER_LEN or total >= MAX_FRAME_LEN:
        raise RpcError(ErrorCode.TOO_LONG_FRAME, f"abnormal totalLen:{total}")

    if len(data) < total:
        return None, 0

    return data[HEADER_LEN:total], total


def frame_to_bytes(payload: bytes) -> bytes:
    """Prefix a serialized frame with its total length."""
    payload = bytes(payload)
    total = HEADER_LEN + len(payload)
    if total >= MAX_FRAME_LEN:
        raise RpcError(ErrorCode.ENCODE_FAIL, f"frame too long: {total}")
    return _HEADER.pack(total) + payload


class Decoder:
    """Inbound chain: bytes to message (required), then message to message (optional).

    A fresh decoder uses the binary framing. Installing a custom
    bytes-to-message step drops the defaults; a message-to-message step may
    only be added after a custom bytes-to-message step.
    """

    def __init__(self) -> None:
        self.min_len: int = HEADER_LEN
        self.b2m: BytesToMessage | None = bytes_to_frame
        self.m2m: MessageToMessage | None = None
        self._default = True

    @property
    def is_default(self) -> bool:
        return self._default

    def clear(self) -> None:
        """Remove every step."""
        self.min_len = 0
        self.b2m = None
        self.m2m = None
        self._default = False

    def set_bytes_to_message(self, b2m: BytesToMessage) -> None:
        """Install the bytes-to-message step, replacing the defaults."""
        if self._default:
            self.clear()
        if self.m2m is not None:
            raise RuntimeError("bytes-to-message must be set before message-to-message")
        self.b2m = b2m

    def set_message_to_message(self, m2m: MessageToMessage) -> None:
        """Install the optional message-to-message step."""
        if self._default:
            raise RuntimeError("set a custom bytes-to-message step first")
        if self.b2m is None:
            raise RuntimeError("bytes-to-message must be set first")
        if self.m2m is not None:
            raise RuntimeError("message-to-message is already set")
        self.m2m = m2m


class Encoder:
    """Outbound chain: message to frame (required), then frame to bytes (optional).

    Built with a message-to-frame step, the encoder also frames the result
    with :func:`frame_to_bytes`. Installing a new message-to-frame step on
    such a default encoder drops both.
    """

    def __init__(self, m2f: MessageToFrame | None = None) -> None:
        self.m2f: MessageToFrame | None = m2f
        self.f2b: FrameToBytes | None = frame_to_bytes if m2f is not None else None
        self._default = m2f is not None

    @property
    def is_default(self) -> bool:
        return self._default

    def clear(self) -> None:
        """Remove every step."""
        self._default = False
        self.m2f = None
        self.f2b = None

    def set_message_to_frame(self, m2f: MessageToFrame) -> None:
        """Install the message-to-frame step, replacing the defaults."""
        if self._default:
            self.clear()
        if self.f2b is not None:
            raise RuntimeError("frame-to-bytes must be set after message-to-frame")
        self.m2f = m2f

    def set_frame_to_bytes(self, f2b: FrameToBytes) -> None:
        """Install the optional frame-to-bytes step."""
        if self._default:
            raise RuntimeError("set a custom message-to-frame step first")
        if self.m2f is None:
            raise RuntimeError("message-to-frame must be set first")
        if self.f2b is not None:
            raise RuntimeError("frame-to-bytes is already set")
        self.f2b = f2b