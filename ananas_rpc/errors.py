"""Error codes and the exception raised for RPC failures."""

from __future__ import annotations

from enum import IntEnum

__all__ = ["ErrorCode", "RpcError", "CATEGORY", "error_message"]

CATEGORY = "ananas.error"


class ErrorCode(IntEnum):
    """Reasons an RPC operation can fail."""

    NONE = 0

    # both sides
    NO_SUCH_SERVICE = 1
    NO_SUCH_METHOD = 2
    CONNECTION_LOST = 3
    CONNECTION_RESET = 4
    DECODE_FAIL = 5
    ENCODE_FAIL = 6
    TIMEOUT = 7
    TOO_LONG_FRAME = 8

    # server side
    EMPTY_REQUEST = 9
    METHOD_UNDETERMINED = 10
    THROW_IN_METHOD = 11

    # client side
    NO_AVAILABLE_ENDPOINT = 12
    CONNECT_REFUSED = 13


_MESSAGES = {
    ErrorCode.NONE: "ananas.error:OK",
    ErrorCode.NO_SUCH_SERVICE: "ananas.error:NoSuchService",
    ErrorCode.NO_SUCH_METHOD: "ananas.error:NoSuchMethod",
    ErrorCode.CONNECTION_LOST: "ananas.error:ConnectionLost",
    ErrorCode.CONNECTION_RESET: "ananas.error:ConnectionReset",
    ErrorCode.DECODE_FAIL: "ananas.error:DecodeFail",
    ErrorCode.ENCODE_FAIL: "ananas.error:EncodeFail",
    ErrorCode.TIMEOUT: "ananas.error:Timeout",
    ErrorCode.TOO_LONG_FRAME: "ananas.error:TooLongFrame",
    ErrorCode.EMPTY_REQUEST: "ananas.error:EmptyRequest",
    ErrorCode.METHOD_UNDETERMINED: "ananas.error:MethodUndetermined",
    ErrorCode.THROW_IN_METHOD: "ananas.error:ThrowInMethod",
    ErrorCode.NO_AVAILABLE_ENDPOINT: "ananas.error:NoAvailableEndpoint",
    ErrorCode.CONNECT_REFUSED: "ananas.error:ConnectRefused",
}

_BAD_CODE = "Bad ananas.rpc error code"


def error_message(code: int) -> str:
    """Return the category message for an error code, known or not."""
    try:
        return _MESSAGES[ErrorCode(code)]
    except ValueError:
        return _BAD_CODE


class RpcError(Exception):
    """An RPC failure carrying an error code and an optional detail message."""

    def __init__(self, code: int, message: str = "") -> None:
        try:
            self.code: ErrorCode | int = ErrorCode(code)
        except ValueError:
            self.code = int(code)
        self.message = message
        super().__init__(self._describe())

    @property
    def category(self) -> str:
        return CATEGORY

    @property
    def code_message(self) -> str:
        return error_message(self.code)

    def _describe(self) -> str:
        if self.message:
            return f"{self.message}: {self.code_message}"
        return self.code_message

    def __repr__(self) -> str:
        return f"RpcError({self.code!r}, {self.message!r})"