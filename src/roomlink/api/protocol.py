"""Binary RPC protocol types for the room backend control channel.

Requests and replies are length-prefixed frames:

- request: ``[u16 operation_id][u32 length][payload]``
- reply:   ``[u8 status][u32 length][payload]`` where status 1 carries the
  operation output and status 0 carries an ``Error`` record.

Replies carry no request id; they are matched to requests by arrival order.
"""

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

# Operation identifiers understood by the backend
OP_CREATE_ROOM = 21
OP_JOIN_ROOM = 24
OP_CREATE_JOIN_ROOM = 27

REQUEST_HEADER = struct.Struct(">HI")
REPLY_HEADER = struct.Struct(">BI")

STATUS_ERROR = 0
STATUS_OK = 1

# Upper bound for a single reply payload
MAX_PAYLOAD_SIZE = 16 * 1024 * 1024


class ErrorCode(IntEnum):
    """Error codes reported by the backend."""

    UNSUPPORTED_METHOD = 0
    GENERAL_ERROR = 1
    INTERNAL_ERROR = 2
    ACCESS_DENIED = 3
    INVALID_MESSAGE_FORMAT = 4
    MISSING_VALUE = 5
    GAME_REQUIRED = 6
    EXTERNAL_ERROR = 7
    ARGUMENT_OUT_OF_RANGE = 8
    GAME_DISABLED = 9
    UNKNOWN_GAME = 10
    UNKNOWN_CONNECTION = 11
    INVALID_AUTH = 12
    NO_SERVERS_AVAILABLE = 13
    ROOM_DATA_TOO_LARGE = 14
    ROOM_ALREADY_EXISTS = 15
    UNKNOWN_SERVER_TYPE = 16
    UNKNOWN_ROOM = 17
    MISSING_ROOM_ID = 18
    ROOM_IS_FULL = 19

    @classmethod
    def coerce(cls, value: int) -> "ErrorCode | int":
        """Return the matching member, or the raw int for codes this client doesn't know."""
        try:
            return cls(value)
        except ValueError:
            return value


class RoomLinkError(Exception):
    """Base class for all errors raised by roomlink."""


@dataclass(frozen=True)
class RpcError:
    """An error reply, or a local failure of the control channel.

    Attributes:
        code: Backend error code (GENERAL_ERROR for transport failures).
        message: Human-readable description.
        transport: True if the failure happened on the channel itself
            rather than being reported by the backend.
    """

    code: ErrorCode | int
    message: str
    transport: bool = False

    def __str__(self) -> str:
        """Return error message representation."""
        name = self.code.name if isinstance(self.code, ErrorCode) else str(self.code)
        return f"[{name}] {self.message}"


class TransportError(RoomLinkError):
    """The control channel failed while a request was in flight."""

    def __init__(self, error: RpcError) -> None:
        self.error = error
        super().__init__(f"Transport failure: {error.message}")


class ApplicationError(RoomLinkError):
    """The backend rejected a well-formed request."""

    def __init__(self, code: ErrorCode | int, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(str(RpcError(code, message)))


def raise_for_error(error: RpcError | None) -> None:
    """Raise the exception matching an RpcError (no-op for None)."""
    if error is None:
        return
    if error.transport:
        raise TransportError(error)
    raise ApplicationError(error.code, error.message)


@dataclass(frozen=True)
class RpcRequest:
    """A request addressed to one backend operation.

    Attributes:
        operation_id: Operation selector (21, 24, 27, ...).
        payload: Encoded arguments.
    """

    operation_id: int
    payload: bytes

    def to_bytes(self) -> bytes:
        """Return the framed request."""
        return REQUEST_HEADER.pack(self.operation_id, len(self.payload)) + self.payload


@dataclass(frozen=True)
class RpcResult:
    """Outcome of a request: either a decoded result or an error.

    Attributes:
        success: True if the backend accepted the request.
        result: Decoded output (None on failure).
        error: Error details (None on success).
    """

    success: bool
    result: Any = None
    error: RpcError | None = None

    @classmethod
    def ok(cls, result: Any) -> "RpcResult":
        """Create a successful result."""
        return cls(success=True, result=result)

    @classmethod
    def failed(cls, error: RpcError) -> "RpcResult":
        """Create a failed result."""
        return cls(success=False, error=error)

    @classmethod
    def transport_failure(cls, message: str) -> "RpcResult":
        """Create a failed result for a channel-level problem."""
        return cls.failed(RpcError(ErrorCode.GENERAL_ERROR, message, transport=True))


def parse_reply_header(header: bytes) -> tuple[int, int]:
    """Parse a reply header into (status, payload length).

    Raises:
        ValueError: If the header is malformed or the length is out of bounds.
    """
    if len(header) != REPLY_HEADER.size:
        raise ValueError(f"Reply header must be {REPLY_HEADER.size} bytes, got {len(header)}")
    status, length = REPLY_HEADER.unpack(header)
    if status not in (STATUS_OK, STATUS_ERROR):
        raise ValueError(f"Unknown reply status {status}")
    if length > MAX_PAYLOAD_SIZE:
        raise ValueError(f"Reply payload too large: {length} bytes")
    return status, length
