"""Blocking RPC channel over the backend control connection.

The control connection carries one request at a time: a request frame is
written, then exactly one reply frame is read. Replies have no request id, so
concurrent callers are serialized with a lock.
"""

import logging
import socket
import threading
from typing import Any, TypeVar

from roomlink.api.codec import MessageCodec, MessageDecodeError
from roomlink.api.messages import Error
from roomlink.api.protocol import (
    REPLY_HEADER,
    STATUS_OK,
    ErrorCode,
    RpcError,
    RpcRequest,
    RpcResult,
    parse_reply_header,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RpcChannel:
    """Request/response channel to the room backend.

    The channel knows nothing about rooms or endpoints; it turns a tagged
    argument record into a framed request and the reply into an RpcResult.
    It never retries.

    Example:
        with RpcChannel("api.example.com", 7000) as channel:
            result = channel.request(OP_CREATE_ROOM, args, CreateRoomOutput)
            if result.success:
                print(result.result.room_id)
    """

    _DEFAULT_TIMEOUT: float = 10.0
    _READ_CHUNK_SIZE: int = 4096

    def __init__(
        self,
        host: str,
        port: int,
        timeout: float = _DEFAULT_TIMEOUT,
        codec: MessageCodec | None = None,
    ) -> None:
        """Initialize the channel.

        Args:
            host: Control server hostname or IP address.
            port: Control server TCP port.
            timeout: Connect and per-read/write timeout in seconds.
            codec: Record codec (msgpack by default).
        """
        self._host = host
        self._port = port
        self._timeout = timeout
        self._codec = codec or MessageCodec()
        self._sock: socket.socket | None = None
        self._lock = threading.Lock()

    @classmethod
    def from_socket(
        cls,
        sock: socket.socket,
        timeout: float = _DEFAULT_TIMEOUT,
        codec: MessageCodec | None = None,
    ) -> "RpcChannel":
        """Wrap a control socket that was established elsewhere (e.g. after authentication)."""
        try:
            peer = sock.getpeername()
            host, port = str(peer[0]), int(peer[1])
        except (OSError, IndexError, TypeError):
            # socketpair() and unix sockets have no (host, port) peer
            host, port = "", 0
        channel = cls(host, port, timeout=timeout, codec=codec)
        sock.settimeout(timeout)
        channel._sock = sock
        return channel

    @property
    def host(self) -> str:
        """Return control server host."""
        return self._host

    @property
    def port(self) -> int:
        """Return control server port."""
        return self._port

    @property
    def is_connected(self) -> bool:
        """Return True if the control socket is open."""
        return self._sock is not None

    def __enter__(self) -> "RpcChannel":
        """Enter context (connect)."""
        self.connect()
        return self

    def __exit__(self, *args: Any) -> None:
        """Exit context (close)."""
        self.close()

    def connect(self) -> None:
        """Open the control connection.

        Raises:
            ConnectionError: If the connection fails or times out.
        """
        if self._sock is not None:
            return
        try:
            self._sock = socket.create_connection((self._host, self._port), timeout=self._timeout)
        except OSError as e:
            raise ConnectionError(f"Failed to connect to {self._host}:{self._port}: {e}") from e
        logger.info("Control channel connected to %s:%d", self._host, self._port)

    def close(self) -> None:
        """Close the control connection."""
        with self._lock:
            self._close_socket()

    def _close_socket(self) -> None:
        if self._sock is None:
            return
        try:
            self._sock.close()
        except OSError as e:
            logger.debug("Error closing control socket: %s", e)
        self._sock = None
        logger.debug("Control channel closed")

    def _read_exactly(self, size: int) -> bytes:
        if self._sock is None:
            raise ConnectionError("Not connected to server")
        chunks: list[bytes] = []
        remaining = size
        while remaining > 0:
            chunk = self._sock.recv(min(remaining, self._READ_CHUNK_SIZE))
            if not chunk:
                raise ConnectionError("Connection closed by server")
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)

    def _read_reply(self) -> tuple[int, bytes]:
        status, length = parse_reply_header(self._read_exactly(REPLY_HEADER.size))
        return status, self._read_exactly(length)

    def request(self, operation_id: int, args: Any, output_type: type[T]) -> RpcResult:
        """Send one request and wait for its reply.

        Args:
            operation_id: Backend operation selector.
            args: Tagged argument record.
            output_type: Record type of a successful reply.

        Returns:
            RpcResult with the decoded output, or with an RpcError. Channel
            failures are reported with ``error.transport`` set, never raised.
        """
        request = RpcRequest(operation_id, self._codec.encode(args))

        with self._lock:
            if self._sock is None:
                return RpcResult.transport_failure("Not connected to server")
            try:
                self._sock.sendall(request.to_bytes())
                logger.debug("Sent operation %d (%d bytes)", operation_id, len(request.payload))
                status, body = self._read_reply()
            except (OSError, ValueError) as e:
                # Stream position is unknown after a partial exchange
                logger.warning("Operation %d failed on the control channel: %s", operation_id, e)
                self._close_socket()
                return RpcResult.transport_failure(f"Request {operation_id} failed: {e}")

        try:
            if status == STATUS_OK:
                return RpcResult.ok(self._codec.decode(output_type, body))
            error = self._codec.decode(Error, body)
        except MessageDecodeError as e:
            logger.warning("Malformed reply to operation %d: %s", operation_id, e)
            return RpcResult.transport_failure(f"Malformed reply to request {operation_id}: {e}")

        logger.debug("Operation %d rejected: [%d] %s", operation_id, error.error_code, error.message)
        return RpcResult.failed(RpcError(ErrorCode.coerce(error.error_code), error.message))
