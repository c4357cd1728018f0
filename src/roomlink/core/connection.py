"""Data connection to a room's game server.

A Connection is created only once an endpoint has been selected. It owns one
socket to one resolved endpoint and authenticates with the join key issued by
the backend. Messages on the connection are msgpack arrays ``[type, *args]``
framed with a 4-byte big-endian length.
"""

import logging
import socket
import ssl
import struct
import threading
from typing import Any

import msgpack

from roomlink.models.endpoint import ResolvedEndpoint

logger = logging.getLogger(__name__)

DEFAULT_CONNECT_TIMEOUT = 10.0
MAX_MESSAGE_SIZE = 1024 * 1024

# Sent once before any message to select the binary protocol
_PROTOCOL_BYTE = b"\x00"
_LENGTH = struct.Struct(">I")


class Connection:
    """A live connection to a joined room.

    The socket is opened and the join message sent during construction; a
    Connection object only exists if both succeeded.

    Example:
        with multiplayer.join_room("lobby") as connection:
            connection.send_message("chat", "hello")
            kind, args = connection.receive_message()
    """

    def __init__(
        self,
        endpoint: ResolvedEndpoint,
        join_key: str,
        *,
        secure: bool = False,
        server_hostname: str | None = None,
        timeout: float = DEFAULT_CONNECT_TIMEOUT,
    ) -> None:
        """Connect to the endpoint and join the room.

        Args:
            endpoint: Resolved game server endpoint.
            join_key: Join credential issued by the backend.
            secure: Wrap the socket in TLS.
            server_hostname: Name to verify the TLS certificate against; when
                omitted only the certificate chain is verified.
            timeout: Connect timeout in seconds.

        Raises:
            ConnectionError: If the connection or the join handshake fails.
        """
        self._endpoint = endpoint
        self._join_key = join_key
        self._secure = secure
        self._send_lock = threading.Lock()
        self._sock: socket.socket | None = None

        sock: socket.socket | None = None
        try:
            sock = socket.create_connection(endpoint.socket_address, timeout=timeout)
            if secure:
                context = ssl.create_default_context()
                if server_hostname is None:
                    context.check_hostname = False
                sock = context.wrap_socket(sock, server_hostname=server_hostname)
            sock.sendall(_PROTOCOL_BYTE)
            sock.sendall(_encode("join", join_key))
            # Reads block until data arrives; the timeout only bounds the handshake
            sock.settimeout(None)
        except OSError as e:
            if sock is not None:
                sock.close()
            raise ConnectionError(f"Failed to connect to room server {endpoint}: {e}") from e

        self._sock = sock
        logger.info("Connected to room server %s%s", endpoint, " (TLS)" if secure else "")

    @property
    def endpoint(self) -> ResolvedEndpoint:
        """Return the endpoint this connection is bound to."""
        return self._endpoint

    @property
    def join_key(self) -> str:
        """Return the join credential used on this connection."""
        return self._join_key

    @property
    def secure(self) -> bool:
        """Return True if the connection is encrypted."""
        return self._secure

    @property
    def is_connected(self) -> bool:
        """Return True until the connection is closed or fails."""
        return self._sock is not None

    def __enter__(self) -> "Connection":
        """Enter context."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Exit context (close)."""
        self.close()

    def __repr__(self) -> str:
        state = "connected" if self.is_connected else "closed"
        return f"<Connection {self._endpoint} {state}>"

    def send_message(self, message_type: str, *args: Any) -> None:
        """Send a message to the room.

        Raises:
            ConnectionError: If the connection is closed or the write fails.
        """
        data = _encode(message_type, *args)
        with self._send_lock:
            if self._sock is None:
                raise ConnectionError("Connection is closed")
            try:
                self._sock.sendall(data)
            except OSError as e:
                self._fail(e)
                raise ConnectionError(f"Send to {self._endpoint} failed: {e}") from e

    def receive_message(self) -> tuple[str, list[Any]]:
        """Block until the next message from the room arrives.

        Returns:
            Tuple of (message type, arguments).

        Raises:
            ConnectionError: If the connection is closed, fails or the
                server sends a malformed message.
        """
        if self._sock is None:
            raise ConnectionError("Connection is closed")
        try:
            (length,) = _LENGTH.unpack(self._read_exactly(_LENGTH.size))
            if length > MAX_MESSAGE_SIZE:
                raise ValueError(f"Message too large: {length} bytes")
            raw = msgpack.unpackb(self._read_exactly(length), raw=False)
            if not isinstance(raw, list) or not raw or not isinstance(raw[0], str):
                raise ValueError("Message must be an array starting with its type")
        except (OSError, ValueError) as e:
            self._fail(e)
            raise ConnectionError(f"Receive from {self._endpoint} failed: {e}") from e
        return raw[0], raw[1:]

    def close(self) -> None:
        """Close the connection."""
        if self._sock is None:
            return
        sock, self._sock = self._sock, None
        try:
            sock.close()
        except OSError as e:
            logger.debug("Error closing room connection: %s", e)
        logger.info("Disconnected from room server %s", self._endpoint)

    def _fail(self, error: Exception) -> None:
        logger.warning("Room connection to %s lost: %s", self._endpoint, error)
        self.close()

    def _read_exactly(self, size: int) -> bytes:
        sock = self._sock
        if sock is None:
            raise ConnectionError("Connection is closed")
        buf = bytearray()
        while len(buf) < size:
            chunk = sock.recv(size - len(buf))
            if not chunk:
                raise ConnectionError("Connection closed by server")
            buf.extend(chunk)
        return bytes(buf)


def _encode(message_type: str, *args: Any) -> bytes:
    body = msgpack.packb([message_type, *args], use_bin_type=True)
    return _LENGTH.pack(len(body)) + body
