"""Shared fixtures for roomlink tests."""

import socket
import threading
from collections.abc import Callable, Generator

import pytest

from roomlink.api.codec import MessageCodec
from roomlink.api.messages import Error
from roomlink.api.protocol import REPLY_HEADER, REQUEST_HEADER, STATUS_ERROR, STATUS_OK


def recv_exactly(sock: socket.socket, size: int) -> bytes:
    """Read exactly size bytes from a socket (test helper)."""
    buf = b""
    while len(buf) < size:
        chunk = sock.recv(size - len(buf))
        if not chunk:
            raise ConnectionError("peer closed")
        buf += chunk
    return buf


def read_request(sock: socket.socket) -> tuple[int, bytes]:
    """Read one request frame, returning (operation_id, payload)."""
    operation_id, length = REQUEST_HEADER.unpack(recv_exactly(sock, REQUEST_HEADER.size))
    return operation_id, recv_exactly(sock, length)


def ok_reply(record: object) -> bytes:
    """Build a success reply frame for a record."""
    payload = MessageCodec().encode(record)
    return REPLY_HEADER.pack(STATUS_OK, len(payload)) + payload


def error_reply(code: int, message: str) -> bytes:
    """Build an error reply frame."""
    payload = MessageCodec().encode(Error(error_code=code, message=message))
    return REPLY_HEADER.pack(STATUS_ERROR, len(payload)) + payload


class FakeBackend:
    """Serves scripted replies on the server end of a socket pair.

    Each handler receives (operation_id, payload) and returns the raw reply
    bytes to send, or None to close the connection instead.
    """

    def __init__(self, sock: socket.socket) -> None:
        self.sock = sock
        self.requests: list[tuple[int, bytes]] = []
        self._thread: threading.Thread | None = None

    def serve(self, *handlers: Callable[[int, bytes], bytes | None]) -> None:
        """Answer one request per handler in a background thread."""

        def run() -> None:
            try:
                for handler in handlers:
                    request = read_request(self.sock)
                    self.requests.append(request)
                    reply = handler(*request)
                    if reply is None:
                        self.sock.close()
                        return
                    self.sock.sendall(reply)
            except OSError:
                pass

        self._thread = threading.Thread(target=run, daemon=True)
        self._thread.start()

    def join(self, timeout: float = 5.0) -> None:
        """Wait for the scripted exchange to finish."""
        if self._thread:
            self._thread.join(timeout=timeout)


@pytest.fixture
def socket_pair() -> Generator[tuple[socket.socket, socket.socket], None, None]:
    """Provide a connected (client, server) socket pair."""
    client, server = socket.socketpair()
    yield client, server
    client.close()
    server.close()


@pytest.fixture
def backend(socket_pair: tuple[socket.socket, socket.socket]) -> FakeBackend:
    """Provide a scripted backend on the server end of socket_pair."""
    return FakeBackend(socket_pair[1])


@pytest.fixture
def listening_socket() -> Generator[socket.socket, None, None]:
    """Provide a TCP socket listening on an ephemeral localhost port."""
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    server.bind(("127.0.0.1", 0))
    server.listen(8)
    yield server
    server.close()


@pytest.fixture
def closed_port() -> int:
    """Return a localhost port with nothing listening on it."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port
