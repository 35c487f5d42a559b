"""
Byte stream transports carrying an IMAP session.

Callers program against :py:class:`Transport` only; whether the stream
is plain TCP or TLS wrapped is decided once, when it is created.
"""
import dataclasses
import socket
from logging import getLogger
from typing import Optional, Union

logger = getLogger(__name__)

__all__ = ["Transport", "PlainTransport", "SocketTimeout", "create_transport"]

DEFAULT_READ_SIZE = 16384


@dataclasses.dataclass
class SocketTimeout:
    """Represents timeout configuration for an IMAP connection.

    :ivar connect: maximum time to wait for a connection attempt to remote server
    :ivar read: maximum time to wait for performing a read/write operation

    As an example, ``SocketTimeout(connect=15, read=60)`` will make the socket
    timeout if the connection takes more than 15 seconds to establish but
    read/write operations can take up to 60 seconds once the connection is done.
    """

    connect: Optional[float]
    read: Optional[float]


def normalise_timeout(timeout: Union[None, float, SocketTimeout]) -> SocketTimeout:
    if isinstance(timeout, SocketTimeout):
        return timeout
    return SocketTimeout(timeout, timeout)


class Transport:
    """A blocking, bidirectional byte stream.

    Subclasses implement :py:meth:`read`, :py:meth:`write` and
    :py:meth:`close`. Any ``OSError`` raised by the underlying socket is
    propagated unchanged.
    """

    def read(self, size: int = DEFAULT_READ_SIZE) -> bytes:
        """Return at most *size* bytes, blocking until at least one is
        available. An empty result means the peer closed the stream."""
        raise NotImplementedError

    def write(self, data: bytes) -> int:
        """Write all of *data*, returning the number of bytes written."""
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError

    def fileno(self) -> int:
        raise NotImplementedError


class PlainTransport(Transport):
    """Unencrypted TCP stream."""

    def __init__(self, sock: socket.socket):
        self.sock = sock

    def read(self, size: int = DEFAULT_READ_SIZE) -> bytes:
        return self.sock.recv(size)

    def write(self, data: bytes) -> int:
        self.sock.sendall(data)
        return len(data)

    def close(self) -> None:
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            # The peer may already have gone away
            logger.debug("socket shutdown failed: %s", e)
        finally:
            self.sock.close()

    def fileno(self) -> int:
        return self.sock.fileno()


def _connect_socket(host: str, port: int, timeout: SocketTimeout) -> socket.socket:
    sock = socket.create_connection((host, port), timeout.connect)
    sock.settimeout(timeout.read)
    return sock


def create_transport(
    host: str,
    port: int,
    ssl: bool = False,
    ssl_context=None,
    timeout: Union[None, float, SocketTimeout] = None,
) -> Transport:
    """Open a TCP connection to *host*:*port* and return it as a
    :py:class:`Transport`, wrapped in TLS when *ssl* is true.
    """
    timeout = normalise_timeout(timeout)
    sock = _connect_socket(host, port, timeout)
    if not ssl:
        return PlainTransport(sock)

    from .tls import TLSTransport, wrap_socket

    try:
        tls_sock = wrap_socket(sock, ssl_context, host)
    except OSError:
        sock.close()
        raise
    return TLSTransport(tls_sock)
