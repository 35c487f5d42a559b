"""
This module contains imapstream's functionality related to Transport
Layer Security (TLS a.k.a. SSL).
"""
import socket
import ssl
from logging import getLogger
from typing import Optional

from .transport import PlainTransport

__all__ = ["TLSTransport", "wrap_socket"]

logger = getLogger(__name__)


def wrap_socket(
    sock: socket.socket, ssl_context: Optional[ssl.SSLContext], host: str
) -> ssl.SSLSocket:
    if ssl_context is None:
        ssl_context = ssl.create_default_context()
    return ssl_context.wrap_socket(sock, server_hostname=host)


class TLSTransport(PlainTransport):
    """TLS wrapped TCP stream.

    ``ssl.SSLSocket`` offers the same recv/sendall interface as a plain
    socket so reading and writing are inherited; only shutdown differs.
    """

    sock: ssl.SSLSocket

    def close(self) -> None:
        try:
            self.sock.unwrap()
        except (OSError, ValueError) as e:
            logger.debug("TLS shutdown failed: %s", e)
        super().close()
