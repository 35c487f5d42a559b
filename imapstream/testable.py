from typing import List, Optional

from .connection import IMAPConnection
from .transport import DEFAULT_READ_SIZE, Transport


class ScriptedTransport(Transport):
    """Transport replaying canned server output.

    Data passed to :py:meth:`feed` is handed out by :py:meth:`read` in
    pieces of at most *chunk_size* bytes, and everything the client
    writes is accumulated in *sent*. Reading past the end of the script
    returns ``b""``, which the client sees as the server closing the
    connection.
    """

    def __init__(self, data: bytes = b"", chunk_size: Optional[int] = None):
        self.chunk_size = chunk_size
        self.sent = b""
        self.writes: List[bytes] = []
        self.closed = False
        self._pending = bytearray(data)

    def feed(self, data: bytes) -> None:
        self._pending += data

    def read(self, size: int = DEFAULT_READ_SIZE) -> bytes:
        if self.chunk_size is not None:
            size = min(size, self.chunk_size)
        data = bytes(self._pending[:size])
        del self._pending[:size]
        return data

    def write(self, data: bytes) -> int:
        if self.closed:
            raise BrokenPipeError("write on closed transport")
        self.writes.append(data)
        self.sent += data
        return len(data)

    def close(self) -> None:
        self.closed = True

    def fileno(self) -> int:
        return -1


class TestableIMAPConnection(IMAPConnection):
    """:py:class:`imapstream.IMAPConnection` running over a
    :py:class:`ScriptedTransport` instead of a socket.

    This class should only be used in tests, where you can drive the
    client with exact server output without a real IMAP server.
    """

    __test__ = False

    def __init__(
        self,
        greeting: bytes = b"* OK IMAP4rev1 Service Ready\r\n",
        chunk_size: Optional[int] = None,
        **kwargs,
    ) -> None:
        self.transport = ScriptedTransport(greeting, chunk_size=chunk_size)
        kwargs.setdefault("ssl", False)
        super().__init__("somehost", **kwargs)

    def _create_transport(self) -> ScriptedTransport:
        return self.transport

    def feed(self, data: bytes) -> None:
        self.transport.feed(data)
