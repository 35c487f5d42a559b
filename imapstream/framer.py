"""
Splits the byte stream coming from a :py:class:`~imapstream.transport.Transport`
into CRLF terminated lines and byte counted literals.

The framer only knows how to read; deciding that a line announced a
literal (see :py:func:`literal_size`) and asking for it is the job of
the caller.
"""
import re
from logging import getLogger
from typing import Optional

from .exceptions import AbortError, ProtocolError
from .transport import DEFAULT_READ_SIZE, Transport

logger = getLogger(__name__)

__all__ = ["Framer", "literal_size", "CRLF", "DEFAULT_MAX_LINE_LENGTH"]

CRLF = b"\r\n"

# Same limit as the standard library's imaplib
DEFAULT_MAX_LINE_LENGTH = 1000000

_RE_LITERAL = re.compile(rb"\{(\d+)\}\r\n\Z")


def literal_size(line: bytes) -> Optional[int]:
    """Return the size announced by a trailing ``{n}`` on *line*, or
    ``None`` if the line does not end with a literal announcement.
    """
    m = _RE_LITERAL.search(line)
    if m is None:
        return None
    return int(m.group(1))


class Framer:
    """Buffered reader of lines and literals.

    Bytes read from the transport beyond what a call needs are kept for
    the next call, so a literal that arrives in the same packet as the
    line announcing it is never lost.
    """

    def __init__(
        self,
        transport: Transport,
        max_line_length: int = DEFAULT_MAX_LINE_LENGTH,
        read_size: int = DEFAULT_READ_SIZE,
    ):
        self.transport = transport
        self.max_line_length = max_line_length
        self.read_size = read_size
        self._buffer = bytearray()

    def _fill(self) -> None:
        data = self.transport.read(self.read_size)
        if not data:
            raise AbortError("socket error: EOF")
        self._buffer += data

    def read_line(self) -> bytes:
        """Read up to and including the next CRLF.

        A lone LF does not end a line. The returned bytes include the
        terminator.
        """
        start = 0
        while True:
            end = self._buffer.find(CRLF, start)
            if end != -1:
                end += len(CRLF)
                line = bytes(self._buffer[:end])
                del self._buffer[:end]
                return line
            if len(self._buffer) > self.max_line_length:
                raise ProtocolError(
                    f"got more than {self.max_line_length} bytes without a line terminator"
                )
            # CR may be the last byte buffered; rescan it once the LF arrives
            start = max(len(self._buffer) - 1, 0)
            self._fill()

    def read_literal(self, size: int) -> bytes:
        """Read exactly *size* bytes, whatever they contain."""
        while len(self._buffer) < size:
            self._fill()
        data = bytes(self._buffer[:size])
        del self._buffer[:size]
        logger.debug("read literal size %d", size)
        return data

    @property
    def buffered(self) -> int:
        return len(self._buffer)
