"""
Exceptions raised by imapstream.

Errors coming from the socket layer are not wrapped: they propagate as
the ``OSError`` subclasses the standard library raises.
"""


class IMAPStreamError(Exception):
    """Base class for all imapstream errors."""


class CommandFailedError(IMAPStreamError):
    """The server completed a command with a status other than OK.

    :ivar status: the status token, e.g. ``"NO"`` or ``"BAD"``
    :ivar text: the human readable text following the status token
    :ivar line: the complete tagged line as received
    """

    def __init__(self, text, status=None, line=None):
        super().__init__(text)
        self.text = text
        self.status = status
        self.line = line


class LoginError(CommandFailedError):
    """The server rejected the LOGIN command."""


class ProtocolError(IMAPStreamError):
    """The server response could not be decomposed into the expected
    grammar."""


class AbortError(IMAPStreamError, OSError):
    """The server closed the connection while a response was pending."""


class IllegalStateError(IMAPStreamError):
    """A command was issued while the connection could not accept one."""
