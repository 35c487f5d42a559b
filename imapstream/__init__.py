# version_info provides the version number in programmer friendly way.
# The 4th part will be either alpha, beta or final.
version_info = (0, 3, 0, "final")


def _imapstream_version_string(vinfo):
    major, minor, micro, releaselevel = vinfo
    v = f"{major}.{minor}.{micro}"
    if releaselevel != "final":
        v += "-" + releaselevel
    return v


__version__ = _imapstream_version_string(version_info)

from .connection import connect, IMAPConnection
from .exceptions import (
    AbortError,
    CommandFailedError,
    IllegalStateError,
    IMAPStreamError,
    LoginError,
    ProtocolError,
)
from .response import Line, Literal, ResponseBatch
from .response_parser import MailboxStatus
from .transport import SocketTimeout

__all__ = [
    "connect",
    "IMAPConnection",
    "AbortError",
    "CommandFailedError",
    "IllegalStateError",
    "IMAPStreamError",
    "LoginError",
    "ProtocolError",
    "Line",
    "Literal",
    "ResponseBatch",
    "MailboxStatus",
    "SocketTimeout",
    "__version__",
]
