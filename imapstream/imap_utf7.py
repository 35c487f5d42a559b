"""
Modified UTF-7 encoding of mailbox names (RFC 3501 section 5.1.3).
"""
import base64
from typing import List

__all__ = ["encode"]


def _encode_run(chars: List[str]) -> str:
    data = "".join(chars).encode("utf-16be")
    b64 = base64.b64encode(data).rstrip(b"=").replace(b"/", b",")
    return "&" + b64.decode("ascii") + "-"


def encode(s: str) -> str:
    """Encode a mailbox name using IMAP modified UTF-7.

    Printable US-ASCII passes through unchanged except ``&``, which
    becomes ``&-``. Runs of any other characters are base64 encoded
    UTF-16 between ``&`` and ``-``.
    """
    result = []
    pending: List[str] = []
    for c in s:
        if 0x20 <= ord(c) <= 0x7E:
            if pending:
                result.append(_encode_run(pending))
                pending = []
            result.append("&-" if c == "&" else c)
        else:
            pending.append(c)
    if pending:
        result.append(_encode_run(pending))
    return "".join(result)
