"""
Tag generation and command line serialisation.
"""
from typing import Union

from .util import to_bytes

__all__ = ["TagGenerator", "encode_command", "quote", "join_message_ids"]

DEFAULT_TAG_PREFIX = "a"

# Characters which may not appear in an atom (RFC 3501 section 9), plus
# the wildcard characters that are only valid inside LIST patterns.
_ATOM_SPECIALS = frozenset('(){ %*"\\]')


class TagGenerator:
    """Produces ``<prefix><n>`` tags with *n* strictly increasing from 1."""

    def __init__(self, prefix: str = DEFAULT_TAG_PREFIX, start: int = 1):
        if not prefix or any(c in _ATOM_SPECIALS or c.isspace() for c in prefix):
            raise ValueError(f"invalid tag prefix: {prefix!r}")
        self.prefix = prefix
        self.counter = start

    def next_tag(self) -> str:
        tag = f"{self.prefix}{self.counter}"
        self.counter += 1
        return tag


def encode_command(tag: str, command: Union[str, bytes]) -> bytes:
    """Return the wire form ``<tag> <command>\\r\\n``."""
    command = to_bytes(command, "utf-8")
    if b"\r" in command or b"\n" in command:
        raise ValueError("command text may not contain CR or LF")
    return to_bytes(tag) + b" " + command + b"\r\n"


def quote(arg: str) -> str:
    """Quote *arg* if it can't be sent as an IMAP atom.

    If the input requires no quoting it is returned unchanged. Atoms and
    quoted strings are 7-bit, so non-ASCII input raises ``ValueError``.
    """
    if not arg.isascii():
        raise ValueError(f"{arg!r} can't be sent as an atom or quoted string")
    if arg and not any(
        c in _ATOM_SPECIALS or ord(c) < 0x20 or ord(c) == 0x7F for c in arg
    ):
        return arg
    escaped = arg.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def join_message_ids(messages) -> str:
    """Convert a sequence of message ids or a single integer message id
    into a sequence set for use with IMAP commands.

    Strings are assumed to already be a sequence set (e.g. ``"1:*"``) and
    are returned unchanged.
    """
    if isinstance(messages, (str, bytes)):
        return to_bytes(messages).decode("ascii")
    if isinstance(messages, int):
        return str(messages)
    ids = [str(m) for m in messages]
    if not ids:
        raise ValueError("no message ids given")
    return ",".join(ids)
