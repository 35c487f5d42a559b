"""
Response units, the batch collected for one command, and classification
of the tagged completion line.
"""
import dataclasses
from typing import List, NamedTuple, Optional, Union

from .exceptions import CommandFailedError, ProtocolError
from .util import to_bytes, to_unicode

__all__ = [
    "Line",
    "Literal",
    "ResponseBatch",
    "TaggedStatus",
    "first_token",
    "is_tagged_completion",
    "parse_tagged_line",
    "parse_status",
]


@dataclasses.dataclass(frozen=True)
class Line:
    """A CRLF terminated line, terminator included."""

    text: bytes

    @property
    def raw(self) -> bytes:
        return self.text


@dataclasses.dataclass(frozen=True)
class Literal:
    """The bytes of a ``{n}`` literal, exactly *n* of them."""

    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def raw(self) -> bytes:
        return self.data


ResponseUnit = Union[Line, Literal]


def first_token(line: bytes) -> bytes:
    """Return the text before the first run of whitespace."""
    parts = line.split(None, 1)
    return parts[0] if parts else b""


def is_tagged_completion(line: bytes, tag: Union[str, bytes]) -> bool:
    """Return True if the first token of *line* is exactly *tag*.

    ``a1`` must not complete on a line starting with ``a10``, so this is
    a token comparison rather than a prefix test.
    """
    return first_token(line) == to_bytes(tag)


@dataclasses.dataclass
class ResponseBatch:
    """All units received for one command, the tagged line last."""

    tag: str
    units: List[ResponseUnit] = dataclasses.field(default_factory=list)

    @property
    def tagged_line(self) -> Optional[bytes]:
        if self.units and isinstance(self.units[-1], Line):
            if is_tagged_completion(self.units[-1].text, self.tag):
                return self.units[-1].text
        return None

    @property
    def untagged(self) -> List[ResponseUnit]:
        if self.tagged_line is None:
            return list(self.units)
        return self.units[:-1]

    def lines(self) -> List[bytes]:
        """Untagged line texts, literals left out."""
        return [unit.text for unit in self.untagged if isinstance(unit, Line)]


class TaggedStatus(NamedTuple):
    tag: str
    status: str
    text: str


def parse_tagged_line(line: bytes) -> TaggedStatus:
    """Split a tagged completion line into tag, status and text."""
    parts = line.rstrip(b"\r\n").split(None, 2)
    if len(parts) < 2:
        raise ProtocolError(f"malformed tagged response: {to_unicode(line).rstrip()}")
    text = parts[2] if len(parts) > 2 else b""
    return TaggedStatus(to_unicode(parts[0]), to_unicode(parts[1]).upper(), to_unicode(text))


def parse_status(batch: ResponseBatch) -> str:
    """Check the tagged completion line of *batch*.

    Returns the server text on OK, raises
    :py:exc:`~imapstream.exceptions.CommandFailedError` for any other
    status and :py:exc:`~imapstream.exceptions.ProtocolError` when the
    line can't be decomposed.
    """
    line = batch.tagged_line
    if line is None:
        raise ProtocolError(f"no tagged response for {batch.tag}")
    status = parse_tagged_line(line)
    if status.status != "OK":
        raise CommandFailedError(status.text, status=status.status, line=line)
    return status.text
