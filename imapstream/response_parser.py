"""
Typed parsing of the untagged lines collected for a command.

Each untagged line is classified once into one of a closed set of
kinds (see :py:class:`LineKind`); the SELECT/EXAMINE, CAPABILITY and
FETCH RFC822 parsers are folds over those classifications.
"""
import dataclasses
import enum
import re
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple, Union

from .exceptions import ProtocolError
from .response import Line, Literal, ResponseBatch, parse_status
from .util import assert_imap_protocol, to_unicode

__all__ = [
    "LineKind",
    "UntaggedLine",
    "FetchAnnouncement",
    "MailboxStatus",
    "classify_line",
    "parse_mailbox_status",
    "parse_capabilities",
    "extract_fetch_literals",
]

MAX_NUMBER = 2**32 - 1


class LineKind(enum.Enum):
    EXISTS = "EXISTS"
    RECENT = "RECENT"
    FLAGS = "FLAGS"
    PERMANENT_FLAGS = "PERMANENTFLAGS"
    UNSEEN = "UNSEEN"
    UID_VALIDITY = "UIDVALIDITY"
    UID_NEXT = "UIDNEXT"
    CAPABILITY = "CAPABILITY"
    FETCH_RFC822 = "FETCH"
    OTHER = "OTHER"


class FetchAnnouncement(NamedTuple):
    seq: int
    uid: Optional[int]
    size: int


class UntaggedLine(NamedTuple):
    kind: LineKind
    value: Union[None, int, str, List[str], FetchAnnouncement]


# Status response codes are accepted with or without the leading "* ".
_CODE_PREFIX = rb"^(?:\*\s+)?OK\s+\["

_PATTERNS: Tuple[Tuple[LineKind, "re.Pattern[bytes]"], ...] = tuple(
    (kind, re.compile(pattern, re.IGNORECASE))
    for kind, pattern in (
        (LineKind.EXISTS, rb"^\*\s+(\S+)\s+EXISTS\r\n\Z"),
        (LineKind.RECENT, rb"^\*\s+(\S+)\s+RECENT\r\n\Z"),
        (LineKind.FLAGS, rb"^\*\s+FLAGS\s+(.+)\r\n\Z"),
        (LineKind.PERMANENT_FLAGS, _CODE_PREFIX + rb"PERMANENTFLAGS\s+([^\]]+)\].*\r\n\Z"),
        (LineKind.UNSEEN, _CODE_PREFIX + rb"UNSEEN\s+([^\]\s]+)\].*\r\n\Z"),
        (LineKind.UID_VALIDITY, _CODE_PREFIX + rb"UIDVALIDITY\s+([^\]\s]+)\].*\r\n\Z"),
        (LineKind.UID_NEXT, _CODE_PREFIX + rb"UIDNEXT\s+([^\]\s]+)\].*\r\n\Z"),
        (LineKind.CAPABILITY, rb"^\*\s+CAPABILITY\s+(.*)\r\n\Z"),
        (
            LineKind.FETCH_RFC822,
            rb"^\*\s+(\d+)\s+FETCH\s+\((|.*\s)RFC822\s+\{(\d+)\}\r\n\Z",
        ),
    )
)

_NUMERIC_KINDS = frozenset(
    (LineKind.EXISTS, LineKind.RECENT, LineKind.UNSEEN, LineKind.UID_VALIDITY, LineKind.UID_NEXT)
)

_RE_UID_ITEM = re.compile(rb"\bUID\s+(\d+)", re.IGNORECASE)


def _parse_number(value: bytes, line: bytes) -> int:
    if not value.isdigit():
        raise ProtocolError(
            f"expected a number, got {to_unicode(value)!r} in {to_unicode(line).rstrip()!r}"
        )
    number = int(value)
    if number > MAX_NUMBER:
        raise ProtocolError(f"number out of range in {to_unicode(line).rstrip()!r}")
    return number


def classify_line(line: bytes, kinds: Optional[Iterable[LineKind]] = None) -> UntaggedLine:
    """Classify one untagged line, converting its payload.

    Lines matching none of the known forms are returned as
    ``LineKind.OTHER``. When *kinds* is given only those forms are
    tried, so a malformed line of any other kind is not an error.
    """
    wanted = frozenset(kinds) if kinds is not None else None
    for kind, pattern in _PATTERNS:
        if wanted is not None and kind not in wanted:
            continue
        m = pattern.match(line)
        if m is None:
            continue
        if kind in _NUMERIC_KINDS:
            return UntaggedLine(kind, _parse_number(m.group(1), line))
        if kind is LineKind.CAPABILITY:
            return UntaggedLine(kind, to_unicode(m.group(1)).split(" "))
        if kind is LineKind.FETCH_RFC822:
            seq, items, size = m.groups()
            uid = _RE_UID_ITEM.search(items)
            return UntaggedLine(
                kind,
                FetchAnnouncement(
                    _parse_number(seq, line),
                    _parse_number(uid.group(1), line) if uid is not None else None,
                    int(size),
                ),
            )
        return UntaggedLine(kind, to_unicode(m.group(1)))
    return UntaggedLine(LineKind.OTHER, None)


@dataclasses.dataclass
class MailboxStatus:
    """Mailbox state reported by SELECT or EXAMINE.

    Fields the server did not report keep their defaults.
    """

    flags: str = ""
    exists: int = 0
    recent: int = 0
    unseen: Optional[int] = None
    permanent_flags: Optional[str] = None
    uid_next: Optional[int] = None
    uid_validity: Optional[int] = None


_MAILBOX_FIELDS = {
    LineKind.EXISTS: "exists",
    LineKind.RECENT: "recent",
    LineKind.FLAGS: "flags",
    LineKind.PERMANENT_FLAGS: "permanent_flags",
    LineKind.UNSEEN: "unseen",
    LineKind.UID_VALIDITY: "uid_validity",
    LineKind.UID_NEXT: "uid_next",
}


def parse_mailbox_status(batch: ResponseBatch) -> MailboxStatus:
    """Build a :py:class:`MailboxStatus` from a SELECT or EXAMINE response.

    The tagged status is checked first, so a NO response raises
    :py:exc:`~imapstream.exceptions.CommandFailedError`.
    """
    parse_status(batch)
    mailbox = MailboxStatus()
    for line in batch.lines():
        untagged = classify_line(line)
        field = _MAILBOX_FIELDS.get(untagged.kind)
        if field is not None:
            setattr(mailbox, field, untagged.value)
    return mailbox


def parse_capabilities(batch: ResponseBatch) -> List[str]:
    """Return the capability tokens of the untagged CAPABILITY line."""
    parse_status(batch)
    for line in batch.lines():
        untagged = classify_line(line, (LineKind.CAPABILITY,))
        if untagged.kind is LineKind.CAPABILITY:
            return untagged.value
    raise ProtocolError("Error parsing capabilities response: no CAPABILITY line")


def extract_fetch_literals(batch: ResponseBatch, uid: bool = False) -> Dict[int, bytes]:
    """Map each ``* <seq> FETCH (... RFC822 {n}`` response to its literal.

    Other data items such as FLAGS may precede RFC822. Keys are
    sequence numbers, or UIDs when *uid* is true. The UID may come
    before the literal or in the line that closes the response.
    Untagged lines of any other shape are skipped.
    """
    result: Dict[int, bytes] = {}
    units = batch.untagged
    i = 0
    while i < len(units):
        unit = units[i]
        i += 1
        if not isinstance(unit, Line):
            continue
        untagged = classify_line(unit.text, (LineKind.FETCH_RFC822,))
        if untagged.kind is not LineKind.FETCH_RFC822:
            continue
        announcement = untagged.value
        literal = units[i] if i < len(units) else None
        assert_imap_protocol(
            isinstance(literal, Literal) and literal.size == announcement.size,
            unit.text,
        )
        i += 1
        key = announcement.seq
        if uid:
            key = announcement.uid
            if key is None and i < len(units) and isinstance(units[i], Line):
                m = _RE_UID_ITEM.search(units[i].text)
                if m is not None:
                    key = _parse_number(m.group(1), units[i].text)
            if key is None:
                raise ProtocolError(
                    f"no UID in FETCH response for message {announcement.seq}"
                )
        result[key] = literal.data
    return result
