import ssl as ssl_lib
from logging import DEBUG, getLogger, LoggerAdapter
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from . import exceptions
from .command import DEFAULT_TAG_PREFIX, encode_command, join_message_ids, quote, TagGenerator
from .framer import DEFAULT_MAX_LINE_LENGTH, Framer, literal_size
from .imap_utf7 import encode as encode_utf7
from .message import parse_message
from .response import is_tagged_completion, Line, Literal, parse_status, ResponseBatch
from .response_parser import (
    extract_fetch_literals,
    MailboxStatus,
    parse_capabilities,
    parse_mailbox_status,
)
from .transport import create_transport, normalise_timeout, SocketTimeout, Transport
from .util import to_unicode

logger = getLogger(__name__)

__all__ = ["IMAPConnection", "connect"]

SequenceSet = Union[str, int, List[int], Tuple[int, ...]]

_READY = "READY"
_BUSY = "BUSY"
_CLOSED = "CLOSED"


class IMAPConnection:
    """A connection to the IMAP server specified by *host* is made when
    this class is instantiated, and the server greeting is consumed.

    *port* defaults to 993, or 143 if *ssl* is ``False``.

    If *ssl* is ``True`` (the default) a secure connection will be made.
    Otherwise an insecure connection over plain text will be
    established. The optional *ssl_context* argument can be used to
    provide an ``ssl.SSLContext`` instance used to control SSL/TLS
    connection parameters. If this is not provided a sensible default
    context will be used.

    Use *timeout* to specify a timeout for the socket connected to the
    IMAP server. The timeout can be either a float number, or an instance
    of :py:class:`imapstream.SocketTimeout`. The default is ``None``,
    where no timeout is used.

    Tags are *tag_prefix* followed by a counter starting at 1.

    Mailbox names are encoded with modified UTF-7 unless the
    *folder_encode* attribute is set to ``False``, in which case they
    must already be ASCII.

    Only one command may be outstanding at a time. A connection is not
    safe to share between threads without external locking around every
    call. After an I/O failure the connection is closed and every further
    command raises :py:exc:`IllegalStateError`.

    Can be used as a context manager to automatically log out:

    >>> with IMAPConnection(host="imap.foo.org") as c:
    ...     c.login("bar@foo.org", "passwd")

    """

    Error = exceptions.IMAPStreamError
    AbortError = exceptions.AbortError
    CommandFailedError = exceptions.CommandFailedError

    def __init__(
        self,
        host: str,
        port: Optional[int] = None,
        ssl: bool = True,
        ssl_context: Optional[ssl_lib.SSLContext] = None,
        timeout: Union[None, float, SocketTimeout] = None,
        tag_prefix: str = DEFAULT_TAG_PREFIX,
        max_line_length: int = DEFAULT_MAX_LINE_LENGTH,
    ):
        if port is None:
            port = ssl and 993 or 143
        if ssl and port == 143:
            logger.warning(
                "Attempting to establish an encrypted connection "
                "to a port (143) often used for unencrypted connections"
            )
        self.host = host
        self.port = port
        self.ssl = ssl
        self.ssl_context = ssl_context
        self._timeout = normalise_timeout(timeout)
        self.folder_encode = True
        self._tags = TagGenerator(tag_prefix)
        self._cached_capabilities: Optional[Tuple[str, ...]] = None
        self._protocol_log = ProtocolLoggerAdapter(getLogger("imapstream.protocol"), {})

        self._transport = self._create_transport()
        logger.debug(
            "Connected to host %s over %s", self.host, "SSL/TLS" if ssl else "plain text"
        )
        self._framer = Framer(self._transport, max_line_length)
        self._state = _BUSY
        try:
            self._welcome = self._framer.read_line()
        except (OSError, exceptions.ProtocolError):
            self._invalidate()
            raise
        self._log_received(self._welcome)
        self._state = _READY

    def _create_transport(self) -> Transport:
        return create_transport(self.host, self.port, self.ssl, self.ssl_context, self._timeout)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Logout and closes the connection when exiting the context manager.

        All exceptions during logout and connection shutdown are caught because
        an error here usually means the connection was already closed.
        """
        try:
            self.logout()
        except Exception:
            try:
                self.shutdown()
            except Exception as e:
                logger.info("Could not close the connection cleanly: %s", e)

    @property
    def welcome(self) -> bytes:
        """The server greeting line."""
        return self._welcome

    @property
    def closed(self) -> bool:
        return self._state == _CLOSED

    def fileno(self) -> int:
        """Returns the file descriptor of the underlying socket.

        This is provided for polling purposes only. Reading from or
        writing to it breaks the framing of the connection.
        """
        return self._transport.fileno()

    # Command issue and response collection

    def _check_ready(self) -> None:
        if self._state == _BUSY:
            raise exceptions.IllegalStateError(
                "a command is already in progress on this connection"
            )
        if self._state == _CLOSED:
            raise exceptions.IllegalStateError("connection is closed")

    def send_and_collect(self, command: str) -> ResponseBatch:
        """Send *command* under a fresh tag and return everything the
        server sent up to and including the matching tagged line.

        The tagged status is not checked here. If reading or writing
        fails the outcome of the command is unknown and the connection
        is closed.
        """
        self._check_ready()
        tag = self._tags.next_tag()
        data = encode_command(tag, command)

        self._state = _BUSY
        completed = False
        try:
            self._log_sent(data)
            self._transport.write(data)
            batch = self._collect(tag)
            completed = True
        finally:
            if completed:
                self._state = _READY
            else:
                self._invalidate()
        return batch

    def _collect(self, tag: str) -> ResponseBatch:
        batch = ResponseBatch(tag)
        # Set while the next line is the remainder of a response that was
        # interrupted by a literal; such a line can't complete the command.
        in_literal_response = False
        while True:
            line = self._framer.read_line()
            self._log_received(line)
            batch.units.append(Line(line))
            if not in_literal_response and is_tagged_completion(line, tag):
                return batch
            size = literal_size(line)
            in_literal_response = size is not None
            if in_literal_response:
                batch.units.append(Literal(self._framer.read_literal(size)))

    def _normalise_mailbox(self, name: str) -> str:
        if self.folder_encode:
            name = encode_utf7(name)
        return quote(name)

    def _command_and_check(self, command: str) -> str:
        return parse_status(self.send_and_collect(command))

    def _invalidate(self) -> None:
        self._state = _CLOSED
        try:
            self._transport.close()
        except OSError as e:
            logger.info("Could not close the connection cleanly: %s", e)

    def _log_sent(self, data: bytes) -> None:
        if self._protocol_log.isEnabledFor(DEBUG):
            self._protocol_log.debug("> " + to_unicode(data).rstrip("\r\n"))

    def _log_received(self, line: bytes) -> None:
        if self._protocol_log.isEnabledFor(DEBUG):
            self._protocol_log.debug("< " + to_unicode(line).rstrip("\r\n"))

    # Session commands

    def login(self, username: str, password: str) -> str:
        """Login using *username* and *password*, returning the
        server response.
        """
        try:
            text = self._command_and_check(f"LOGIN {quote(username)} {quote(password)}")
        except exceptions.CommandFailedError as e:
            raise exceptions.LoginError(
                f"Login failed: {e.text}", status=e.status, line=e.line
            ) from e
        self._cached_capabilities = None
        logger.debug("Logged in as %s", username)
        return text

    def logout(self) -> str:
        """Logout, returning the server response. The connection is
        closed afterwards."""
        text = self._command_and_check("LOGOUT")
        self.shutdown()
        logger.debug("Logged out, connection closed")
        return text

    def shutdown(self) -> None:
        """Close the connection to the IMAP server (without logging out)

        In most cases, :py:meth:`.logout` should be used instead of
        this. The logout method also shutdown down the connection.
        """
        if self._state != _CLOSED:
            self._state = _CLOSED
            self._transport.close()
            logger.info("Connection closed")

    def noop(self) -> str:
        """Execute the NOOP command, returning the server response."""
        return self._command_and_check("NOOP")

    def capability(self) -> List[str]:
        """Issue the CAPABILITY command and return the capability tokens
        in the order the server listed them."""
        capabilities = parse_capabilities(self.send_and_collect("CAPABILITY"))
        self._cached_capabilities = tuple(capabilities)
        return capabilities

    def capabilities(self) -> List[str]:
        """Returns the server capability list, issuing CAPABILITY only
        if it hasn't been requested since connecting or logging in."""
        if self._cached_capabilities is None:
            return self.capability()
        return list(self._cached_capabilities)

    def has_capability(self, capability: str) -> bool:
        """Return ``True`` if the IMAP server has the given *capability*."""
        return capability.upper() in (c.upper() for c in self.capabilities())

    # Mailbox commands

    def select(self, mailbox: str) -> MailboxStatus:
        """Select *mailbox* read-write, returning its status."""
        command = f"SELECT {self._normalise_mailbox(mailbox)}"
        return parse_mailbox_status(self.send_and_collect(command))

    def examine(self, mailbox: str) -> MailboxStatus:
        """Select *mailbox* read-only, returning its status."""
        command = f"EXAMINE {self._normalise_mailbox(mailbox)}"
        return parse_mailbox_status(self.send_and_collect(command))

    def create(self, mailbox: str) -> str:
        """Create *mailbox* on the server returning the server response string."""
        return self._command_and_check(f"CREATE {self._normalise_mailbox(mailbox)}")

    def delete(self, mailbox: str) -> str:
        """Delete *mailbox* on the server returning the server response string."""
        return self._command_and_check(f"DELETE {self._normalise_mailbox(mailbox)}")

    def rename(self, old_name: str, new_name: str) -> str:
        """Change the name of a mailbox on the server."""
        return self._command_and_check(
            f"RENAME {self._normalise_mailbox(old_name)} {self._normalise_mailbox(new_name)}"
        )

    def subscribe(self, mailbox: str) -> str:
        """Subscribe to *mailbox*, returning the server response string."""
        return self._command_and_check(f"SUBSCRIBE {self._normalise_mailbox(mailbox)}")

    def unsubscribe(self, mailbox: str) -> str:
        """Unsubscribe to *mailbox*, returning the server response string."""
        return self._command_and_check(f"UNSUBSCRIBE {self._normalise_mailbox(mailbox)}")

    # Message commands

    def copy(self, messages: SequenceSet, mailbox: str) -> str:
        """Copy one or more messages from the selected mailbox to
        *mailbox*. Returns the COPY response string returned by the
        server.
        """
        return self._command_and_check(
            f"COPY {join_message_ids(messages)} {self._normalise_mailbox(mailbox)}"
        )

    def fetch(self, messages: SequenceSet, query: str) -> List[bytes]:
        """Run ``FETCH <messages> <query>`` and return the untagged
        response lines unparsed.

        Literal payloads are read off the stream to keep it in step but
        are not part of the result; use :py:meth:`fetch_literals` for
        RFC822 bodies.
        """
        batch = self.send_and_collect(f"FETCH {join_message_ids(messages)} {query}")
        parse_status(batch)
        return batch.lines()

    def fetch_literals(self, messages: SequenceSet, uid: bool = False) -> Dict[int, bytes]:
        """Fetch the RFC822 text of *messages* as raw bytes.

        A dictionary is returned, indexed by message sequence number, or
        by UID when *uid* is ``True`` (which issues ``UID FETCH``).
        """
        command = "UID FETCH" if uid else "FETCH"
        batch = self.send_and_collect(f"{command} {join_message_ids(messages)} RFC822")
        parse_status(batch)
        return extract_fetch_literals(batch, uid=uid)

    def fetch_messages(
        self,
        messages: SequenceSet,
        uid: bool = False,
        decoder: Callable[[bytes], Any] = parse_message,
    ) -> Dict[int, Any]:
        """Fetch *messages* and decode each with *decoder*.

        A message the decoder can't handle is logged and left out of the
        result; the other messages are still returned.
        """
        result = {}
        for key, raw in self.fetch_literals(messages, uid=uid).items():
            try:
                result[key] = decoder(raw)
            except Exception as e:
                logger.warning("Could not decode message %s: %s", key, e)
        return result

    def fetch_message(
        self,
        message_id: int,
        uid: bool = False,
        decoder: Callable[[bytes], Any] = parse_message,
    ) -> Optional[Any]:
        """Fetch and decode a single message, returning ``None`` if the
        server did not return it."""
        return self.fetch_messages(message_id, uid=uid, decoder=decoder).get(message_id)


def connect(
    address: Tuple[str, int],
    ssl_context: Optional[ssl_lib.SSLContext] = None,
    timeout: Union[None, float, SocketTimeout] = None,
    **kwargs,
) -> IMAPConnection:
    """Connect to *address*, a ``(host, port)`` pair.

    TLS is used if and only if *ssl_context* is given.
    """
    host, port = address
    return IMAPConnection(
        host,
        port,
        ssl=ssl_context is not None,
        ssl_context=ssl_context,
        timeout=timeout,
        **kwargs,
    )


class ProtocolLoggerAdapter(LoggerAdapter):
    """Adapter preventing IMAP secrets from going to the logging facility."""

    _SECRET_COMMANDS = ("LOGIN", "AUTHENTICATE")

    def process(self, msg, kwargs):
        parts = msg.split(None, 3)
        if len(parts) > 2 and parts[0] == ">" and parts[2].upper() in self._SECRET_COMMANDS:
            msg = f"> {parts[1]} {parts[2]} **REDACTED**"
        return super().process(msg, kwargs)
