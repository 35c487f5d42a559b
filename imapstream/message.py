"""
Default decoder for fetched RFC822 literals.

The engine never looks inside a message; anything that turns bytes into
a message object can be passed as the *decoder* of
:py:meth:`imapstream.IMAPConnection.fetch_messages`.
"""
import email.policy
from email.message import EmailMessage
from email.parser import BytesParser

__all__ = ["parse_message"]

_parser = BytesParser(policy=email.policy.default)


def parse_message(raw: bytes) -> EmailMessage:
    return _parser.parsebytes(raw)
