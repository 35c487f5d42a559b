import argparse
import configparser
import ssl
from typing import Optional

from .command import DEFAULT_TAG_PREFIX
from .connection import IMAPConnection


def parse_config_file(filename: str) -> argparse.Namespace:
    """Parse INI files containing IMAP connection details.

    Used by interact.py
    """
    config = configparser.ConfigParser()
    config.read(filename)

    if "DEFAULT" not in config or not config.defaults():
        raise ValueError(f"Config file {filename} must have a DEFAULT section")

    section = config["DEFAULT"]
    ns = argparse.Namespace()
    ns.host = section.get("host")
    if not ns.host:
        raise ValueError(f"Config file {filename} must set host")
    ns.ssl = section.getboolean("ssl", True)
    ns.port = section.getint("port", 993 if ns.ssl else 143)
    ns.username = section.get("username")
    ns.password = section.get("password")
    ns.timeout = section.getfloat("timeout", None)
    ns.tag_prefix = section.get("tag_prefix", DEFAULT_TAG_PREFIX)

    if ns.username and ns.password is None:
        raise ValueError("password must be provided when username is set")

    return ns


def connection_from_config(
    conf: argparse.Namespace, ssl_context: Optional[ssl.SSLContext] = None
) -> IMAPConnection:
    """Connect using the details in *conf*, logging in when a username
    is configured."""
    conn = IMAPConnection(
        conf.host,
        port=conf.port,
        ssl=conf.ssl,
        ssl_context=ssl_context,
        timeout=conf.timeout,
        tag_prefix=conf.tag_prefix,
    )
    if conf.username:
        conn.login(conf.username, conf.password)
    return conn
