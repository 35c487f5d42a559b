import argparse
import code
import getpass
import logging
from typing import List, Optional

from .command import DEFAULT_TAG_PREFIX
from .config import connection_from_config, parse_config_file


def command_line(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Open an interactive shell with a logged-in imapstream connection"
    )
    parser.add_argument("-H", "--host", dest="host", help="IMAP host connect to")
    parser.add_argument("-u", "--username", dest="username", help="Username to login with")
    parser.add_argument(
        "-p", "--password", dest="password", help="Password to login with (prompted if omitted)"
    )
    parser.add_argument("-P", "--port", dest="port", type=int, default=None, help="IMAP port to use")
    parser.add_argument(
        "-s",
        "--ssl",
        dest="ssl",
        action="store_true",
        default=False,
        help="Use SSL/TLS connection",
    )
    parser.add_argument("-t", "--timeout", dest="timeout", type=float, default=None)
    parser.add_argument("--tag-prefix", dest="tag_prefix", default=DEFAULT_TAG_PREFIX)
    parser.add_argument("-f", "--file", dest="file", default=None, help="Config file with connection details")
    parser.add_argument("-v", "--verbose", dest="verbose", action="store_true", default=False)

    args = parser.parse_args(argv)
    if args.file:
        if args.host or args.username or args.password or args.port is not None:
            parser.error("If -f/--file is given no other options can be used")
        return parse_config_file(args.file)

    if not args.host:
        parser.error("--host is required unless -f/--file is given")
    if args.port is None:
        args.port = 993 if args.ssl else 143
    if args.username and args.password is None:
        args.password = getpass.getpass()
    return args


def main(argv: Optional[List[str]] = None) -> int:
    args = command_line(argv)
    if getattr(args, "verbose", False):
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(message)s")
    conn = connection_from_config(args)
    banner = "\nimapstream connection available as 'c'\n"

    try:
        code.interact(banner, local={"c": conn})
    finally:
        conn.shutdown()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
