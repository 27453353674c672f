"""Command that opens the database and serves the HTTP interface."""

from __future__ import annotations

import argparse
import logging
import os
import sqlite3
from collections.abc import Sequence

from cajasimple.api import Server, _split_address
from cajasimple.queries import Queries, connect, create_schema

logger = logging.getLogger(__name__)

DEFAULT_ADDRESS = ":8080"


def _resolve(address: str) -> str:
    if address:
        return address
    port = os.environ.get("PORT", "")
    return f":{port}" if port else DEFAULT_ADDRESS


def parse_address(address: str) -> tuple[str, int]:
    """Return the host and port to listen on for a "host:port" address.

    An empty address falls back to the PORT environment variable and then
    to port 8080 on every interface.
    """
    return _split_address(_resolve(address))


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cajasimple",
        description="Serve the cash register records over HTTP.",
    )
    parser.add_argument(
        "--db-url",
        default=os.environ.get("DB_URL", ""),
        help="database URL (default: $DB_URL)",
    )
    parser.add_argument(
        "--address",
        default=os.environ.get("SERVER_ADDRESS", ""),
        help="host:port to listen on (default: $SERVER_ADDRESS)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Connect to the database and run the server until it stops."""
    logging.basicConfig(level=logging.INFO)
    args = _parser().parse_args(argv)

    try:
        conn = connect(args.db_url)
        create_schema(conn)
    except (ValueError, sqlite3.Error) as err:
        logger.error("failed to connect db %s", err)
        return 1

    try:
        address = _resolve(args.address)
        parse_address(address)
    except ValueError as err:
        logger.error("%s", err)
        conn.close()
        return 1

    server = Server(Queries(conn))
    try:
        server.start(address)
    except (OSError, ValueError) as err:
        logger.error("%s", err)
    finally:
        conn.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())