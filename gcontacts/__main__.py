"""CLI entry point for gcontacts.

Usage:
    python -m gcontacts -A auth.json fetch_feed [--raw]
    python -m gcontacts -A auth.json fetch <contact_id> [--raw]
    python -m gcontacts -A auth.json update_nickname <contact_id> <value>

The auth file is a JSON object holding at least a refresh token, e.g.
{"refresh_token": "XYZ"}. The access token obtained from it is written back
to the same file.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import List, Optional

from gcontacts.client import ContactsClient, create_contacts_client
from gcontacts.errors import ContactsError
from gcontacts.types import ContactQuery, ContactsConfig

COMMANDS = ("fetch_feed", "fetch", "update_nickname")

# Page size used when listing the whole address book
FETCH_ALL_MAX_RESULTS = 10000


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gcontacts",
        description="Fetch and update Google Contacts.",
    )
    parser.add_argument(
        "--client-id",
        default=os.environ.get("CLIENT_ID"),
        help="Client ID from Google Developer Console. Also can be provided as CLIENT_ID env variable.",
    )
    parser.add_argument(
        "--client-secret",
        default=os.environ.get("CLIENT_SECRET"),
        help="Client secret from Google Developer Console. Also can be provided as CLIENT_SECRET env variable.",
    )
    parser.add_argument(
        "-A",
        "--auth-file",
        required=True,
        help='Path to JSON file with refresh_token e.g. {"refresh_token": "XYZ"}',
    )
    parser.add_argument("--raw", action="store_true", help="Display raw XML response")
    parser.add_argument("--debug", action="store_true", help="Log HTTP requests")
    parser.add_argument("command", choices=COMMANDS, help="|".join(COMMANDS))
    parser.add_argument("contact_id", nargs="?", default="", help="Contact ID to fetch/update")
    parser.add_argument("value", nargs="?", default="", help="New value for updated field")
    return parser


def _fetch_feed(client: ContactsClient, raw: bool) -> None:
    query = ContactQuery(max_results=FETCH_ALL_MAX_RESULTS)
    if raw:
        print(client.fetch_feed_raw(query).decode("utf-8", errors="replace"))
        return
    feed = client.fetch_feed(query)
    for i, entry in enumerate(feed.entries):
        print(f"ENTRY {i}:")
        print(f"{entry}\n")


def _fetch(client: ContactsClient, contact_id: str, raw: bool) -> None:
    if raw:
        print(client.fetch_contact_raw(contact_id).decode("utf-8", errors="replace"))
        return
    entry = client.fetch_contact(contact_id)
    print("ENTRY:")
    print(f"{entry}\n")


def _update_nickname(client: ContactsClient, contact_id: str, value: str) -> None:
    entry = client.fetch_contact(contact_id)
    print("ORIGINAL ENTRY:")
    print(f"{entry}\n")

    entry.nickname = value
    updated = client.save(entry)
    print("UPDATED ENTRY:")
    print(updated)


def _fail(message: str) -> int:
    print(message, file=sys.stderr)
    return 1


def run(args: argparse.Namespace, client: ContactsClient) -> int:
    """Execute a parsed command against a client; returns the exit status."""
    if args.command in ("fetch", "update_nickname") and not args.contact_id:
        return _fail("Contact ID must be specified")
    if args.command == "update_nickname" and args.raw:
        return _fail("update_nickname doesn't support --raw")

    try:
        if args.command == "fetch_feed":
            _fetch_feed(client, args.raw)
        elif args.command == "fetch":
            _fetch(client, args.contact_id, args.raw)
        else:
            _update_nickname(client, args.contact_id, args.value)
    except ContactsError as e:
        return _fail(f"error: {e.message}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.client_id:
        parser.error("--client-id (or CLIENT_ID) is required")
    if not args.client_secret:
        parser.error("--client-secret (or CLIENT_SECRET) is required")

    if args.debug:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    config = ContactsConfig(debug=args.debug)
    with create_contacts_client(args.client_id, args.client_secret, args.auth_file, config) as client:
        return run(args, client)


if __name__ == "__main__":
    sys.exit(main())
