"""
Main Entry Point for the Crystal Caravan session client
Joins a session and prints the event log and local view as they change
"""

__version__ = "0.1.0"

import argparse
import asyncio
import logging
import sys

from config import ClientConfig, ConfigError, config
from core import SessionEvents
from services import GameClient, cleanup_logging, setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Crystal Caravan session client - watch a session from a seat",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --session abc123 --name Alice
  %(prog)s --session abc123 --name Bob --avatar 4 --server ws://game.example:8080
        """,
    )
    parser.add_argument("--session", required=True, help="Session identifier to join")
    parser.add_argument("--name", required=True, help="Display name")
    parser.add_argument("--avatar", default=None, help="Avatar reference")
    parser.add_argument("--server", default=None, help="Server base URL (ws:// or wss://)")
    parser.add_argument(
        "--reconnect",
        action="store_true",
        help="Reconnect with backoff when the connection drops",
    )
    return parser


def watch(client: GameClient):
    """Print event log changes and a view summary on every snapshot."""

    def print_latest(entries: list[str]):
        if entries:
            print(f"> {entries[0]}")

    client.subscribe(SessionEvents.LOG_UPDATED, print_latest)
    client.subscribe(SessionEvents.SNAPSHOT_APPLIED, lambda _: print(client.summary()))
    client.subscribe(
        SessionEvents.CONNECTION_CHANGED,
        lambda connected: print("[connected]" if connected else "[disconnected]"),
    )


async def run(args: argparse.Namespace) -> int:
    overrides = {}
    if args.server:
        overrides["server_url"] = args.server
    if args.reconnect:
        overrides["auto_reconnect"] = True

    client = GameClient(ClientConfig(**overrides))
    watch(client)
    try:
        await client.connect(args.session, args.name, args.avatar)
    finally:
        await client.disconnect()
    return 0


def main() -> int:
    args = build_parser().parse_args()

    logger = setup_logging()
    try:
        config.validate()
    except ConfigError as e:
        logger.critical(str(e))
        return 2

    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 130
    except Exception as e:
        logging.critical(f"Unhandled exception: {e}", exc_info=True)
        return 1
    finally:
        cleanup_logging()


if __name__ == "__main__":
    sys.exit(main())
