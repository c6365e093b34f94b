"""CLI interface for ClipMate."""

import argparse
import json
import logging
import sys

from . import __version__
from .exceptions import ClipmateError


def _client():
    from .service.client import ClipmateClient

    client = ClipmateClient()
    if not client.is_connected:
        print("Error: ClipMate daemon is not running (start it with: clipmate daemon)", file=sys.stderr)
        return None
    return client


def _cmd_daemon(args) -> int:
    from .config import ClipmateConfig
    from .service.daemon import ClipmateService

    config = ClipmateConfig.load()
    service = ClipmateService(config)
    service.run()
    return 0


def _cmd_list(args) -> int:
    client = _client()
    if client is None:
        return 1

    rows = client.get_history(args.search or "")
    if rows is None:
        print(f"Error: failed to read history: {client.last_error}", file=sys.stderr)
        return 1
    if args.json:
        print(json.dumps(
            [
                {"id": item_id, "content_type": kind, "text": text or None, "created_at": created_at}
                for item_id, kind, text, created_at in rows
            ],
            indent=2,
            ensure_ascii=False,
        ))
        return 0

    for item_id, kind, text, created_at in rows:
        if kind == "image":
            summary = "[image]"
        else:
            summary = " ".join(text.split())
            if len(summary) > 72:
                summary = summary[:71] + "…"
        print(f"{item_id:>6}  {created_at[:19]}  {summary}")
    return 0


def _cmd_delete(args) -> int:
    client = _client()
    if client is None:
        return 1
    deleted = client.delete_item(args.item_id)
    if deleted is None:
        print(f"Error: failed to delete item {args.item_id}: {client.last_error}", file=sys.stderr)
        return 1
    if not deleted:
        print(f"No item {args.item_id}", file=sys.stderr)
    return 0


def _cmd_clear(args) -> int:
    client = _client()
    if client is None:
        return 1
    removed = client.clear_history()
    if removed < 0:
        print("Error: failed to clear history", file=sys.stderr)
        return 1
    print(f"Removed {removed} items")
    return 0


def _cmd_copy(args) -> int:
    client = _client()
    if client is None:
        return 1
    if not client.copy_item(args.item_id):
        print(f"Error: could not copy item {args.item_id}", file=sys.stderr)
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clipmate",
        description="Clipboard history for the Linux desktop",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Show detailed progress"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    daemon = subparsers.add_parser("daemon", help="Watch the clipboard and serve history over D-Bus")
    daemon.set_defaults(func=_cmd_daemon)

    list_cmd = subparsers.add_parser("list", help="Show history, newest first")
    list_cmd.add_argument("--search", "-s", help="Only text items containing this (case-sensitive)")
    list_cmd.add_argument("--json", action="store_true", help="Print JSON")
    list_cmd.set_defaults(func=_cmd_list)

    delete = subparsers.add_parser("delete", help="Delete a history item")
    delete.add_argument("item_id", type=int)
    delete.set_defaults(func=_cmd_delete)

    clear = subparsers.add_parser("clear", help="Delete all history")
    clear.set_defaults(func=_cmd_clear)

    copy = subparsers.add_parser("copy", help="Copy a history item back to the clipboard")
    copy.add_argument("item_id", type=int)
    copy.set_defaults(func=_cmd_copy)

    return parser


def main() -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    # Configure logging
    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format='%(levelname)s: %(message)s',
            stream=sys.stderr,
        )
    else:
        logging.basicConfig(level=logging.WARNING)

    try:
        return args.func(args)
    except ClipmateError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
