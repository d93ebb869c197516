# ruff: noqa: T201

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING
from uuid import UUID

from dotenv import load_dotenv

from todosync.app import open_todo_list, sync_todos
from todosync.config import configure_logging

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from todosync.app import TodoSession
    from todosync.domain.todos import TodoItem

log = logging.getLogger(__name__)

_COMMANDS_WITH_ID = frozenset({"toggle", "delete", "select"})


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Keep a to-do list in sync")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Use the local store only and never contact the remote store",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list", help="Show all to-do items")

    add = subparsers.add_parser("add", help="Add a to-do item")
    add.add_argument("title", type=str, help="Title of the new item")

    toggle = subparsers.add_parser("toggle", help="Toggle completion of an item")
    toggle.add_argument("id", type=str, help="Id of the item")

    delete = subparsers.add_parser("delete", help="Delete an item")
    delete.add_argument("id", type=str, help="Id of the item")

    select = subparsers.add_parser("select", help="Select an item")
    select.add_argument("id", type=str, help="Id of the item")

    subparsers.add_parser("random", help="Select a random item")
    subparsers.add_parser("sync", help="Reconcile with the remote store")

    return parser.parse_args(list(argv))


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid id: {value}") from exc


def _format_item(item: TodoItem, *, selected: bool) -> str:
    marker = "*" if selected else " "
    check = "x" if item.is_completed else " "
    return f"{marker} [{check}] {item.title}  ({item.id})"


def _print_items(session: TodoSession) -> None:
    todos = session.todos
    selected = todos.selected
    items = todos.items
    if not items:
        print("No to-do items.")
        return
    for item in items:
        print(_format_item(item, selected=selected is not None and selected.id == item.id))


def _report_degraded(session: TodoSession) -> None:
    state = session.coordinator.state
    if state.is_degraded:
        print(f"Warning: remote sync {state.describe()}", file=sys.stderr)


async def _execute(args: argparse.Namespace, session: TodoSession, item_id: UUID | None) -> None:
    todos = session.todos
    command = args.command
    if command == "list":
        _print_items(session)
    elif command == "add":
        item = await todos.add(args.title)
        print(f"Added {item.title!r} ({item.id})")
    elif command == "toggle" and item_id is not None:
        item = await todos.toggle(item_id)
        print(f"{'Completed' if item.is_completed else 'Reopened'} {item.title!r}")
    elif command == "delete" and item_id is not None:
        if not await todos.remove(item_id):
            raise KeyError(f"Unknown to-do: {item_id}")
        print(f"Deleted {item_id}")
    elif command == "select" and item_id is not None:
        item = todos.select(item_id)
        if item is not None:
            print(f"Selected {item.title!r}")
    elif command == "random":
        item = todos.select_random()
        print(f"Selected {item.title!r}" if item is not None else "No to-do items.")
    elif command == "sync":
        state = await sync_todos(session)
        print(f"Sync {state.describe()}; {len(todos.items)} item(s)")
    else:
        raise ValueError(f"Unsupported command: {command}")
    _report_degraded(session)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        item_id = _parse_uuid(parsed_args.id) if parsed_args.command in _COMMANDS_WITH_ID else None
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)

    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        session = open_todo_list(offline=parsed_args.offline)
        try:
            asyncio.run(_execute(parsed_args, session, item_id))
        finally:
            session.close()
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    print("\nClosed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
