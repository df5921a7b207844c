"""
CLI helper to manage the notice banner from a terminal.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Callable, Optional, Sequence

from backoffice.config import get_settings
from backoffice.db import PersistenceError
from backoffice.dependencies import get_notice_manager
from backoffice.notices import MoveDirection, NoticeManager, NoticeNotFoundError


def _print_notices(manager: NoticeManager) -> None:
    notices = manager.list()
    if not notices:
        print("No notices.")
        return
    for notice in notices:
        state = "on " if notice.is_active else "off"
        print(f"{notice.display_order:>4}  [{state}]  {notice.id}  {notice.message}")


def _confirm(prompt: str, input_fn: Callable[[str], str]) -> bool:
    try:
        answer = input_fn(f"{prompt} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage banner notices")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="Show every notice in display order")

    add = sub.add_parser("add", help="Append a notice")
    add.add_argument("message", help="Notice text")

    toggle = sub.add_parser("toggle", help="Show or hide a notice")
    toggle.add_argument("notice_id")

    move = sub.add_parser("move", help="Move a notice one position")
    move.add_argument("notice_id")
    move.add_argument(
        "direction", choices=[d.value for d in MoveDirection], help="up or down"
    )

    delete = sub.add_parser("delete", help="Delete a notice")
    delete.add_argument("notice_id")
    delete.add_argument(
        "-y", "--yes", action="store_true", help="Skip the confirmation prompt"
    )
    return parser


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    manager: Optional[NoticeManager] = None,
    input_fn: Callable[[str], str] = input,
) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=get_settings().log_level.upper())
    manager = manager or get_notice_manager()

    try:
        if args.command == "add":
            if manager.add(args.message) is None:
                print("Nothing to add: message is blank.", file=sys.stderr)
                return 1
        elif args.command == "toggle":
            manager.toggle_active(args.notice_id)
        elif args.command == "move":
            if not manager.move(args.notice_id, args.direction):
                print(f"Notice is already {'first' if args.direction == 'up' else 'last'}.")
        elif args.command == "delete":
            notice = manager.get(args.notice_id)
            if not args.yes and not _confirm(
                f'Delete notice "{notice.message}"?', input_fn
            ):
                print("Aborted.")
                return 1
            manager.delete(notice.id)
    except NoticeNotFoundError as exc:
        print(f"Error: notice {exc} not found", file=sys.stderr)
        return 1
    except PersistenceError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    _print_notices(manager)
    return 0


if __name__ == "__main__":
    sys.exit(main())
