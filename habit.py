#!/usr/bin/env python3
import argparse
import logging
import sys
from typing import List, Optional

from habit_commands import add_habit, complete_habit, edit_habit, list_habits, remove_habit
from habit_errors import HabitError
from habit_model import Habit
from habit_store import storage_path


def _non_negative_int(value: str) -> int:
    if not (value.isascii() and value.isdigit()):
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {value!r}")
    return int(value)


def _parse_bool(value: str) -> bool:
    options = {"true": True, "false": False}
    try:
        return options[value.lower()]
    except KeyError:
        raise argparse.ArgumentTypeError(f"expected true or false, got {value!r}")


def _format_habit(habit: Habit) -> List[str]:
    lines = [f"ID: {habit.id} | {habit.name}"]
    if habit.description is not None:
        lines.append(f"  Description: {habit.description}")
    lines.append(f"  Created: {habit.created_at.date().isoformat()}")
    target = habit.target_frequency if habit.target_frequency is not None else 0
    lines.append(f"  Completions: {habit.completion_count}/{target} days")
    if habit.target_frequency is not None:
        lines.append(f"  Target: {habit.target_frequency} days")
    lines.append(f"  Active: {str(habit.is_active).lower()}")
    return lines


def cmd_add(args: argparse.Namespace) -> None:
    habit = add_habit(args.path, args.name, args.description, args.frequency)
    print(f"Added habit: '{habit.name}' (ID: {habit.id})")


def cmd_list(args: argparse.Namespace) -> None:
    active_only = not args.all
    habits = list_habits(args.path, active_only=active_only)
    if not habits:
        print(f"No habits to display (active = {str(active_only).lower()})")
        return
    for habit in habits:
        for line in _format_habit(habit):
            print(line)


def cmd_complete(args: argparse.Namespace) -> None:
    habit = complete_habit(args.path, args.identifier)
    print(f"Marked complete: '{habit.name}' (today)")


def cmd_remove(args: argparse.Namespace) -> None:
    remove_habit(args.path, args.identifier)
    print(f"Removed habit: {args.identifier}")


def cmd_edit(args: argparse.Namespace) -> None:
    habit = edit_habit(
        args.path,
        args.identifier,
        name=args.name,
        description=args.description,
        frequency=args.frequency,
        active=args.active,
    )
    print(f"Updated habit: '{habit.name}'")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="habit", description="Habit Tracker CLI")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log storage activity")
    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="Add a new habit")
    add.add_argument("name", help="Habit name")
    add.add_argument("--description", help="Free-text description")
    add.add_argument("--frequency", type=_non_negative_int, help="Target number of completions")
    add.set_defaults(func=cmd_add)

    list_cmd = sub.add_parser("list", help="List habits")
    list_cmd.add_argument("--all", action="store_true", help="Include inactive habits")
    list_cmd.set_defaults(func=cmd_list)

    complete = sub.add_parser("complete", help="Mark a habit complete for today")
    complete.add_argument("identifier", help="Habit id or name")
    complete.set_defaults(func=cmd_complete)

    remove = sub.add_parser("remove", help="Remove a habit")
    remove.add_argument("identifier", help="Habit id or name")
    remove.set_defaults(func=cmd_remove)

    edit = sub.add_parser("edit", help="Edit habit details")
    edit.add_argument("identifier", help="Habit id or name")
    edit.add_argument("--name", help="New name")
    edit.add_argument("--description", help="New description ('null' clears it)")
    edit.add_argument("--frequency", help="New target frequency ('null' clears it)")
    edit.add_argument("--active", type=_parse_bool, help="true or false")
    edit.set_defaults(func=cmd_edit)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )
    args.path = storage_path()
    try:
        args.func(args)
    except HabitError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
