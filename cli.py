#!/usr/bin/env python3
"""Terminal client for habit-score.

Every invocation is one client session: it loads habits from the API (or the
local snapshot when the API is unreachable), runs one command and prints the
result. ``habits sync`` is the exception: it starts from the snapshot alone,
so records added offline in an earlier run are pushed before the server's
list is adopted. ``habits shell`` keeps one session open for several commands.
"""
import argparse
import cmd
import logging
import os
import shlex
import sys

from dotenv import load_dotenv

from gateway import HabitGateway
from habits import Habit, NotFoundError, ValidationError
from snapshot import SnapshotStore
from sync import ALL_CATEGORIES, SyncController

load_dotenv()

API_URL = os.getenv("HABITS_API_URL", "http://localhost:8000")
DATA_DIR = os.getenv("HABITS_DATA_DIR", "~/.habit-score")
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING").upper()


def build_controller(api_url: str = API_URL, data_dir: str = DATA_DIR) -> SyncController:
    return SyncController(HabitGateway.connect(api_url), SnapshotStore(data_dir))


def format_habit(habit: Habit, temporary: bool = False) -> str:
    mark = "x" if habit.is_done_today else " "
    suffix = " (not synced)" if temporary else ""
    return f"[{mark}] {habit.name}  {habit.category} · {habit.points} pts  {habit.id}{suffix}"


def print_status(controller: SyncController, out=None):
    out = out or sys.stdout
    print(f"mode: {controller.mode.value}", file=out)
    if controller.error:
        print(f"error: {controller.error}", file=out)


def print_board(controller: SyncController, out=None):
    out = out or sys.stdout
    visible = controller.visible_habits
    print(f"Daily score: {controller.daily_score}", file=out)
    print(f"Showing {len(visible)} of {len(controller.habits)} ({controller.selected_category})", file=out)
    if not visible:
        print("No habits in this category.", file=out)
    for habit in visible:
        print(format_habit(habit, controller.is_temporary(habit.id)), file=out)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="habits", description="Track daily habits and their score.")
    parser.add_argument("--api-url", default=API_URL, help="habit API base url (default: %(default)s)")
    parser.add_argument("--data-dir", default=DATA_DIR, help="where the local snapshot lives (default: %(default)s)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("list", help="show habits")
    p.add_argument("--category", default=None)

    p = sub.add_parser("add", help="add a habit")
    p.add_argument("name")
    p.add_argument("category")
    p.add_argument("points")

    p = sub.add_parser("toggle", help="flip done-today for a habit")
    p.add_argument("habit_id")

    p = sub.add_parser("delete", help="delete a habit")
    p.add_argument("habit_id")

    p = sub.add_parser("filter", help="pick the category shown by list")
    p.add_argument("category", nargs="?", default=ALL_CATEGORIES)

    sub.add_parser("score", help="print today's score")
    sub.add_parser("sync", help="push local-only habits and reload from the server")
    sub.add_parser("status", help="print online/offline mode")
    sub.add_parser("shell", help="interactive session")
    return parser


def run_command(controller: SyncController, args, out=None) -> int:
    out = out or sys.stdout
    try:
        if args.command == "list":
            if args.category:
                controller.select_category(args.category)
            print_board(controller, out)
        elif args.command == "filter":
            controller.select_category(args.category)
            print_board(controller, out)
        elif args.command == "add":
            habit = controller.create({"name": args.name, "category": args.category, "points": args.points})
            print(f"added {format_habit(habit, controller.is_temporary(habit.id))}", file=out)
        elif args.command == "toggle":
            habit = controller.toggle(args.habit_id)
            print(format_habit(habit, controller.is_temporary(habit.id)), file=out)
        elif args.command == "delete":
            controller.delete(args.habit_id)
            print(f"deleted {args.habit_id}", file=out)
        elif args.command == "score":
            print(controller.daily_score, file=out)
        elif args.command == "sync":
            controller.resync()
            print_board(controller, out)
        elif args.command == "status":
            pass
        elif args.command == "shell":
            HabitShell(controller, out).cmdloop()
            return 0
    except (ValidationError, NotFoundError) as e:
        print(f"error: {e.message}", file=out)
        return 1
    print_status(controller, out)
    return 0


class HabitShell(cmd.Cmd):
    intro = "habit-score shell. Type help or ? to list commands."
    prompt = "habits> "

    def __init__(self, controller: SyncController, out=None):
        super().__init__(stdout=out or sys.stdout)
        self.controller = controller
        self.parser = build_parser()

    def _run(self, name, line):
        try:
            args = self.parser.parse_args([name] + shlex.split(line))
        except (SystemExit, ValueError):
            return
        run_command(self.controller, args, self.stdout)

    def do_list(self, line):
        """list [--category C]"""
        self._run("list", line)

    def do_add(self, line):
        """add NAME CATEGORY POINTS  (quote names with spaces)"""
        self._run("add", line)

    def do_toggle(self, line):
        """toggle ID"""
        self._run("toggle", line)

    def do_delete(self, line):
        """delete ID"""
        self._run("delete", line)

    def do_filter(self, line):
        """filter [CATEGORY]  (no argument shows all)"""
        self._run("filter", line)

    def do_score(self, line):
        """score"""
        self._run("score", line)

    def do_sync(self, line):
        """sync: push local-only habits and reload from the server"""
        self._run("sync", line)

    def do_status(self, line):
        """status"""
        self._run("status", line)

    def do_quit(self, line):
        """quit"""
        return True

    do_EOF = do_quit


def start_session(controller: SyncController, command: str) -> None:
    if command == "sync":
        controller.restore()
    else:
        controller.load()


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")
    controller = build_controller(args.api_url, args.data_dir)
    try:
        start_session(controller, args.command)
        return run_command(controller, args)
    finally:
        controller.gateway.close()


if __name__ == "__main__":
    sys.exit(main())
