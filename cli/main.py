#!/usr/bin/env python3
"""
dayplan CLI - plan a day in time blocks from the terminal.

Documents are "today", "tomorrow" or a weekday routine ("monday" or
"routine:monday"). Every edit is saved immediately.
"""

import argparse
import asyncio
import json
import sys
from datetime import date, datetime

from dayplan import config, paths
from dayplan.config_store import ALLOWED_INTERVALS, validate_schedule_config
from dayplan.observability import REGISTRY, configure_log_rotation, configure_logging
from dayplan.state_store import StoreError, get_store
from dayplan.timeblocks.block_manager import BlockOperationError
from dayplan.timeblocks.brief import generate_day_brief
from dayplan.timeblocks.documents import PRIORITIES_KEY, SCHEDULE_KEY, DocumentStore, document_key
from dayplan.timeblocks.models import format_clock
from dayplan.timeblocks.priorities import NEW_PRIORITY_COLOR
from dayplan.timeblocks.rollover import Rollover
from dayplan.timeblocks.scheduler import DayTransitionScheduler
from dayplan.timeblocks.session import ConfirmationRequired, PlanSession


def print_header(text: str):
    """Print a section header."""
    print(f"\n{'═' * 50}")
    print(f"  {text}")
    print(f"{'═' * 50}")


def print_table(headers: list, rows: list, widths: list = None):
    """Print a simple table."""
    if not widths:
        widths = [max(len(str(row[i])) for row in [headers] + rows) for i in range(len(headers))]

    header_str = " │ ".join(str(h).ljust(w) for h, w in zip(headers, widths))
    print(header_str)
    print("─" * len(header_str))

    for row in rows:
        print(" │ ".join(str(c)[:w].ljust(w) for c, w in zip(row, widths)))


def _documents() -> DocumentStore:
    return DocumentStore(get_store())


async def _open(name: str) -> PlanSession:
    return await PlanSession.open(_documents(), document_key(name))


def _print_blocks(session: PlanSession):
    rows = [
        [b.id, b.time_range, b.title or "Empty", b.priority, session.color_for(b)] for b in session.blocks
    ]
    print_table(["ID", "Time", "Title", "Priority", "Color"], rows)


# ============================================================
# Commands
# ============================================================


def cmd_init(args):
    """Create the data directory and the default settings."""

    async def run():
        documents = _documents()
        if await documents.store.get(SCHEDULE_KEY) is None:
            await documents.save_config(await documents.load_config())
        if await documents.store.get(PRIORITIES_KEY) is None:
            await documents.save_priorities(await documents.load_priorities())

    asyncio.run(run())
    print(f"Home: {paths.app_home()}")
    print(f"Store: {paths.db_path()}")


def cmd_status(args):
    """Show store location, settings and metrics."""

    async def run():
        documents = _documents()
        return await documents.load_config(), await documents.store.keys()

    schedule, keys = asyncio.run(run())
    print_header("dayplan status")
    print(f"Store: {paths.db_path()}")
    print(
        f"Schedule: {schedule.interval_minutes} min blocks, "
        f"{format_clock(schedule.day_start)}-{format_clock(schedule.day_end)}"
    )
    print(f"Keys: {', '.join(keys) if keys else '(none)'}")
    if args.metrics:
        print()
        print(REGISTRY.to_prometheus())


def cmd_show(args):
    """Show a document's blocks."""

    async def run():
        return await _open(args.document)

    session = asyncio.run(run())
    if args.json:
        print(json.dumps([b.to_dict() for b in session.blocks], indent=2))
        return
    print_header(f"{args.document} ({len(session.blocks)} blocks)")
    _print_blocks(session)


def cmd_brief(args):
    """Summarize a document."""

    async def run():
        return await _open(args.document)

    session = asyncio.run(run())
    now = datetime.now() if document_key(args.document) == document_key("today") else None
    print(
        generate_day_brief(
            session.blocks,
            title=args.document.capitalize(),
            now=now,
            registry=session.priorities,
            format="plain" if args.plain else "markdown",
        )
    )


def cmd_assign(args):
    """Set a block's title, description and priority."""

    async def run():
        session = await _open(args.document)
        await session.assign(args.block_id, args.title, args.description or "", args.priority)
        return session

    session = asyncio.run(run())
    block = session.block(args.block_id)
    print(f"✓ {block.time_range} {block.title}")


def cmd_clear(args):
    """Empty a block."""

    async def run():
        session = await _open(args.document)
        await session.clear(args.block_id)

    asyncio.run(run())
    print(f"✓ Block {args.block_id} cleared")


def cmd_split(args):
    """Split one block into smaller blocks."""

    async def run():
        session = await _open(args.document)
        before = len(session.blocks)
        await session.split(args.block_id)
        return len(session.blocks) - before + 1

    pieces = asyncio.run(run())
    print(f"✓ Block {args.block_id} split into {pieces} blocks")


def cmd_merge(args):
    """Merge adjacent blocks."""

    async def run():
        session = await _open(args.document)
        await session.merge(args.block_ids)
        return session.block(min(args.block_ids, key=int))

    block = asyncio.run(run())
    print(f"✓ Merged into {block.time_range}")


def cmd_reset(args):
    """Clear all content of a document."""

    async def run():
        session = await _open(args.document)
        await session.reset(confirm=args.yes)

    asyncio.run(run())
    print(f"✓ {args.document} reset")


def cmd_settings(args):
    """Show or change interval and day boundaries."""

    async def run():
        session = await _open(args.document)
        if args.interval is None and args.start is None and args.end is None:
            return session.config

        proposed = {
            "intervalMinutes": args.interval or session.config.interval_minutes,
            "dayStart": args.start or format_clock(session.config.day_start),
            "dayEnd": args.end or format_clock(session.config.day_end),
        }
        valid, errors = validate_schedule_config(proposed)
        if not valid:
            raise ValueError("; ".join(errors))
        await session.update_settings(args.interval, args.start, args.end, confirm=args.yes)
        return session.config

    schedule = asyncio.run(run())
    print(f"Interval: {schedule.interval_minutes} min")
    print(f"Day: {format_clock(schedule.day_start)}-{format_clock(schedule.day_end)}")


def cmd_priorities(args):
    """List and edit priority tags."""

    async def run():
        documents = _documents()
        registry = await documents.load_priorities()
        if args.action == "add":
            tag = registry.add(args.label, args.color or NEW_PRIORITY_COLOR)
            print(f"✓ Added {tag}")
        elif args.action == "rename":
            registry.rename(args.tag, args.label)
        elif args.action == "recolor":
            registry.recolor(args.tag, args.color)
        elif args.action == "delete":
            registry.delete(args.tag)
        if args.action != "list":
            await documents.save_priorities(registry)
        return registry

    if args.action in ("rename", "delete", "recolor") and not args.tag:
        raise ValueError(f"priorities {args.action} needs a tag")
    if args.action == "rename" and not args.label:
        raise ValueError("priorities rename needs --label")
    if args.action == "recolor" and not args.color:
        raise ValueError("priorities recolor needs --color")

    registry = asyncio.run(run())
    rows = [[tag, registry.get(tag).label, registry.get(tag).color] for tag in registry]
    print_table(["Tag", "Label", "Color"], rows)


def cmd_transition(args):
    """Run a day transition now."""

    async def run():
        scheduler = DayTransitionScheduler(_documents())
        name = Rollover.PROMOTE if args.action == "promote" else Rollover.ROUTINE
        now = None
        if args.date:
            now = datetime.combine(date.fromisoformat(args.date), datetime.now().time())
        return await scheduler.run_job(name, now)

    result = asyncio.run(run())
    status = "✓" if result.performed else "–"
    print(f"{status} {result.job}: {result.reason} ({result.source_key} → {result.target_key})")


def cmd_daemon(args):
    """Manage the background daemon."""
    from dayplan.daemon import TransitionDaemon, log_file

    if args.action == "start":
        running, pid = TransitionDaemon.is_running()
        if running:
            print(f"Daemon already running (PID {pid})")
            return

        if args.bg:
            import os

            pid = os.fork()
            if pid > 0:
                print(f"Daemon started in background (PID {pid})")
                return
            os.setsid()
            configure_log_rotation(str(log_file()))

        TransitionDaemon().run_forever()

    elif args.action == "stop":
        TransitionDaemon.stop()

    elif args.action == "status":
        status = TransitionDaemon.status()
        print(f"Running: {'✓ Yes' if status['running'] else '✗ No'}")
        if status["pid"]:
            print(f"PID: {status['pid']}")
        if status.get("state_updated"):
            print(f"State updated: {status['state_updated']}")
        print("\nJobs:")
        for name, job in status.get("jobs", {}).items():
            last_run = job.get("last_run", "never")[:19] if job.get("last_run") else "never"
            failures = job.get("consecutive_failures", 0)
            status_str = "✓" if failures == 0 else f"✗ ({failures} failures)"
            print(f"  {name} @ {job.get('at', '?')}: last run {last_run} {status_str}")

    elif args.action == "run-once":
        results = asyncio.run(TransitionDaemon().run_once())
        for result in results:
            print(f"{result.job}: {result.reason}")
        if not results:
            print("No transition due")


# ============================================================
# Entry point
# ============================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="dayplan: plan your day in time blocks")
    parser.add_argument("--log-level", default=config.LOG_LEVEL, help="Log level (default: INFO)")
    parser.add_argument("--json-logs", action="store_true", default=None, help="Log as JSON lines")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("init", help="Create the store and default settings")

    p = subparsers.add_parser("status", help="Show store and settings")
    p.add_argument("--metrics", action="store_true", help="Print metrics in Prometheus format")

    # Viewing
    p = subparsers.add_parser("show", help="Show a document's blocks")
    p.add_argument("document", nargs="?", default="today", help="today, tomorrow or a weekday")
    p.add_argument("--json", action="store_true", help="Output JSON")

    p = subparsers.add_parser("brief", help="Summarize a document")
    p.add_argument("document", nargs="?", default="today")
    p.add_argument("--plain", action="store_true", help="Plain text instead of markdown")

    # Editing
    p = subparsers.add_parser("assign", help="Assign a task to a block")
    p.add_argument("document")
    p.add_argument("block_id")
    p.add_argument("title")
    p.add_argument("--description", "-d", default="")
    p.add_argument("--priority", "-p", default="none")

    p = subparsers.add_parser("clear", help="Empty a block")
    p.add_argument("document")
    p.add_argument("block_id")

    p = subparsers.add_parser("split", help="Split a block into smaller blocks")
    p.add_argument("document")
    p.add_argument("block_id")

    p = subparsers.add_parser("merge", help="Merge adjacent blocks")
    p.add_argument("document")
    p.add_argument("block_ids", nargs="+")

    p = subparsers.add_parser("reset", help="Clear every block of a document")
    p.add_argument("document")
    p.add_argument("--yes", "-y", action="store_true", help="Confirm discarding assigned blocks")

    p = subparsers.add_parser("settings", help="Show or change interval and day boundaries")
    p.add_argument("--document", default="today", help="Document refitted to the new settings")
    p.add_argument("--interval", "-i", type=int, choices=ALLOWED_INTERVALS)
    p.add_argument("--start", "-s", help="Day start, HH:MM")
    p.add_argument("--end", "-e", help="Day end, HH:MM (00:00 = midnight)")
    p.add_argument("--yes", "-y", action="store_true", help="Confirm discarding assigned blocks")

    p = subparsers.add_parser("priorities", help="List or edit priority tags")
    p.add_argument("action", nargs="?", default="list", choices=["list", "add", "rename", "recolor", "delete"])
    p.add_argument("tag", nargs="?")
    p.add_argument("--label", "-l")
    p.add_argument("--color", "-c")

    # Transitions
    p = subparsers.add_parser("transition", help="Run a day transition now")
    p.add_argument("action", choices=["promote", "routine"])
    p.add_argument("--date", help="Treat this ISO date as today (routine only)")

    p = subparsers.add_parser("daemon", help="Manage background daemon")
    p.add_argument("action", choices=["start", "stop", "status", "run-once"], help="Daemon action")
    p.add_argument("--bg", action="store_true", help="Run in background (start only)")

    return parser


COMMANDS = {
    "init": cmd_init,
    "status": cmd_status,
    "show": cmd_show,
    "brief": cmd_brief,
    "assign": cmd_assign,
    "clear": cmd_clear,
    "split": cmd_split,
    "merge": cmd_merge,
    "reset": cmd_reset,
    "settings": cmd_settings,
    "priorities": cmd_priorities,
    "transition": cmd_transition,
    "daemon": cmd_daemon,
}


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level, json_format=args.json_logs if args.json_logs else config.LOG_JSON)

    if not args.command:
        parser.print_help()
        return 0

    try:
        COMMANDS[args.command](args)
    except ConfirmationRequired as e:
        print(f"⚠️ {e}. Re-run with --yes to confirm.", file=sys.stderr)
        for block in e.lost[:5]:
            print(f"  • {block.time_range} {block.title or '(no title)'}", file=sys.stderr)
        return 2
    except (BlockOperationError, ValueError, KeyError) as e:
        message = e.args[0] if isinstance(e, KeyError) and e.args else e
        print(f"✗ {message}", file=sys.stderr)
        return 1
    except StoreError as e:
        print(f"✗ Store error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
