"""
CLI (Command Line Interface).

Quick terminal commands, e.g.:

    timeschedule show 2026-10-19
    timeschedule apply 2026-10-19 短縮A時程
    timeschedule apply 2026-10-19 "月曜授業" --custom "月123水45"
    timeschedule remove 2026-10-19
    timeschedule list --days 30
    timeschedule preview "月123→火123" --weekday 水
    timeschedule import saved_timetable.html
    timeschedule interactive

Note:
- The interactive UI lives in timeschedule/interactive.py
- This CLI prints plain text (no rich formatting)
"""

from __future__ import annotations

import argparse
import logging
from datetime import date, datetime, timedelta

import requests

from timeschedule.calendar_marker import IcsMarkerCalendar
from timeschedule.config import Settings, load_settings
from timeschedule.importer import import_timetable
from timeschedule.model import WEEKDAY_GLYPHS, ReconstructedEntry, logical_weekday_of, weekday_name
from timeschedule.patterns import JsonPatternStore, pattern_for
from timeschedule.reconstruct import ApplyOutcome, ScheduleReconstructor
from timeschedule.storage import JsonMappingStore
from timeschedule.timetable import JsonTimetableRepository


def build_reconstructor(settings: Settings) -> ScheduleReconstructor:
    return ScheduleReconstructor(
        timetable=JsonTimetableRepository(settings.timetable_path),
        store=JsonMappingStore(settings.mapping_path),
        markers=IcsMarkerCalendar(settings.calendar_path),
    )


def parse_date(text: str) -> date:
    """
    Accept 'YYYY-MM-DD' or 'today'. Raises ValueError otherwise.
    """
    text = (text or "").strip()
    if text.lower() == "today":
        return date.today()
    return datetime.strptime(text, "%Y-%m-%d").date()


def sorted_entries(entries: list[ReconstructedEntry]) -> list[ReconstructedEntry]:
    # reconstruction does not sort; rendering does
    return sorted(entries, key=lambda e: e.period)


def entry_line(entry: ReconstructedEntry, start: str, end: str) -> str:
    bits = [f"{entry.period}限", f"{start}-{end}", entry.subject or "(no subject)"]
    if entry.room:
        bits.append(f"@ {entry.room}")
    if entry.original_info:
        bits.append(entry.original_info)
    return " | ".join(bits)


def _cmd_show(args: argparse.Namespace, settings: Settings) -> int:
    """
    Print the effective schedule of one date.
    """
    try:
        day = parse_date(args.date)
    except ValueError:
        print(f"Invalid date: {args.date!r} (use YYYY-MM-DD or 'today')")
        return 1

    rec = build_reconstructor(settings)
    pattern_name = rec.special_pattern_name(day)
    entries = sorted_entries(rec.effective_schedule(day))
    times = pattern_for(pattern_name, JsonPatternStore(settings.patterns_path).load_patterns())

    header = f"{day.isoformat()} ({weekday_name(logical_weekday_of(day))})"
    if pattern_name:
        header += f" – {pattern_name}"
    print(header)

    if not entries:
        print("No classes.")
        return 0

    for e in entries:
        print(entry_line(e, times.start_time(e.period), times.end_time(e.period)))
    return 0


def _cmd_apply(args: argparse.Namespace, settings: Settings) -> int:
    """
    Create the marker event and store the period mapping for a date.
    """
    try:
        day = parse_date(args.date)
    except ValueError:
        print(f"Invalid date: {args.date!r} (use YYYY-MM-DD or 'today')")
        return 1

    pattern_name = (args.pattern or "").strip()
    if not pattern_name:
        print("Please provide a pattern name.")
        return 1

    custom = (args.custom or "").strip() or None
    outcome = build_reconstructor(settings).apply_outcome(day, pattern_name, custom_notation=custom)

    if outcome is ApplyOutcome.FAILED:
        print(f"Failed to apply special schedule for {day.isoformat()}.")
        return 1
    if outcome is ApplyOutcome.NOTHING_TO_REMAP:
        print(f"Marked {day.isoformat()} as {pattern_name!r}, but nothing to remap (normal timetable is used).")
        return 0

    print(f"Applied {pattern_name!r} to {day.isoformat()}.")
    return 0


def _cmd_remove(args: argparse.Namespace, settings: Settings) -> int:
    try:
        day = parse_date(args.date)
    except ValueError:
        print(f"Invalid date: {args.date!r} (use YYYY-MM-DD or 'today')")
        return 1

    if not build_reconstructor(settings).remove_special_schedule(day):
        print(f"Failed to remove special schedule for {day.isoformat()}.")
        return 1

    print(f"Removed special schedule for {day.isoformat()}.")
    return 0


def _cmd_list(args: argparse.Namespace, settings: Settings) -> int:
    """
    List marker events in [start, start + days).
    """
    try:
        start = parse_date(args.start)
    except ValueError:
        print(f"Invalid date: {args.start!r} (use YYYY-MM-DD or 'today')")
        return 1

    if args.days < 1:
        print("--days must be at least 1.")
        return 1

    end = start + timedelta(days=args.days - 1)
    markers = build_reconstructor(settings).list_special_schedules(start, end)
    if not markers:
        print("No special schedules.")
        return 0

    for m in markers:
        print(f"{m.date.isoformat()} ({weekday_name(m.date.weekday())}) | {m.pattern_name}")
    return 0


def _cmd_preview(args: argparse.Namespace, settings: Settings) -> int:
    """
    Print the reorder configs a pattern would produce. Nothing is stored.
    """
    glyph = (args.weekday or "").strip()
    if len(glyph) != 1 or glyph not in WEEKDAY_GLYPHS:
        print(f"Invalid weekday: {args.weekday!r} (use one of {WEEKDAY_GLYPHS})")
        return 1

    weekday = WEEKDAY_GLYPHS.index(glyph)
    configs = build_reconstructor(settings).preview(args.pattern, weekday, (args.custom or "").strip() or None)
    if not configs:
        print("Nothing to remap (normal timetable).")
        return 0

    for c in configs:
        for original_period, target_period in c.pairs():
            print(
                f"{weekday_name(c.original_day)}{original_period} → {weekday_name(c.target_day)}{target_period}"
            )
    return 0


def _cmd_import(args: argparse.Namespace, settings: Settings) -> int:
    try:
        entries = import_timetable(args.source)
    except (OSError, UnicodeDecodeError, requests.RequestException) as exc:
        print(f"Cannot read {args.source}: {exc}")
        return 1

    if not entries:
        print("No timetable entries found.")
        return 1

    JsonTimetableRepository(settings.timetable_path).save_entries(entries)
    print(f"Imported {len(entries)} entries to: {settings.timetable_path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="timeschedule", description="TimeSchedule special schedule CLI")
    parser.add_argument("--data-dir", type=str, default=None, help="Data directory (default: $TIMESCHEDULE_DATA_DIR)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_show = sub.add_parser("show", help="Show the effective schedule of a date")
    p_show.add_argument("date", type=str, help="YYYY-MM-DD or 'today'")

    p_apply = sub.add_parser("apply", help="Apply a special schedule to a date")
    p_apply.add_argument("date", type=str, help="YYYY-MM-DD or 'today'")
    p_apply.add_argument("pattern", type=str, help="Pattern name (e.g. 短縮A時程, テスト時程, 月123水45)")
    p_apply.add_argument("--custom", type=str, default=None, help="Custom notation (e.g. 月123水45 or 月123→火123)")

    p_remove = sub.add_parser("remove", help="Remove the special schedule of a date")
    p_remove.add_argument("date", type=str, help="YYYY-MM-DD or 'today'")

    p_list = sub.add_parser("list", help="List applied special schedules")
    p_list.add_argument("--start", type=str, default="today", help="First date (default: today)")
    p_list.add_argument("--days", type=int, default=30, help="Number of days (default: 30)")

    p_preview = sub.add_parser("preview", help="Show the period mapping of a pattern")
    p_preview.add_argument("pattern", type=str, help="Pattern name or notation")
    p_preview.add_argument("--weekday", type=str, default="月", help="Weekday glyph (月火水木金土日)")
    p_preview.add_argument("--custom", type=str, default=None, help="Custom notation")

    p_import = sub.add_parser("import", help="Import the base timetable from an HTML table")
    p_import.add_argument("source", type=str, help="File path or http(s) URL")

    sub.add_parser("interactive", help="Interactive menu mode")

    return parser


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    settings = load_settings(args.data_dir)

    if args.command == "show":
        raise SystemExit(_cmd_show(args, settings))
    if args.command == "apply":
        raise SystemExit(_cmd_apply(args, settings))
    if args.command == "remove":
        raise SystemExit(_cmd_remove(args, settings))
    if args.command == "list":
        raise SystemExit(_cmd_list(args, settings))
    if args.command == "preview":
        raise SystemExit(_cmd_preview(args, settings))
    if args.command == "import":
        raise SystemExit(_cmd_import(args, settings))

    if args.command == "interactive":
        from timeschedule.interactive import run_interactive

        run_interactive(build_reconstructor(settings), settings)
        raise SystemExit(0)

    raise SystemExit(2)
