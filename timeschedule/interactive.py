from __future__ import annotations

from datetime import date, timedelta

from rich import box
from rich.console import Console
from rich.table import Table

from timeschedule.cli import parse_date, sorted_entries
from timeschedule.config import Settings
from timeschedule.model import logical_weekday_of, weekday_name
from timeschedule.patterns import JsonPatternStore, pattern_for
from timeschedule.reconstruct import ApplyOutcome, ScheduleReconstructor


console = Console()

BUILT_IN_PATTERNS = ["通常", "短縮A時程", "短縮B時程", "短縮C時程", "テスト時程"]
LIST_DAYS = 30


def _prompt(msg: str) -> str:
    return console.input(msg)


def _ask_date(default: date | None = None) -> date | None:
    hint = f" [blank = {default.isoformat()}]" if default else ""
    raw = _prompt(f"Date (YYYY-MM-DD / today){hint}: ").strip()
    if not raw and default is not None:
        return default
    try:
        return parse_date(raw)
    except ValueError:
        console.print("[red]Invalid date.[/]")
        return None


def run_interactive(rec: ScheduleReconstructor, settings: Settings) -> None:
    """
    Interactive menu loop.
    """
    while True:
        today = date.today()
        console.print(f"\n=== TimeSchedule (interactive) === {today.isoformat()} ({weekday_name(today.weekday())})")

        choice = _prompt(
            "\n[1] Show day\n"
            "[2] Apply special schedule\n"
            "[3] Remove special schedule\n"
            f"[4] Upcoming special schedules ({LIST_DAYS} days)\n"
            "[0] Exit\n"
            "Select: "
        ).strip()

        if choice == "0":
            console.print("Bye.")
            return

        if choice == "1":
            _flow_show(rec, settings)
        elif choice == "2":
            _flow_apply(rec)
        elif choice == "3":
            _flow_remove(rec)
        elif choice == "4":
            _flow_list(rec)
        else:
            console.print("Invalid choice.")


def _flow_show(rec: ScheduleReconstructor, settings: Settings) -> None:
    day = _ask_date(date.today())
    if day is None:
        return

    pattern_name = rec.special_pattern_name(day)
    times = pattern_for(pattern_name, JsonPatternStore(settings.patterns_path).load_patterns())
    entries = sorted_entries(rec.effective_schedule(day))

    title = f"{day.isoformat()} ({weekday_name(logical_weekday_of(day))})"
    if pattern_name:
        title += f" – {pattern_name}"

    table = Table(title=title, box=box.SIMPLE)
    table.add_column("限", justify="right")
    table.add_column("Time")
    table.add_column("Subject")
    table.add_column("Room")
    table.add_column("From")

    for e in entries:
        subject = f"[bold cyan]{e.subject}[/]" if e.is_special else e.subject
        table.add_row(
            str(e.period),
            f"{times.start_time(e.period)}-{times.end_time(e.period)}",
            subject,
            e.room or "",
            f"[yellow]{e.original_info}[/]" if e.original_info else "",
        )

    if not entries:
        console.print(f"{title}: no classes.")
        return
    console.print(table)


def _flow_apply(rec: ScheduleReconstructor) -> None:
    day = _ask_date(date.today())
    if day is None:
        return

    for i, name in enumerate(BUILT_IN_PATTERNS, start=1):
        console.print(f"[{i}] {name}")
    console.print("[c] Custom")

    pick = _prompt("Pattern: ").strip().lower()
    custom = None
    if pick == "c":
        pattern_name = _prompt("Custom pattern name [blank = カスタム設定]: ").strip() or "カスタム設定"
        custom = _prompt("Notation (e.g. 月123火45 or 月123→火123): ").strip() or None
    elif pick.isdigit() and 1 <= int(pick) <= len(BUILT_IN_PATTERNS):
        pattern_name = BUILT_IN_PATTERNS[int(pick) - 1]
    else:
        console.print("Invalid choice.")
        return

    outcome = rec.apply_outcome(day, pattern_name, custom_notation=custom)
    if outcome is ApplyOutcome.APPLIED:
        console.print(f"[green]Applied[/] {pattern_name} to {day.isoformat()}.")
    elif outcome is ApplyOutcome.NOTHING_TO_REMAP:
        console.print(f"[yellow]Marked[/] {day.isoformat()} as {pattern_name}, but nothing to remap.")
    else:
        console.print(f"[red]Failed[/] to apply {pattern_name} to {day.isoformat()}.")


def _flow_remove(rec: ScheduleReconstructor) -> None:
    day = _ask_date()
    if day is None:
        return

    if rec.remove_special_schedule(day):
        console.print(f"Removed special schedule for {day.isoformat()}.")
    else:
        console.print(f"[red]Failed[/] to remove special schedule for {day.isoformat()}.")


def _flow_list(rec: ScheduleReconstructor) -> None:
    start = date.today()
    markers = rec.list_special_schedules(start, start + timedelta(days=LIST_DAYS - 1))
    if not markers:
        console.print("No special schedules.")
        return

    table = Table(title=f"Special schedules (next {LIST_DAYS} days)", box=box.SIMPLE)
    table.add_column("Date")
    table.add_column("Pattern")
    for m in markers:
        table.add_row(f"{m.date.isoformat()} ({weekday_name(m.date.weekday())})", m.pattern_name)
    console.print(table)
