"""
Base weekly timetable (read-only for the remapping engine).

This module manages the file:

    data/timetable.json

Schema:
    {"entries": [{"day": 1, "period": 1, "subject": "数学", "room": "3-1", "color": "blue"}, ...]}

`day` uses the CalendarWeekday convention (0=Sunday).
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, Iterable, List, Optional, Protocol

from timeschedule.model import BaseTimetableEntry


logger = logging.getLogger(__name__)


class TimetableRepository(Protocol):
    def fetch_by_weekday(self, calendar_weekday: int) -> List[BaseTimetableEntry]: ...


def _entry_from_dict(data: dict[str, Any]) -> Optional[BaseTimetableEntry]:
    try:
        day = int(data["day"])
        period = int(data["period"])
    except (KeyError, TypeError, ValueError):
        return None

    if not (0 <= day <= 6) or period < 1:
        return None

    room = data.get("room")
    color = data.get("color")
    return BaseTimetableEntry(
        day=day,
        period=period,
        subject=str(data.get("subject") or "").strip(),
        room=str(room).strip() if room else None,
        color=str(color).strip() if color else None,
    )


class JsonTimetableRepository:
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load_entries(self) -> List[BaseTimetableEntry]:
        """
        Load all entries. Returns [] if the file is missing or invalid.
        """
        if not self.path.exists():
            return []

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.warning("cannot read timetable %s: %s", self.path, exc)
            return []

        raw = data.get("entries", []) if isinstance(data, dict) else []
        if not isinstance(raw, list):
            return []

        entries: List[BaseTimetableEntry] = []
        for item in raw:
            entry = _entry_from_dict(item) if isinstance(item, dict) else None
            if entry is not None:
                entries.append(entry)
        return entries

    def save_entries(self, entries: Iterable[BaseTimetableEntry]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        ordered = sorted(entries, key=lambda e: (e.day, e.period))
        payload = {"entries": [asdict(e) for e in ordered]}
        self.path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")

    def fetch_by_weekday(self, calendar_weekday: int) -> List[BaseTimetableEntry]:
        return [e for e in self.load_entries() if e.day == calendar_weekday]
