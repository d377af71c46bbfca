"""
Bell-time patterns.

A pattern names the start/end time of each period ("通常", "短縮A時程", ...).
The timetable itself (which subject sits in which slot) does not change with
the pattern; only the clock times do.

This module manages the file:

    data/patterns.json
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, List, Optional


logger = logging.getLogger(__name__)

UNKNOWN_TIME = "--:--"


@dataclass
class PeriodTime:
    period: int
    start: str
    end: str


@dataclass
class TimePattern:
    name: str
    is_default: bool = False
    period_times: List[PeriodTime] = field(default_factory=list)

    @property
    def period_count(self) -> int:
        return len(self.period_times)

    def start_time(self, period: int) -> str:
        if not (0 < period <= len(self.period_times)):
            return UNKNOWN_TIME
        return self.period_times[period - 1].start

    def end_time(self, period: int) -> str:
        if not (0 < period <= len(self.period_times)):
            return UNKNOWN_TIME
        return self.period_times[period - 1].end


def default_pattern() -> TimePattern:
    times = [
        ("8:30", "9:20"),
        ("9:30", "10:20"),
        ("10:40", "11:30"),
        ("11:40", "12:30"),
        ("13:20", "14:10"),
        ("14:20", "15:10"),
    ]
    return TimePattern(
        name="通常",
        is_default=True,
        period_times=[PeriodTime(i, s, e) for i, (s, e) in enumerate(times, start=1)],
    )


def pattern_for(name: Optional[str], patterns: Iterable[TimePattern]) -> TimePattern:
    """
    Exact name match, else the default pattern (or the built-in one).
    """
    patterns = list(patterns)
    if name:
        for p in patterns:
            if p.name == name:
                return p
    for p in patterns:
        if p.is_default:
            return p
    return default_pattern()


def _pattern_from_dict(data: dict[str, Any]) -> Optional[TimePattern]:
    name = str(data.get("name") or "").strip()
    if not name:
        return None

    times: List[PeriodTime] = []
    raw_times = data.get("period_times", [])
    for i, item in enumerate(raw_times if isinstance(raw_times, list) else [], start=1):
        if not isinstance(item, dict):
            continue
        times.append(
            PeriodTime(
                period=int(item.get("period") or i),
                start=str(item.get("start") or UNKNOWN_TIME),
                end=str(item.get("end") or UNKNOWN_TIME),
            )
        )
    times.sort(key=lambda t: t.period)

    return TimePattern(name=name, is_default=bool(data.get("is_default")), period_times=times)


class JsonPatternStore:
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load_patterns(self) -> List[TimePattern]:
        """
        Load stored patterns. Missing or invalid file -> the built-in default only.
        """
        if not self.path.exists():
            return [default_pattern()]

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            raw = data.get("patterns", [])
        except (OSError, json.JSONDecodeError, UnicodeDecodeError, AttributeError) as exc:
            logger.warning("cannot read patterns %s: %s", self.path, exc)
            return [default_pattern()]

        patterns: List[TimePattern] = []
        for item in raw if isinstance(raw, list) else []:
            try:
                p = _pattern_from_dict(item) if isinstance(item, dict) else None
            except (TypeError, ValueError):
                p = None
            if p is not None:
                patterns.append(p)

        return patterns or [default_pattern()]

    def save_patterns(self, patterns: Iterable[TimePattern]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "patterns": [
                {
                    "name": p.name,
                    "is_default": p.is_default,
                    "period_times": [{"period": t.period, "start": t.start, "end": t.end} for t in p.period_times],
                }
                for p in patterns
            ]
        }
        self.path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
