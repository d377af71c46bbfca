"""
Central data model definitions used across the project.

Two weekday conventions exist:
- LogicalWeekday: 0=Monday ... 6=Sunday, used by the remapping engine
- CalendarWeekday: 0=Sunday ... 6=Saturday, used by the base timetable store

Conversion happens only at the storage boundary, through
to_calendar_weekday() / to_logical_weekday().
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import List, NewType, Optional, Union


LogicalWeekday = NewType("LogicalWeekday", int)
CalendarWeekday = NewType("CalendarWeekday", int)

# Monday-first glyph table (index == LogicalWeekday)
WEEKDAY_GLYPHS = "月火水木金土日"


def to_calendar_weekday(day: int) -> CalendarWeekday:
    return CalendarWeekday((day + 1) % 7)


def to_logical_weekday(day: int) -> LogicalWeekday:
    return LogicalWeekday((day + 6) % 7)


def weekday_name(day: int) -> str:
    """
    Return the weekday glyph for a logical weekday (0=月).
    """
    return WEEKDAY_GLYPHS[day % 7]


def normalize_date(value: Union[date, datetime]) -> date:
    """
    Normalize a date or datetime to its calendar day (start of day).
    """
    if isinstance(value, datetime):
        return value.date()
    return value


def logical_weekday_of(value: Union[date, datetime]) -> LogicalWeekday:
    # date.weekday() is already Monday-first
    return LogicalWeekday(normalize_date(value).weekday())


class ScheduleKind(Enum):
    NORMAL = "通常"
    SHORT_A = "短縮A時程"
    SHORT_B = "短縮B時程"
    SHORT_C = "短縮C時程"
    EXAM = "テスト時程"
    CUSTOM = "カスタム"


@dataclass
class ReorderSegment:
    """
    One weekday glyph followed by its periods, e.g. "水45" -> (2, [4, 5]).
    """

    day: int
    periods: List[int] = field(default_factory=list)


@dataclass
class PeriodReorderConfig:
    """
    Maps originalPeriods[i] on originalDay onto targetPeriods[i] on targetDay.
    """

    original_day: int
    target_day: int
    original_periods: List[int]
    target_periods: List[int]

    def pairs(self) -> list[tuple[int, int]]:
        return list(zip(self.original_periods, self.target_periods))


@dataclass(frozen=True)
class SpecialScheduleRow:
    """
    One flattened period pair as persisted by the mapping store.
    """

    original_day: int
    target_day: int
    original_period: int
    target_period: int
    pattern_name: str


@dataclass
class SpecialScheduleRecord:
    """
    All rows stored for one normalized date.
    """

    date: date
    pattern_name: str
    rows: List[SpecialScheduleRow] = field(default_factory=list)


@dataclass
class BaseTimetableEntry:
    """
    One slot of the weekly timetable. `day` uses the CalendarWeekday convention.
    """

    day: int
    period: int
    subject: str
    room: Optional[str] = None
    color: Optional[str] = None


@dataclass
class ReconstructedEntry:
    day: int
    period: int
    subject: str
    room: Optional[str] = None
    color: Optional[str] = None
    is_special: bool = False
    original_info: Optional[str] = None

    @classmethod
    def from_base(cls, entry: BaseTimetableEntry) -> "ReconstructedEntry":
        return cls(
            day=entry.day,
            period=entry.period,
            subject=entry.subject,
            room=entry.room,
            color=entry.color,
        )

    def relabeled(self, day: int, period: int, original_info: str) -> "ReconstructedEntry":
        return replace(self, day=day, period=period, is_special=True, original_info=original_info)
