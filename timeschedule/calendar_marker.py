"""
Marker events: the calendar signal that a date has a special schedule.

A marker is any event on the date whose title contains one of MARKER_KEYWORDS
or starts with MARKER_PREFIX. Markers created here are titled

    "特殊時程: <pattern name>"

and span the whole day.

The adapter in this module keeps markers in a local iCalendar (.ics) file so
that they can be imported into, or subscribed from, any calendar app.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Protocol, Union

from icalendar import Calendar, Event

from timeschedule.model import normalize_date


logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]

MARKER_PREFIX = "特殊時程: "
MARKER_KEYWORDS = ("時程", "短縮", "テスト時程", "特殊", "カスタム")
NOTES_PREFIX = "時間割アプリの特殊時程設定: "


@dataclass(frozen=True)
class MarkerInfo:
    date: date
    pattern_name: str
    handle: str
    title: str


@dataclass(frozen=True)
class OperationResult:
    ok: bool
    error: Optional[str] = None
    handle: Optional[str] = None

    @classmethod
    def success(cls, handle: Optional[str] = None) -> "OperationResult":
        return cls(ok=True, handle=handle)

    @classmethod
    def failure(cls, error: str) -> "OperationResult":
        return cls(ok=False, error=error)

    def __bool__(self) -> bool:
        return self.ok


class MarkerEventGateway(Protocol):
    def find_marker(self, day: DateLike) -> Optional[MarkerInfo]: ...

    def list_markers(self, start: DateLike, end: DateLike) -> List[MarkerInfo]: ...

    def create_marker(self, day: DateLike, pattern_name: str) -> OperationResult: ...

    def delete_marker(self, handle: str) -> OperationResult: ...


# ---------------------------------------------------------------------------
# Title helpers
# ---------------------------------------------------------------------------


def is_marker_title(title: str) -> bool:
    if not title:
        return False
    if title.startswith(MARKER_PREFIX.strip()):
        return True
    return any(keyword in title for keyword in MARKER_KEYWORDS)


def pattern_from_title(title: str) -> str:
    """
    Strip the marker prefix. Titles without the prefix are returned unchanged.
    """
    stripped = title.strip()
    prefix = MARKER_PREFIX.strip()
    if stripped.startswith(prefix):
        return stripped[len(prefix) :].strip()
    return stripped


def marker_title(pattern_name: str) -> str:
    return f"{MARKER_PREFIX}{pattern_name}"


# ---------------------------------------------------------------------------
# iCalendar file adapter
# ---------------------------------------------------------------------------


def _as_date(value: object) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return None


def _event_span(event: Event) -> Optional[tuple[date, date]]:
    """
    Return [first_day, last_day] covered by the event.
    """
    dtstart = event.get("dtstart")
    start = _as_date(dtstart.dt) if dtstart is not None else None
    if start is None:
        return None

    dtend = event.get("dtend")
    end_value = dtend.dt if dtend is not None else None
    if end_value is None:
        return start, start

    # DTEND is exclusive for all-day and timed events alike
    if isinstance(end_value, datetime):
        start_value = dtstart.dt
        if not isinstance(start_value, datetime) or end_value <= start_value:
            return start, start
        last = (end_value - timedelta(microseconds=1)).date()
    else:
        last = end_value - timedelta(days=1)

    return start, max(start, last)


def _new_calendar() -> Calendar:
    cal = Calendar()
    cal.add("prodid", "-//TimeSchedule//special schedules//JA")
    cal.add("version", "2.0")
    cal.add("calscale", "GREGORIAN")
    cal.add("x-wr-calname", "特殊時程")
    return cal


class IcsMarkerCalendar:
    """
    MarkerEventGateway stored in one .ics file.

    read_only=True reproduces a calendar without write permission:
    lookups work, create/delete report failure.
    """

    def __init__(self, path: str | Path, read_only: bool = False) -> None:
        self.path = Path(path)
        self.read_only = read_only
        self._lock = threading.Lock()

    # -- file access --------------------------------------------------------

    def _load(self) -> Calendar:
        if not self.path.exists():
            return _new_calendar()
        return Calendar.from_ical(self.path.read_bytes())

    def _save(self, cal: Calendar) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".special_schedules.", suffix=".ics", dir=self.path.parent)
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(cal.to_ical())
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _markers(self, cal: Calendar) -> Iterable[tuple[Event, date, date]]:
        for event in cal.walk("VEVENT"):
            title = str(event.get("summary", ""))
            if not is_marker_title(title):
                continue
            span = _event_span(event)
            if span is None:
                continue
            yield event, span[0], span[1]

    def _load_markers(self) -> List[tuple[Event, date, date]]:
        """
        Read every marker event. An unreadable calendar counts as empty.
        """
        try:
            with self._lock:
                cal = self._load()
        except (OSError, ValueError) as exc:
            logger.warning("cannot read calendar %s: %s", self.path, exc)
            return []
        return list(self._markers(cal))

    @staticmethod
    def _info(event: Event, day: date) -> MarkerInfo:
        title = str(event.get("summary", ""))
        return MarkerInfo(
            date=day,
            pattern_name=pattern_from_title(title),
            handle=str(event.get("uid", "")),
            title=title,
        )

    # -- MarkerEventGateway -------------------------------------------------

    def find_marker(self, day: DateLike) -> Optional[MarkerInfo]:
        d = normalize_date(day)
        for event, first, last in self._load_markers():
            if first <= d <= last:
                return self._info(event, d)
        return None

    def list_markers(self, start: DateLike, end: DateLike) -> List[MarkerInfo]:
        first_day = normalize_date(start)
        last_day = normalize_date(end)

        out: List[MarkerInfo] = []
        for event, first, _last in self._load_markers():
            if first_day <= first <= last_day:
                out.append(self._info(event, first))
        out.sort(key=lambda m: (m.date, m.title))
        return out

    def create_marker(self, day: DateLike, pattern_name: str) -> OperationResult:
        """
        Replace any marker on the date with a new all-day marker event.
        """
        if self.read_only:
            return OperationResult.failure("calendar is read-only")

        d = normalize_date(day)
        try:
            with self._lock:
                cal = self._load()
                stale = {
                    str(event.get("uid", ""))
                    for event, first, last in self._markers(cal)
                    if first <= d <= last
                }

                out = _new_calendar()
                for component in cal.subcomponents:
                    if component.name == "VEVENT" and str(component.get("uid", "")) in stale:
                        continue
                    out.add_component(component)

                uid = f"{uuid.uuid4().hex}@timeschedule"
                event = Event()
                event.add("uid", uid)
                event.add("dtstamp", datetime.now(timezone.utc))
                event.add("dtstart", d)
                event.add("dtend", d + timedelta(days=1))
                event.add("summary", marker_title(pattern_name))
                event.add("description", f"{NOTES_PREFIX}{pattern_name}")
                out.add_component(event)

                self._save(out)
        except (OSError, ValueError) as exc:
            logger.warning("cannot create marker for %s: %s", d.isoformat(), exc)
            return OperationResult.failure(str(exc))

        if stale:
            logger.debug("replaced %d marker(s) on %s", len(stale), d.isoformat())
        return OperationResult.success(uid)

    def delete_marker(self, handle: str) -> OperationResult:
        if self.read_only:
            return OperationResult.failure("calendar is read-only")

        try:
            with self._lock:
                cal = self._load()
                out = _new_calendar()
                found = False
                for component in cal.subcomponents:
                    if component.name == "VEVENT" and str(component.get("uid", "")) == handle:
                        found = True
                        continue
                    out.add_component(component)

                if not found:
                    return OperationResult.failure(f"marker not found: {handle}")

                self._save(out)
        except (OSError, ValueError) as exc:
            logger.warning("cannot delete marker %s: %s", handle, exc)
            return OperationResult.failure(str(exc))

        return OperationResult.success()
