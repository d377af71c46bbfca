"""
Effective schedule computation.

Applying a special schedule:
    markers.create_marker -> reorder.build -> store.replace

Reading a day:
    store.rows_for_date (or marker + reorder.build if nothing is stored yet)
    -> base timetable lookup -> copy and relabel entries

Store and calendar failures never reach the caller of effective_schedule():
they fall back to the plain weekly timetable. apply/remove report them as False.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from enum import Enum
from typing import Callable, Dict, List, Optional, Union

from timeschedule import reorder
from timeschedule.calendar_marker import MarkerEventGateway, MarkerInfo
from timeschedule.model import (
    BaseTimetableEntry,
    PeriodReorderConfig,
    ReconstructedEntry,
    ScheduleKind,
    logical_weekday_of,
    normalize_date,
    to_calendar_weekday,
    weekday_name,
)
from timeschedule.storage import MappingStore, StorageError, reassemble_configs
from timeschedule.timetable import TimetableRepository


logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]
Builder = Callable[[str, int], List[PeriodReorderConfig]]


class ApplyOutcome(Enum):
    APPLIED = "applied"
    NOTHING_TO_REMAP = "nothing_to_remap"
    FAILED = "failed"


def original_info(day: int, period: int) -> str:
    """
    Display label of the source slot, e.g. "(月3)".
    """
    return f"({weekday_name(day)}{period})"


def merge(
    configs: List[PeriodReorderConfig],
    base_lookup: Callable[[int], List[BaseTimetableEntry]],
) -> List[ReconstructedEntry]:
    """
    Copy each source slot onto its target slot. Missing sources are skipped.

    base_lookup takes a CalendarWeekday. Output follows config order, not
    period order.
    """
    cache: Dict[int, Dict[int, BaseTimetableEntry]] = {}
    result: List[ReconstructedEntry] = []

    for config in configs:
        source_day = to_calendar_weekday(config.original_day)
        target_day = to_calendar_weekday(config.target_day)

        if source_day not in cache:
            by_period: Dict[int, BaseTimetableEntry] = {}
            for entry in base_lookup(source_day):
                # first entry wins when a slot is duplicated
                by_period.setdefault(entry.period, entry)
            cache[source_day] = by_period

        for original_period, target_period in config.pairs():
            entry = cache[source_day].get(original_period)
            if entry is None:
                logger.debug(
                    "no base entry for %s%d, slot skipped", weekday_name(config.original_day), original_period
                )
                continue
            result.append(
                ReconstructedEntry.from_base(entry).relabeled(
                    day=target_day,
                    period=target_period,
                    original_info=original_info(config.original_day, original_period),
                )
            )

    return result


class ScheduleReconstructor:
    def __init__(
        self,
        timetable: TimetableRepository,
        store: MappingStore,
        markers: MarkerEventGateway,
        builder: Builder = reorder.build,
    ) -> None:
        self.timetable = timetable
        self.store = store
        self.markers = markers
        self.builder = builder

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def configs_for_date(self, day: DateLike) -> List[PeriodReorderConfig]:
        """
        Stored configs, or configs built from the date's marker when the
        mapping was never materialized. Nothing is written here.
        """
        try:
            rows = self.store.rows_for_date(day)
            # an empty stored record still means "applied, nothing to remap"
            if rows or self.store.has_date(day):
                return reassemble_configs(rows)
        except StorageError as exc:
            logger.warning("mapping store unavailable: %s", exc)

        marker = self.markers.find_marker(day)
        if marker is None:
            return []

        logger.debug("building configs from marker %r", marker.pattern_name)
        return self.builder(marker.pattern_name, logical_weekday_of(day))

    def identity_schedule(self, day: DateLike) -> List[ReconstructedEntry]:
        weekday = to_calendar_weekday(logical_weekday_of(day))
        return [ReconstructedEntry.from_base(e) for e in self.timetable.fetch_by_weekday(weekday)]

    def effective_schedule(self, day: DateLike) -> List[ReconstructedEntry]:
        """
        Entries shown for the date. Unsorted: callers sort by period.
        """
        configs = self.configs_for_date(day)
        if not configs:
            return self.identity_schedule(day)
        return merge(configs, self.timetable.fetch_by_weekday)

    def special_pattern_name(self, day: DateLike) -> Optional[str]:
        marker = self.markers.find_marker(day)
        return marker.pattern_name if marker is not None else None

    def list_special_schedules(self, start: DateLike, end: DateLike) -> List[MarkerInfo]:
        return self.markers.list_markers(start, end)

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def preview(
        self, pattern_name: str, weekday: int, custom_notation: Optional[str] = None
    ) -> List[PeriodReorderConfig]:
        if custom_notation:
            return reorder.build_for_kind(ScheduleKind.CUSTOM, custom_notation, weekday)
        return self.builder(pattern_name, weekday)

    def apply_outcome(
        self,
        day: DateLike,
        pattern_name: str,
        weekday: Optional[int] = None,
        custom_notation: Optional[str] = None,
    ) -> ApplyOutcome:
        """
        Create the marker, then store the mapping for the date.

        A non-empty custom_notation is parsed as custom notation directly,
        without classifying pattern_name.
        """
        if weekday is None:
            weekday = logical_weekday_of(day)

        configs = self.preview(pattern_name, weekday, custom_notation)

        created = self.markers.create_marker(day, pattern_name)
        if not created:
            logger.warning("marker not created for %s: %s", normalize_date(day), created.error)
            return ApplyOutcome.FAILED

        try:
            self.store.replace(day, configs, pattern_name)
        except StorageError as exc:
            logger.warning("mapping not stored for %s: %s", normalize_date(day), exc)
            self._rollback_marker(day, created.handle)
            return ApplyOutcome.FAILED

        if not configs:
            logger.info("%s: marker %r created, nothing to remap", normalize_date(day), pattern_name)
            return ApplyOutcome.NOTHING_TO_REMAP
        return ApplyOutcome.APPLIED

    def _rollback_marker(self, day: DateLike, handle: Optional[str]) -> None:
        # no marker may outlive a failed mapping write
        if handle is None:
            marker = self.markers.find_marker(day)
            if marker is None:
                return
            handle = marker.handle
        deleted = self.markers.delete_marker(handle)
        if not deleted:
            logger.warning("marker left on %s: %s", normalize_date(day), deleted.error)

    def apply(
        self,
        day: DateLike,
        pattern_name: str,
        weekday: Optional[int] = None,
        custom_notation: Optional[str] = None,
    ) -> bool:
        """
        True only when configs were produced and stored.
        """
        return self.apply_outcome(day, pattern_name, weekday, custom_notation) is ApplyOutcome.APPLIED

    def remove(self, day: DateLike) -> bool:
        marker = self.markers.find_marker(day)
        if marker is not None:
            deleted = self.markers.delete_marker(marker.handle)
            if not deleted:
                logger.warning("marker not deleted for %s: %s", normalize_date(day), deleted.error)
                return False

        try:
            self.store.clear(day)
        except StorageError as exc:
            logger.warning("mapping not cleared for %s: %s", normalize_date(day), exc)
            return False
        return True

    # UI-facing names

    def apply_special_schedule(self, day: DateLike, pattern_name: str, custom_notation: Optional[str] = None) -> bool:
        return self.apply(day, pattern_name, custom_notation=custom_notation)

    def remove_special_schedule(self, day: DateLike) -> bool:
        return self.remove(day)
