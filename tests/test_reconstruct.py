"""
Unit tests for effective schedule reconstruction.

Base timetable used below (CalendarWeekday: 1=Monday, 3=Wednesday):
    Monday    1 数学, 2 英語, 3 国語, 4 理科, 5 体育
    Wednesday 1 音楽, 2 美術, 3 社会, 4 技術, 5 家庭
"""

import json
import tempfile
import unittest
from datetime import date
from pathlib import Path
from typing import List, Optional

from timeschedule.calendar_marker import IcsMarkerCalendar, MarkerInfo, OperationResult
from timeschedule.model import BaseTimetableEntry, PeriodReorderConfig
from timeschedule.reconstruct import ApplyOutcome, ScheduleReconstructor, merge, original_info
from timeschedule.storage import JsonMappingStore, StorageError
from timeschedule.timetable import JsonTimetableRepository


MONDAY = date(2026, 10, 19)
WEDNESDAY = date(2026, 10, 21)

BASE = [
    BaseTimetableEntry(1, 1, "数学", "3-1", "blue"),
    BaseTimetableEntry(1, 2, "英語", "3-1", "red"),
    BaseTimetableEntry(1, 3, "国語", "3-1"),
    BaseTimetableEntry(1, 4, "理科", "理科室"),
    BaseTimetableEntry(1, 5, "体育", "体育館"),
    BaseTimetableEntry(3, 1, "音楽", "音楽室"),
    BaseTimetableEntry(3, 2, "美術", "美術室"),
    BaseTimetableEntry(3, 3, "社会", "3-1"),
    BaseTimetableEntry(3, 4, "技術", "技術室"),
    BaseTimetableEntry(3, 5, "家庭", "家庭科室"),
]


class FailingCalendar:
    """Gateway without write permission and without any events."""

    def find_marker(self, day) -> Optional[MarkerInfo]:
        return None

    def list_markers(self, start, end) -> List[MarkerInfo]:
        return []

    def create_marker(self, day, pattern_name) -> OperationResult:
        return OperationResult.failure("no permission")

    def delete_marker(self, handle) -> OperationResult:
        return OperationResult.failure("no permission")


class BrokenStore:
    def replace(self, day, configs, pattern_name) -> None:
        raise StorageError("disk full")

    def rows_for_date(self, day):
        raise StorageError("unreadable")

    def has_date(self, day) -> bool:
        raise StorageError("unreadable")

    def clear(self, day) -> None:
        raise StorageError("disk full")


class ReconstructorTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        root = Path(self._tmp.name)
        self.timetable = JsonTimetableRepository(root / "timetable.json")
        self.timetable.save_entries(BASE)
        self.store = JsonMappingStore(root / "special_schedules.json")
        self.markers = IcsMarkerCalendar(root / "special_schedules.ics")
        self.rec = ScheduleReconstructor(self.timetable, self.store, self.markers)

    def tearDown(self) -> None:
        self._tmp.cleanup()


class TestEffectiveSchedule(ReconstructorTestCase):
    def test_empty_store_returns_base_entries(self) -> None:
        entries = self.rec.effective_schedule(MONDAY)
        subjects = ["数学", "英語", "国語", "理科", "体育"]
        self.assertEqual(
            [(e.day, e.period, e.subject) for e in entries],
            [(1, p, s) for p, s in enumerate(subjects, start=1)],
        )
        self.assertTrue(all(not e.is_special for e in entries))
        self.assertTrue(all(e.original_info is None for e in entries))
        self.assertEqual(entries[0].room, "3-1")
        self.assertEqual(entries[0].color, "blue")

    def test_short_a_drops_fifth_period(self) -> None:
        self.assertTrue(self.rec.apply(MONDAY, "短縮A時程"))
        entries = self.rec.effective_schedule(MONDAY)
        self.assertEqual(sorted(e.period for e in entries), [1, 2, 3, 4])
        self.assertTrue(all(e.is_special for e in entries))
        self.assertEqual(entries[0].original_info, "(月1)")

    def test_cross_day_copy(self) -> None:
        # Wednesday runs Monday's 1-3 then its own 4-5
        self.assertTrue(self.rec.apply(WEDNESDAY, "月曜授業", custom_notation="月123水45"))
        entries = sorted(self.rec.effective_schedule(WEDNESDAY), key=lambda e: e.period)
        self.assertEqual(
            [(e.day, e.period, e.subject, e.original_info) for e in entries],
            [
                (3, 1, "数学", "(月1)"),
                (3, 2, "英語", "(月2)"),
                (3, 3, "国語", "(月3)"),
                (3, 4, "技術", "(水4)"),
                (3, 5, "家庭", "(水5)"),
            ],
        )
        # other fields are copied from the source entry
        self.assertEqual(entries[0].room, "3-1")
        self.assertEqual(entries[0].color, "blue")

    def test_missing_source_slot_is_skipped(self) -> None:
        configs = [PeriodReorderConfig(0, 0, [1, 9], [1, 2])]
        self.store.replace(MONDAY, configs, "月19")
        entries = self.rec.effective_schedule(MONDAY)
        self.assertEqual([(e.period, e.subject) for e in entries], [(1, "数学")])

    def test_marker_without_stored_rows_is_built_on_read(self) -> None:
        self.markers.create_marker(MONDAY, "テスト時程")
        entries = self.rec.effective_schedule(MONDAY)
        self.assertEqual(sorted(e.period for e in entries), [1, 2, 3])
        # nothing was written on the read path
        self.assertEqual(self.store.rows_for_date(MONDAY), [])

    def test_store_read_failure_falls_back_to_base(self) -> None:
        rec = ScheduleReconstructor(self.timetable, BrokenStore(), FailingCalendar())
        self.assertEqual(len(rec.effective_schedule(MONDAY)), 5)

    def test_malformed_rows_fall_back_to_base(self) -> None:
        self.store.path.write_text(
            json.dumps({"records": {"2026-10-19": {"pattern_name": "x", "rows": 5}}}),
            encoding="utf-8",
        )
        entries = self.rec.effective_schedule(MONDAY)
        self.assertEqual([e.period for e in entries], [1, 2, 3, 4, 5])
        self.assertTrue(all(not e.is_special for e in entries))

    def test_output_follows_config_order(self) -> None:
        configs = [
            PeriodReorderConfig(2, 0, [1], [3]),
            PeriodReorderConfig(0, 0, [1], [1]),
        ]
        entries = merge(configs, self.timetable.fetch_by_weekday)
        self.assertEqual([e.period for e in entries], [3, 1])
        self.assertEqual(entries[0].subject, "音楽")
        self.assertEqual(entries[0].day, 1)

    def test_original_info_label(self) -> None:
        self.assertEqual(original_info(6, 2), "(日2)")


class TestApply(ReconstructorTestCase):
    def test_apply_twice_is_idempotent(self) -> None:
        self.assertTrue(self.rec.apply(MONDAY, "テスト時程", 0))
        first = len(self.store.rows_for_date(MONDAY))
        self.assertTrue(self.rec.apply(MONDAY, "テスト時程", 0))
        self.assertEqual(len(self.store.rows_for_date(MONDAY)), first)
        self.assertEqual(len(self.markers.list_markers(MONDAY, MONDAY)), 1)

    def test_normal_creates_marker_but_returns_false(self) -> None:
        self.assertEqual(self.rec.apply_outcome(MONDAY, "通常"), ApplyOutcome.NOTHING_TO_REMAP)
        self.assertFalse(self.rec.apply(MONDAY, "通常"))
        self.assertIsNotNone(self.markers.find_marker(MONDAY))
        self.assertEqual(self.store.rows_for_date(MONDAY), [])
        self.assertEqual(len(self.rec.effective_schedule(MONDAY)), 5)

    def test_custom_notation_bypasses_classification(self) -> None:
        # the name alone would be an exam day (periods 1-3)
        self.assertTrue(self.rec.apply(MONDAY, "テスト後授業", custom_notation="月45"))
        entries = sorted(self.rec.effective_schedule(MONDAY), key=lambda e: e.period)
        self.assertEqual([(e.period, e.subject) for e in entries], [(1, "理科"), (2, "体育")])
        marker = self.markers.find_marker(MONDAY)
        assert marker is not None
        self.assertEqual(marker.pattern_name, "テスト後授業")

    def test_unusable_custom_notation_keeps_normal_day(self) -> None:
        # stored empty record wins over re-classifying the marker name
        outcome = self.rec.apply_outcome(MONDAY, "テスト後授業", custom_notation="なし")
        self.assertEqual(outcome, ApplyOutcome.NOTHING_TO_REMAP)
        self.assertTrue(self.store.has_date(MONDAY))
        self.assertEqual(len(self.rec.effective_schedule(MONDAY)), 5)

    def test_reapply_replaces_previous_pattern(self) -> None:
        self.rec.apply(MONDAY, "短縮A時程")
        self.rec.apply(MONDAY, "短縮B時程")
        self.assertEqual(len(self.store.rows_for_date(MONDAY)), 3)
        self.assertEqual(self.rec.special_pattern_name(MONDAY), "短縮B時程")

    def test_marker_failure_aborts(self) -> None:
        rec = ScheduleReconstructor(self.timetable, self.store, FailingCalendar())
        self.assertEqual(rec.apply_outcome(MONDAY, "短縮A時程"), ApplyOutcome.FAILED)
        self.assertEqual(self.store.rows_for_date(MONDAY), [])

    def test_store_failure_reported(self) -> None:
        rec = ScheduleReconstructor(self.timetable, BrokenStore(), self.markers)
        self.assertFalse(rec.apply_special_schedule(MONDAY, "短縮A時程"))
        # the marker is rolled back with the failed write
        self.assertIsNone(self.markers.find_marker(MONDAY))

    def test_store_failure_keeps_no_custom_marker(self) -> None:
        rec = ScheduleReconstructor(self.timetable, BrokenStore(), self.markers)
        outcome = rec.apply_outcome(MONDAY, "テスト後授業", custom_notation="月45")
        self.assertEqual(outcome, ApplyOutcome.FAILED)
        self.assertEqual(self.markers.list_markers(MONDAY, MONDAY), [])
        self.assertEqual(len(self.rec.effective_schedule(MONDAY)), 5)


class TestRemove(ReconstructorTestCase):
    def test_remove_clears_marker_and_rows(self) -> None:
        self.rec.apply(MONDAY, "短縮A時程")
        self.assertTrue(self.rec.remove_special_schedule(MONDAY))
        self.assertIsNone(self.markers.find_marker(MONDAY))
        self.assertEqual(self.store.rows_for_date(MONDAY), [])
        self.assertEqual(len(self.rec.effective_schedule(MONDAY)), 5)

    def test_remove_without_marker_still_clears_rows(self) -> None:
        self.store.replace(MONDAY, [PeriodReorderConfig(0, 0, [1], [1])], "x")
        self.assertTrue(self.rec.remove(MONDAY))
        self.assertEqual(self.store.rows_for_date(MONDAY), [])

    def test_marker_delete_failure_keeps_rows(self) -> None:
        self.rec.apply(MONDAY, "短縮A時程")
        read_only = IcsMarkerCalendar(self.markers.path, read_only=True)
        rec = ScheduleReconstructor(self.timetable, self.store, read_only)
        self.assertFalse(rec.remove(MONDAY))
        self.assertEqual(len(self.store.rows_for_date(MONDAY)), 4)

    def test_list_special_schedules(self) -> None:
        self.rec.apply(WEDNESDAY, "テスト時程")
        self.rec.apply(MONDAY, "短縮A時程")
        markers = self.rec.list_special_schedules(MONDAY, WEDNESDAY)
        self.assertEqual([(m.date, m.pattern_name) for m in markers], [(MONDAY, "短縮A時程"), (WEDNESDAY, "テスト時程")])


if __name__ == "__main__":
    unittest.main()
