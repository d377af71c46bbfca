import unittest
from datetime import date, datetime

from timeschedule.model import (
    PeriodReorderConfig,
    logical_weekday_of,
    normalize_date,
    to_calendar_weekday,
    to_logical_weekday,
    weekday_name,
)


class TestWeekdays(unittest.TestCase):
    def test_conversion(self) -> None:
        # Monday: logical 0 <-> calendar 1, Sunday: logical 6 <-> calendar 0
        self.assertEqual(to_calendar_weekday(0), 1)
        self.assertEqual(to_calendar_weekday(6), 0)
        self.assertEqual(to_logical_weekday(1), 0)
        self.assertEqual(to_logical_weekday(0), 6)

    def test_conversion_is_inverse(self) -> None:
        for day in range(7):
            self.assertEqual(to_logical_weekday(to_calendar_weekday(day)), day)

    def test_logical_weekday_of_date(self) -> None:
        self.assertEqual(logical_weekday_of(date(2026, 10, 19)), 0)
        self.assertEqual(logical_weekday_of(datetime(2026, 10, 25, 23, 59)), 6)

    def test_names(self) -> None:
        self.assertEqual(weekday_name(0), "月")
        self.assertEqual(weekday_name(6), "日")

    def test_normalize_date(self) -> None:
        self.assertEqual(normalize_date(datetime(2026, 10, 19, 12, 0)), date(2026, 10, 19))


class TestPeriodReorderConfig(unittest.TestCase):
    def test_pairs_are_positional(self) -> None:
        c = PeriodReorderConfig(0, 2, [3, 4], [1, 2])
        self.assertEqual(c.pairs(), [(3, 1), (4, 2)])

    def test_pairs_stop_at_shorter_list(self) -> None:
        c = PeriodReorderConfig(0, 0, [1, 2, 3], [1])
        self.assertEqual(c.pairs(), [(1, 1)])


if __name__ == "__main__":
    unittest.main()
