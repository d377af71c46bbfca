"""
Unit tests for reorder config generation.
"""

import unittest

from timeschedule.model import ScheduleKind
from timeschedule.reorder import build, build_for_kind


def _shape(configs):
    return [(c.original_day, c.target_day, c.original_periods, c.target_periods) for c in configs]


class TestTemplates(unittest.TestCase):
    def test_normal_is_empty(self) -> None:
        self.assertEqual(build("通常", 0), [])

    def test_short_a_drops_period_five(self) -> None:
        self.assertEqual(_shape(build("短縮A時程", 3)), [(3, 3, [1, 2, 3, 4], [1, 2, 3, 4])])

    def test_short_b_c_and_exam(self) -> None:
        for name in ("短縮B時程", "短縮C時程", "テスト時程"):
            self.assertEqual(_shape(build(name, 1)), [(1, 1, [1, 2, 3], [1, 2, 3])])


class TestCustom(unittest.TestCase):
    def test_arrow_mapping_first(self) -> None:
        self.assertEqual(_shape(build("月123→火123", 4)), [(0, 1, [1, 2, 3], [1, 2, 3])])

    def test_sequential_mode(self) -> None:
        configs = build("月123水45", 4)
        self.assertEqual(_shape(configs), [(0, 4, [1, 2, 3], [1, 2, 3]), (2, 4, [4, 5], [4, 5])])

    def test_sequential_numbering_continues(self) -> None:
        configs = build("水45月1", 0)
        self.assertEqual(_shape(configs), [(2, 0, [4, 5], [1, 2]), (0, 0, [1], [3])])

    def test_bare_digits_identity(self) -> None:
        self.assertEqual(_shape(build("特別 1,2,5", 2)), [(2, 2, [1, 2, 5], [1, 2, 5])])

    def test_nothing_usable(self) -> None:
        self.assertEqual(build("カスタム設定", 2), [])
        self.assertEqual(build("", 2), [])

    def test_custom_kind_bypasses_classification(self) -> None:
        # "テスト" would classify as EXAM; forced custom parses the digits
        configs = build_for_kind(ScheduleKind.CUSTOM, "テスト 45", 1)
        self.assertEqual(_shape(configs), [(1, 1, [4, 5], [4, 5])])

    def test_deterministic(self) -> None:
        text = "月12345→月123水45\n金1→土1"
        self.assertEqual(_shape(build(text, 0)), _shape(build(text, 0)))


if __name__ == "__main__":
    unittest.main()
