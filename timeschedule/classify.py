"""
Schedule kind detection from a free-form pattern name.

Rules are checked in order, first match wins:
    短縮a -> SHORT_A, 短縮b -> SHORT_B, 短縮c -> SHORT_C,
    テスト / 試験 -> EXAM, 通常 -> NORMAL, otherwise CUSTOM
"""

from __future__ import annotations

import unicodedata

from timeschedule.model import ScheduleKind


_RULES: list[tuple[ScheduleKind, tuple[str, ...]]] = [
    (ScheduleKind.SHORT_A, ("短縮a",)),
    (ScheduleKind.SHORT_B, ("短縮b",)),
    (ScheduleKind.SHORT_C, ("短縮c",)),
    (ScheduleKind.EXAM, ("テスト", "試験")),
    (ScheduleKind.NORMAL, ("通常",)),
]


def _fold(text: str) -> str:
    # NFKC maps full-width "Ａ" to "A" before case folding
    return unicodedata.normalize("NFKC", text).casefold()


def classify(pattern_name: str) -> ScheduleKind:
    name = _fold(pattern_name or "")
    for kind, needles in _RULES:
        if any(needle in name for needle in needles):
            return kind
    return ScheduleKind.CUSTOM
