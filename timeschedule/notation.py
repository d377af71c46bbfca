"""
Parsing of the compact day+period notation.

Examples:
    "月12345"           -> Monday, periods 1-5
    "月123水45"         -> Monday 1-3, Wednesday 4-5
    "月123→月12水3"     -> Monday 1,2 stay; Monday 3 moves to Wednesday 3

Important rules:
- Parsing never raises; unusable input gives an empty result
- Only the digits 1-9 count as periods (0 is ignored)
- Periods keep encounter order, duplicates are kept
"""

from __future__ import annotations

import logging
from typing import List, Optional

from timeschedule.model import WEEKDAY_GLYPHS, PeriodReorderConfig, ReorderSegment


logger = logging.getLogger(__name__)

ARROW = "→"
PERIOD_DIGITS = "123456789"

DAY_MAP = {glyph: index for index, glyph in enumerate(WEEKDAY_GLYPHS)}


# ---------------------------------------------------------------------------
# Segments
# ---------------------------------------------------------------------------


def parse_single_day_segment(text: str) -> Optional[ReorderSegment]:
    """
    Parse "月123" style text. The first character must be a weekday glyph;
    every later digit 1-9 becomes a period, anything else is ignored.
    """
    if not text or text[0] not in DAY_MAP:
        return None

    periods = [int(ch) for ch in text[1:] if ch in PERIOD_DIGITS]
    return ReorderSegment(day=DAY_MAP[text[0]], periods=periods)


def parse_multi_day_segment(text: str) -> List[ReorderSegment]:
    """
    Parse "月123水45" style text into one segment per weekday glyph.

    Digits before the first glyph and glyphs without any period are dropped.
    """
    segments: List[ReorderSegment] = []
    current: Optional[ReorderSegment] = None

    for ch in text:
        if ch in DAY_MAP:
            if current is not None and current.periods:
                segments.append(current)
            current = ReorderSegment(day=DAY_MAP[ch])
        elif ch in PERIOD_DIGITS and current is not None:
            current.periods.append(int(ch))

    if current is not None and current.periods:
        segments.append(current)

    return segments


def extract_bare_digits(text: str) -> List[int]:
    """
    Fallback: every digit 1-9 in the text, in order.
    """
    return [int(ch) for ch in text if ch in PERIOD_DIGITS]


# ---------------------------------------------------------------------------
# Arrow mappings
# ---------------------------------------------------------------------------


def _pair_targets(source: ReorderSegment, targets: List[ReorderSegment]) -> List[PeriodReorderConfig]:
    configs: List[PeriodReorderConfig] = []
    total = sum(len(t.periods) for t in targets)

    if total == len(source.periods):
        # source periods are spread over the targets in order
        cursor = 0
        for target in targets:
            count = len(target.periods)
            configs.append(
                PeriodReorderConfig(
                    original_day=source.day,
                    target_day=target.day,
                    original_periods=list(source.periods[cursor : cursor + count]),
                    target_periods=list(target.periods),
                )
            )
            cursor += count
        return configs

    for target in targets:
        if len(target.periods) != len(source.periods):
            logger.debug(
                "dropping target %s: %d periods, source has %d",
                target,
                len(target.periods),
                len(source.periods),
            )
            continue
        configs.append(
            PeriodReorderConfig(
                original_day=source.day,
                target_day=target.day,
                original_periods=list(source.periods),
                target_periods=list(target.periods),
            )
        )
    return configs


def parse_arrow_line(line: str) -> List[PeriodReorderConfig]:
    """
    Parse one "source→targets" line. Lines without an arrow give nothing.
    """
    left, arrow, right = line.partition(ARROW)
    if not arrow:
        return []

    source = parse_single_day_segment(left.strip())
    if source is None or not source.periods:
        return []

    targets = parse_multi_day_segment(right)
    if not targets:
        return []

    return _pair_targets(source, targets)


def parse_arrow_mapping(text: str) -> List[PeriodReorderConfig]:
    """
    Parse one or more newline-separated arrow lines into reorder configs.
    """
    configs: List[PeriodReorderConfig] = []
    for line in text.splitlines():
        if not line.strip():
            continue
        configs.extend(parse_arrow_line(line))
    return configs
