"""
Reorder config generation (pattern name + weekday -> PeriodReorderConfig list).

Built-in kinds use fixed templates on the same weekday. Custom pattern names
are parsed in three steps, stopping at the first non-empty result:
1. arrow mapping lines ("月123→火123")
2. compact sequential mode ("月123水45" -> target periods 1..5 on `weekday`)
3. bare digits ("1,2,4" -> identity mapping of those periods on `weekday`)
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List

from timeschedule.classify import classify
from timeschedule.model import PeriodReorderConfig, ScheduleKind
from timeschedule.notation import extract_bare_digits, parse_arrow_mapping, parse_multi_day_segment


logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Built-in templates
# ---------------------------------------------------------------------------


def _same_day(weekday: int, periods: List[int]) -> List[PeriodReorderConfig]:
    return [
        PeriodReorderConfig(
            original_day=weekday,
            target_day=weekday,
            original_periods=list(periods),
            target_periods=list(periods),
        )
    ]


def short_a_config(weekday: int) -> List[PeriodReorderConfig]:
    # period 5 is dropped
    return _same_day(weekday, [1, 2, 3, 4])


def short_b_config(weekday: int) -> List[PeriodReorderConfig]:
    return _same_day(weekday, [1, 2, 3])


def short_c_config(weekday: int) -> List[PeriodReorderConfig]:
    # morning only
    return _same_day(weekday, [1, 2, 3])


def exam_config(weekday: int) -> List[PeriodReorderConfig]:
    return _same_day(weekday, [1, 2, 3])


TEMPLATES: Dict[ScheduleKind, Callable[[int], List[PeriodReorderConfig]]] = {
    ScheduleKind.SHORT_A: short_a_config,
    ScheduleKind.SHORT_B: short_b_config,
    ScheduleKind.SHORT_C: short_c_config,
    ScheduleKind.EXAM: exam_config,
}


# ---------------------------------------------------------------------------
# Custom notation
# ---------------------------------------------------------------------------


def sequential_config(text: str, weekday: int) -> List[PeriodReorderConfig]:
    """
    Place every parsed segment on `weekday`, numbering target periods 1, 2, 3...
    across all segments in encounter order.
    """
    configs: List[PeriodReorderConfig] = []
    next_period = 1

    for segment in parse_multi_day_segment(text):
        count = len(segment.periods)
        configs.append(
            PeriodReorderConfig(
                original_day=segment.day,
                target_day=weekday,
                original_periods=list(segment.periods),
                target_periods=list(range(next_period, next_period + count)),
            )
        )
        next_period += count

    return configs


def custom_config(text: str, weekday: int) -> List[PeriodReorderConfig]:
    configs = parse_arrow_mapping(text)
    if configs:
        logger.debug("custom %r: %d arrow config(s)", text, len(configs))
        return configs

    configs = sequential_config(text, weekday)
    if configs:
        logger.debug("custom %r: %d sequential config(s)", text, len(configs))
        return configs

    periods = extract_bare_digits(text)
    if periods:
        logger.debug("custom %r: bare periods %s", text, periods)
        return _same_day(weekday, periods)

    logger.debug("custom %r: nothing to remap", text)
    return []


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def build_for_kind(kind: ScheduleKind, text: str, weekday: int) -> List[PeriodReorderConfig]:
    if kind is ScheduleKind.NORMAL:
        return []
    if kind is ScheduleKind.CUSTOM:
        return custom_config(text, weekday)
    if kind in TEMPLATES:
        return TEMPLATES[kind](weekday)
    raise ValueError(f"Unhandled schedule kind: {kind!r}")


def build(pattern_name: str, weekday: int) -> List[PeriodReorderConfig]:
    """
    Build the reorder configs for a pattern name on a logical weekday (0=Monday).
    """
    pattern_name = pattern_name or ""
    kind = classify(pattern_name)
    logger.debug("pattern %r classified as %s", pattern_name, kind.name)
    return build_for_kind(kind, pattern_name, weekday)
