"""
Persistent storage for special schedule mappings.

This module manages the file:

    data/special_schedules.json

Schema:
    {
      "records": {
        "2026-10-19": {
          "pattern_name": "短縮B時程",
          "rows": [
            {"original_day": 0, "target_day": 0,
             "original_period": 1, "target_period": 1,
             "pattern_name": "短縮B時程"},
            ...
          ]
        }
      }
    }

Dates are normalized to the calendar day. A record is fully replaced on
reapply, never merged.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from dataclasses import asdict
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterable, List, Optional, Protocol, Union

from timeschedule.model import PeriodReorderConfig, SpecialScheduleRecord, SpecialScheduleRow, normalize_date


logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]


class StorageError(Exception):
    """
    Raised when the mapping file cannot be read or written.
    """


class MappingStore(Protocol):
    def replace(self, day: DateLike, configs: Iterable[PeriodReorderConfig], pattern_name: str) -> None: ...

    def rows_for_date(self, day: DateLike) -> List[SpecialScheduleRow]: ...

    def has_date(self, day: DateLike) -> bool: ...

    def clear(self, day: DateLike) -> None: ...


# ---------------------------------------------------------------------------
# Flatten / reassemble
# ---------------------------------------------------------------------------


def flatten_configs(configs: Iterable[PeriodReorderConfig], pattern_name: str) -> List[SpecialScheduleRow]:
    rows: List[SpecialScheduleRow] = []
    for config in configs:
        for original_period, target_period in config.pairs():
            rows.append(
                SpecialScheduleRow(
                    original_day=config.original_day,
                    target_day=config.target_day,
                    original_period=original_period,
                    target_period=target_period,
                    pattern_name=pattern_name,
                )
            )
    return rows


def reassemble_configs(rows: Iterable[SpecialScheduleRow]) -> List[PeriodReorderConfig]:
    """
    Group rows by (original_day, target_day), concatenating period pairs
    in storage order. Groups keep first-seen order.
    """
    grouped: dict[tuple[int, int], PeriodReorderConfig] = {}
    for row in rows:
        key = (row.original_day, row.target_day)
        config = grouped.get(key)
        if config is None:
            config = PeriodReorderConfig(
                original_day=row.original_day,
                target_day=row.target_day,
                original_periods=[],
                target_periods=[],
            )
            grouped[key] = config
        config.original_periods.append(row.original_period)
        config.target_periods.append(row.target_period)
    return list(grouped.values())


# ---------------------------------------------------------------------------
# JSON file adapter
# ---------------------------------------------------------------------------


def _row_from_dict(data: dict[str, Any], pattern_name: str) -> Optional[SpecialScheduleRow]:
    try:
        return SpecialScheduleRow(
            original_day=int(data["original_day"]),
            target_day=int(data["target_day"]),
            original_period=int(data["original_period"]),
            target_period=int(data["target_period"]),
            pattern_name=str(data.get("pattern_name") or pattern_name),
        )
    except (KeyError, TypeError, ValueError):
        return None


class JsonMappingStore:
    """
    MappingStore backed by one JSON file.

    Every operation runs under a lock and every write replaces the whole file
    atomically, so a reader never sees a half-replaced date.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    # -- file access --------------------------------------------------------

    def _read(self) -> dict[str, Any]:
        # First run: file does not exist yet -> no records
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise StorageError(f"Cannot read {self.path}: {exc}") from exc

        records = data.get("records", {}) if isinstance(data, dict) else {}
        return records if isinstance(records, dict) else {}

    def _write(self, records: dict[str, Any]) -> None:
        payload = {"records": dict(sorted(records.items()))}
        text = json.dumps(payload, indent=2, ensure_ascii=False)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=".special_schedules.", dir=self.path.parent)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(text)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StorageError(f"Cannot write {self.path}: {exc}") from exc

    # -- MappingStore -------------------------------------------------------

    def replace(self, day: DateLike, configs: Iterable[PeriodReorderConfig], pattern_name: str) -> None:
        """
        Delete every row of the date and insert the flattened configs.
        """
        key = normalize_date(day).isoformat()
        rows = flatten_configs(configs, pattern_name)

        with self._lock:
            records = self._read()
            records[key] = {
                "pattern_name": pattern_name,
                "rows": [asdict(r) for r in rows],
            }
            self._write(records)

        logger.debug("stored %d row(s) for %s (%s)", len(rows), key, pattern_name)

    def rows_for_date(self, day: DateLike) -> List[SpecialScheduleRow]:
        record = self.record_for_date(day)
        return record.rows if record is not None else []

    def record_for_date(self, day: DateLike) -> Optional[SpecialScheduleRecord]:
        d = normalize_date(day)
        with self._lock:
            raw = self._read().get(d.isoformat())

        if not isinstance(raw, dict):
            return None

        raw_rows = raw.get("rows", [])
        if not isinstance(raw_rows, list):
            raise StorageError(f"Malformed rows for {d.isoformat()} in {self.path}")

        pattern_name = str(raw.get("pattern_name") or "")
        rows: List[SpecialScheduleRow] = []
        for item in raw_rows:
            row = _row_from_dict(item, pattern_name) if isinstance(item, dict) else None
            if row is None:
                logger.warning("skipping malformed row for %s: %r", d.isoformat(), item)
                continue
            rows.append(row)

        return SpecialScheduleRecord(date=d, pattern_name=pattern_name, rows=rows)

    def has_date(self, day: DateLike) -> bool:
        """
        True if a record exists for the date, even one without rows.
        """
        key = normalize_date(day).isoformat()
        with self._lock:
            return key in self._read()

    def clear(self, day: DateLike) -> None:
        key = normalize_date(day).isoformat()
        with self._lock:
            records = self._read()
            if key not in records:
                return
            del records[key]
            self._write(records)

        logger.debug("cleared rows for %s", key)

    def dates(self) -> List[date]:
        """
        All dates that currently hold a record, sorted.
        """
        with self._lock:
            keys = list(self._read().keys())

        out: List[date] = []
        for key in keys:
            try:
                out.append(date.fromisoformat(key))
            except ValueError:
                continue
        return sorted(out)
