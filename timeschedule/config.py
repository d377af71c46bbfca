"""
File locations used by the JSON / iCalendar adapters.

Resolution order for the data directory:
    explicit argument > $TIMESCHEDULE_DATA_DIR > <package>/data
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


DATA_DIR_ENV = "TIMESCHEDULE_DATA_DIR"

MAPPING_FILE = "special_schedules.json"
TIMETABLE_FILE = "timetable.json"
CALENDAR_FILE = "special_schedules.ics"
PATTERNS_FILE = "patterns.json"


def _default_data_dir() -> Path:
    """
    Return the data folder inside the package.

    A function instead of a constant, so tests can point elsewhere.
    """
    return Path(__file__).resolve().parent / "data"


@dataclass(frozen=True)
class Settings:
    data_dir: Path

    @property
    def mapping_path(self) -> Path:
        return self.data_dir / MAPPING_FILE

    @property
    def timetable_path(self) -> Path:
        return self.data_dir / TIMETABLE_FILE

    @property
    def calendar_path(self) -> Path:
        return self.data_dir / CALENDAR_FILE

    @property
    def patterns_path(self) -> Path:
        return self.data_dir / PATTERNS_FILE


def load_settings(data_dir: str | Path | None = None) -> Settings:
    if data_dir is not None:
        return Settings(data_dir=Path(data_dir))

    env_dir = os.environ.get(DATA_DIR_ENV, "").strip()
    if env_dir:
        return Settings(data_dir=Path(env_dir))

    return Settings(data_dir=_default_data_dir())
