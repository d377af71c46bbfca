"""
Base timetable import (HTML table -> timetable.json).

Expected table layout (e.g. a saved school portal page):

    |    | 月   | 火   | ... |
    | 1  | 数学 | 英語 | ... |
    |    | 3-1  | LL   |     |   <- optional second line in a cell = room
    | 2限 | ...  | ...  | ... |

- The header row defines which weekday each column is
- The first cell of every other row holds the period (first digit 1-9)
- Empty cells are skipped
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

import requests
from bs4 import BeautifulSoup

from timeschedule.model import BaseTimetableEntry, to_calendar_weekday
from timeschedule.notation import DAY_MAP, PERIOD_DIGITS


logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _cell_lines(cell) -> List[str]:
    text = cell.get_text("\n", strip=True)
    return [line.strip() for line in text.splitlines() if line.strip()]


def _header_columns(row) -> Dict[int, int]:
    """
    Map column index -> logical weekday for every header cell holding a weekday glyph.
    """
    columns: Dict[int, int] = {}
    for index, cell in enumerate(row.find_all(["th", "td"])):
        text = cell.get_text(strip=True)
        for ch in text:
            if ch in DAY_MAP:
                columns[index] = DAY_MAP[ch]
                break
    return columns


def _period_of(cell) -> Optional[int]:
    for ch in cell.get_text(strip=True):
        if ch in PERIOD_DIGITS:
            return int(ch)
    return None


# ---------------------------------------------------------------------------
# Table parsing (CORE LOGIC)
# ---------------------------------------------------------------------------


def parse_timetable_html(html: str) -> List[BaseTimetableEntry]:
    """
    Parse the first table with a weekday header row into timetable entries.
    """
    soup = BeautifulSoup(html, "html.parser")

    for table in soup.find_all("table"):
        rows = table.find_all("tr")
        if not rows:
            continue

        columns = _header_columns(rows[0])
        if not columns:
            continue

        entries: List[BaseTimetableEntry] = []
        for row in rows[1:]:
            cells = row.find_all(["th", "td"])
            if not cells:
                continue

            period = _period_of(cells[0])
            if period is None:
                continue

            for index, cell in enumerate(cells):
                if index not in columns:
                    continue
                lines = _cell_lines(cell)
                if not lines:
                    continue
                entries.append(
                    BaseTimetableEntry(
                        day=to_calendar_weekday(columns[index]),
                        period=period,
                        subject=lines[0],
                        room=lines[1] if len(lines) > 1 else None,
                    )
                )

        logger.debug("parsed %d timetable entries", len(entries))
        return entries

    logger.warning("no table with a weekday header found")
    return []


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def fetch_html(url: str) -> str:
    resp = requests.get(url, timeout=REQUEST_TIMEOUT)
    resp.raise_for_status()
    return resp.text


def load_source(source: str) -> str:
    """
    Read HTML from an http(s) URL or a local file path.
    """
    if source.startswith(("http://", "https://")):
        return fetch_html(source)
    return Path(source).read_text(encoding="utf-8")


def import_timetable(source: str) -> List[BaseTimetableEntry]:
    return parse_timetable_html(load_source(source))
