"""
Cell-level parsing helpers shared by every sheet shape.

Values arrive as whatever the workbook reader produced: ``str``, ``int``,
``float``, ``datetime`` / ``date`` (openpyxl, date-formatted cells), ``bool``
or ``None``.  Every helper here degrades to ``None`` on input it cannot
interpret; none of them raise.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timedelta
from typing import Any, List, Optional, Sequence, Union

from openpyxl.worksheet.worksheet import Worksheet

Cell = Any
Number = Union[int, float]

# Excel 1900 date system: serial 25569 is 1970-01-01.
_EXCEL_UNIX_EPOCH_SERIAL = 25569
_UNIX_EPOCH = date(1970, 1, 1)

# Serials outside this window are treated as ordinary numbers
# (40000 = 2009-07-06, 60000 = 2064-04-08).
_MIN_SERIAL = 40000
_MAX_SERIAL = 60000

_WEEK_OF_RE = re.compile(
    r"week\s+of\s+(\d{1,2})/(\d{1,2})(?:/(\d{2,4}))?", re.IGNORECASE
)
_DATE_RANGE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})\s*-\s*\d{1,2}/\d{1,2}\s*$")
_FULL_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2,4})$")
_MONTH_NAME_RE = re.compile(
    r"^(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)\s+(\d{1,2}),?\s+(\d{4})$",
    re.IGNORECASE,
)
_MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

# Leading numeric prefix, the same portion a lenient float parser accepts.
_NUMBER_PREFIX_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_NUMBER_NOISE_RE = re.compile(r"[$,%\s]")
_PERCENT_NOISE_RE = re.compile(r"[%\s]")

# First-cell labels that mark header, footer and total rows.
_NON_DATA_LABELS = (
    "total",
    "average",
    "avg",
    "sum",
    "provider",
    "name",
    "employee",
    "grand total",
    "subtotal",
    "header",
    "week of",
    "date",
)


# ------------------------------------------------------------------
# Grid materialisation
# ------------------------------------------------------------------


def grid_from_sheet(ws: Worksheet) -> List[List[Cell]]:
    """
    Materialise the worksheet as a dense row-major grid starting at A1.

    Every row has the same width; cells with no value are ``None`` so that
    column indices line up across rows.
    """
    max_row = ws.max_row or 0
    max_col = ws.max_column or 0
    if max_row == 0 or max_col == 0:
        return []
    return [
        list(row)
        for row in ws.iter_rows(
            min_row=1,
            max_row=max_row,
            min_col=1,
            max_col=max_col,
            values_only=True,
        )
    ]


def grid_from_rows(rows: Sequence[Sequence[Cell]]) -> List[List[Cell]]:
    """Pad ragged rows with ``None`` into a rectangle; ``""`` becomes ``None``."""
    width = max((len(r) for r in rows), default=0)
    grid: List[List[Cell]] = []
    for row in rows:
        cells = [None if v == "" else v for v in row]
        cells.extend([None] * (width - len(cells)))
        grid.append(cells)
    return grid


def cell_at(row: Sequence[Cell], col: int) -> Cell:
    """Return ``row[col]`` or ``None`` when the column is out of range."""
    if 0 <= col < len(row):
        return row[col]
    return None


# ------------------------------------------------------------------
# Dates
# ------------------------------------------------------------------


def excel_serial_to_date(serial: float) -> date:
    """Convert a 1900-system serial (with its 1900 leap-year quirk) to a date."""
    return _UNIX_EPOCH + timedelta(days=math.floor(serial - _EXCEL_UNIX_EPOCH_SERIAL))


def _is_number(value: Cell) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _build_date(
    month: str,
    day: str,
    year: Optional[str] = None,
    today: Optional[date] = None,
) -> Optional[date]:
    month_num = int(month)
    if not year:
        today = today or date.today()
        # A header month more than two months ahead belongs to last year.
        if month_num > today.month + 2:
            full_year = today.year - 1
        else:
            full_year = today.year
    elif len(year) == 2:
        two_digit = int(year)
        full_year = 1900 + two_digit if two_digit >= 50 else 2000 + two_digit
    else:
        full_year = int(year)

    try:
        return date(full_year, month_num, int(day))
    except ValueError:
        return None


def parse_week_header(cell: Cell, today: Optional[date] = None) -> Optional[date]:
    """
    Parse a week-block header cell into the week's start date.

    Accepted, in priority order:
      - date / datetime cells, and Excel serials between 40000 and 60000
      - "Week of M/D", "Week of M/D/YY", "WEEK OF M/D/YYYY"
      - "M/D-M/D" ranges (the start date is used)
      - "M/D/YY", "M/D/YYYY"
      - "Mon D, YYYY"

    Returns ``None`` when the cell is not a week header.  *today* drives
    year inference for headers without a year.
    """
    if cell is None:
        return None

    if isinstance(cell, datetime):
        return cell.date()
    if isinstance(cell, date):
        return cell

    if _is_number(cell):
        if isinstance(cell, float) and math.isnan(cell):
            return None
        if _MIN_SERIAL < cell < _MAX_SERIAL:
            return excel_serial_to_date(cell)
        return None

    text = str(cell).strip()
    if not text:
        return None

    m = _WEEK_OF_RE.search(text)
    if m:
        return _build_date(m.group(1), m.group(2), m.group(3), today=today)

    m = _DATE_RANGE_RE.match(text)
    if m:
        return _build_date(m.group(1), m.group(2), today=today)

    m = _FULL_DATE_RE.match(text)
    if m:
        return _build_date(m.group(1), m.group(2), m.group(3), today=today)

    m = _MONTH_NAME_RE.match(text)
    if m:
        try:
            return date(int(m.group(3)), _MONTHS[m.group(1).lower()], int(m.group(2)))
        except ValueError:
            return None

    return None


# ------------------------------------------------------------------
# Numbers
# ------------------------------------------------------------------


def _leading_float(text: str) -> Optional[float]:
    m = _NUMBER_PREFIX_RE.match(text)
    if not m:
        return None
    return float(m.group(0))


def parse_number(cell: Cell) -> Optional[Number]:
    """
    Parse a numeric cell.

    ``"$1,234.50"`` -> ``1234.5``; ``"12%"`` -> ``12.0``; ``""`` -> ``None``.
    Absent or unparseable input yields ``None``, never ``0``.
    """
    if cell is None or isinstance(cell, bool):
        return None
    if _is_number(cell):
        if isinstance(cell, float) and math.isnan(cell):
            return None
        return cell
    if isinstance(cell, (date, datetime)):
        return None

    cleaned = _NUMBER_NOISE_RE.sub("", str(cell))
    if not cleaned:
        return None
    return _leading_float(cleaned)


def parse_percent(cell: Cell) -> Optional[float]:
    """
    Parse a percentage into percent points (``25`` means 25%).

    Fractions are scaled: ``0.25`` -> ``25``, ``"0.25"`` -> ``25``.
    ``"25%"`` and ``25`` pass through unchanged.
    """
    if cell is None or isinstance(cell, bool):
        return None
    if _is_number(cell):
        if isinstance(cell, float) and math.isnan(cell):
            return None
        return cell * 100 if cell <= 1 else cell
    if isinstance(cell, (date, datetime)):
        return None

    raw = str(cell)
    cleaned = _PERCENT_NOISE_RE.sub("", raw)
    if not cleaned:
        return None
    num = _leading_float(cleaned)
    if num is None:
        return None
    if num <= 1 and "%" not in raw:
        return num * 100
    return num


# ------------------------------------------------------------------
# Text / rows
# ------------------------------------------------------------------


def clean_text(cell: Cell) -> str:
    """Trimmed string form of a cell, ``""`` when empty."""
    if cell is None:
        return ""
    return str(cell).strip()


def is_data_row(first_cell: Cell) -> bool:
    """
    True when *first_cell* looks like a provider name.

    Empty cells and label cells ("Total", "Grand Total", "Provider Name",
    "Week of 1/6", ...) are rejected.
    """
    if first_cell is None:
        return False
    value = str(first_cell).strip().lower()
    if not value:
        return False
    return not any(
        value == label or value.startswith(label + " ")
        for label in _NON_DATA_LABELS
    )
