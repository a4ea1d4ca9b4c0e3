"""
Shared fixtures: real .xlsx bytes built in memory with openpyxl, so tests
exercise the full bytes -> grid -> records path.
"""

from __future__ import annotations

import io
from datetime import date
from typing import Any, Callable, Dict, List, Sequence

import openpyxl
import pytest

from dto.metric import NormalizedMetric

Rows = Sequence[Sequence[Any]]


def build_xlsx(sheets: Dict[str, Rows]) -> bytes:
    """Write each ``name -> rows`` entry as a worksheet and return the bytes."""
    wb = openpyxl.Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(title=name)
        for r, row in enumerate(rows, start=1):
            for c, value in enumerate(row, start=1):
                if value is not None:
                    ws.cell(row=r, column=c, value=value)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


@pytest.fixture()
def xlsx_bytes() -> Callable[[Dict[str, Rows]], bytes]:
    return build_xlsx


@pytest.fixture()
def today() -> date:
    """Fixed reference date for headers without a year."""
    return date(2025, 1, 15)


def metric(
    week: str,
    provider: str,
    source: str = "duration-report",
    **fields: Any,
) -> NormalizedMetric:
    return NormalizedMetric(
        week_start=date.fromisoformat(week),
        provider=provider,
        source=source,
        **fields,
    )


@pytest.fixture()
def make_metric() -> Callable[..., NormalizedMetric]:
    return metric


@pytest.fixture()
def two_week_metrics() -> List[NormalizedMetric]:
    """Two weeks, three providers, duration + hours records."""
    return [
        metric("2025-01-06", "Dr. A", visits_total=20, pct_over_20=10.0, avg_duration_min=18.0),
        metric("2025-01-06", "Dr. B", visits_total=30, pct_over_20=20.0, avg_duration_min=20.0),
        metric("2025-01-06", "Dr. A", "hours-report", hours_total=25.0),
        metric("2025-01-06", "Dr. B", "hours-report", hours_total=25.0),
        metric("2025-01-13", "Dr. A", visits_total=30, pct_over_20=30.0, avg_duration_min=22.0),
        metric("2025-01-13", "Dr. B", visits_total=40, pct_over_20=40.0, avg_duration_min=26.0),
        metric("2025-01-13", "Dr. C", visits_total=10),
        metric("2025-01-13", "Dr. A", "hours-report", hours_total=20.0),
        metric("2025-01-13", "Dr. B", "hours-report", hours_total=20.0),
    ]
