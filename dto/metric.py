"""
NormalizedMetric: the canonical per-provider-per-week record that every
sheet shape converges to.

Only ``week_start``, ``provider`` and ``source`` are guaranteed.  Every
other field is populated solely by the sources that measure it and stays
``None`` (never zero) otherwise.
"""

from __future__ import annotations

from datetime import date
from typing import Literal, Optional, Union

from pydantic import BaseModel

Number = Union[int, float]

Source = Literal[
    "duration-report",
    "hours-report",
    "visit-count-report",
    "oncehub-visit-report",
    "oncehub-program-report",
]

# Numeric fields that analytics functions may be asked to work on.
NumericField = Literal[
    "visits_total",
    "visits_over_20",
    "pct_over_20",
    "avg_duration_min",
    "hours_total",
    "program_visits",
]

# Every optional field, in the order used when coalescing records.
OPTIONAL_FIELDS = (
    "visits_total",
    "visits_over_20",
    "pct_over_20",
    "avg_duration_min",
    "hours_total",
    "program",
    "visit_group",
    "program_visits",
)


class NormalizedMetric(BaseModel):
    week_start: date
    provider: str
    source: Source

    # Duration report
    visits_total: Optional[Number] = None
    visits_over_20: Optional[Number] = None
    pct_over_20: Optional[float] = None
    avg_duration_min: Optional[float] = None

    # Hours report
    hours_total: Optional[float] = None

    # Program-grouped report
    program: Optional[str] = None
    visit_group: Optional[str] = None
    program_visits: Optional[int] = None

    model_config = {"frozen": True}

    def value_of(self, field: NumericField) -> Optional[Number]:
        """Return a numeric field by name, or ``None`` when absent."""
        value = getattr(self, field)
        if value is None or isinstance(value, str):
            return None
        return value
