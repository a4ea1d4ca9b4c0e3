"""
Analytics DTOs.

All of these are derived on demand from a list of ``NormalizedMetric``
records and are never persisted.  Rounded values use two decimals.
"""

from __future__ import annotations

from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel

from dto.metric import NormalizedMetric, Number

InsightType = Literal["wow_change", "outlier", "trend", "milestone"]
InsightSeverity = Literal["info", "warning", "critical"]
TimePeriod = Literal["weekly", "monthly"]


# -------------------------------------------------------------------
# Aggregates
# -------------------------------------------------------------------


class WeeklyAggregate(BaseModel):
    week_start: date
    visits_total: Number = 0
    visits_over_20: Number = 0
    pct_over_20: float = 0.0
    avg_duration_min: float = 0.0
    hours_total: float = 0.0
    utilization: float = 0.0  # visits_total / hours_total
    provider_count: int = 0


class MonthlyAggregate(BaseModel):
    month: str  # "YYYY-MM"
    label: str  # "Jan 2025"
    visits_total: Number = 0
    visits_over_20: Number = 0
    pct_over_20: float = 0.0
    avg_duration_min: float = 0.0
    hours_total: float = 0.0
    utilization: float = 0.0
    provider_count: int = 0
    week_count: int = 0


class ProviderAggregate(BaseModel):
    provider: str
    weeks: List[NormalizedMetric] = []
    avg_visits_total: float = 0.0
    avg_pct_over_20: float = 0.0
    avg_duration_min: float = 0.0
    avg_hours_total: float = 0.0
    avg_utilization: float = 0.0
    total_visits: Number = 0
    total_hours: float = 0.0


class ProgramAggregate(BaseModel):
    program: str
    total_visits: int = 0
    provider_count: int = 0
    week_count: int = 0
    visit_groups: List[str] = []


# -------------------------------------------------------------------
# Trends / outliers
# -------------------------------------------------------------------


class WoWDelta(BaseModel):
    week_start: date
    provider: str
    metric: str
    current: Number
    previous: Number
    delta: Number
    delta_percent: float


class RollingAverage(BaseModel):
    week_start: date
    provider: Optional[str] = None
    metric: str
    value: Number
    rolling_avg: float
    deviation: float


class OutlierResult(BaseModel):
    metric: NormalizedMetric
    z_score: float


# -------------------------------------------------------------------
# Insights / KPIs
# -------------------------------------------------------------------


class Insight(BaseModel):
    id: str
    type: InsightType
    severity: InsightSeverity
    title: str
    description: str
    metric: str
    provider: Optional[str] = None
    week_start: Optional[date] = None
    value: float
    change: Optional[float] = None
    change_percent: Optional[float] = None
    z_score: Optional[float] = None


class WoWChanges(BaseModel):
    visits: float = 0.0
    pct_over_20: float = 0.0
    duration: float = 0.0
    hours: float = 0.0
    utilization: float = 0.0


class KPISummary(BaseModel):
    total_visits: Number = 0
    avg_pct_over_20: float = 0.0
    avg_duration: float = 0.0
    total_hours: float = 0.0
    avg_utilization: float = 0.0
    provider_count: int = 0
    week_count: int = 0
    wow: WoWChanges = WoWChanges()
