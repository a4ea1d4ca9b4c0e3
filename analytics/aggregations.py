"""
Aggregations over normalized metric lists.

Sums treat an absent field as contributing nothing; means are taken only
over the records that carry the field, so different fields can have
different denominators.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Union

from dto.insights import (
    MonthlyAggregate,
    ProgramAggregate,
    ProviderAggregate,
    TimePeriod,
    WeeklyAggregate,
)
from dto.metric import NormalizedMetric
from utils.rounding import round_half_up

_MONTH_LABELS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


class _Totals:
    """Running sums and present-value counts for one group of records."""

    def __init__(self) -> None:
        self.visits_total = 0
        self.visits_total_count = 0
        self.visits_over_20 = 0
        self.pct_over_20_sum = 0.0
        self.pct_over_20_count = 0
        self.duration_sum = 0.0
        self.duration_count = 0
        self.hours_total = 0.0
        self.hours_count = 0
        self.providers = set()
        self.weeks = set()

    def add(self, m: NormalizedMetric) -> None:
        self.providers.add(m.provider)
        self.weeks.add(m.week_start)
        if m.visits_total is not None:
            self.visits_total += m.visits_total
            self.visits_total_count += 1
        if m.visits_over_20 is not None:
            self.visits_over_20 += m.visits_over_20
        if m.pct_over_20 is not None:
            self.pct_over_20_sum += m.pct_over_20
            self.pct_over_20_count += 1
        if m.avg_duration_min is not None:
            self.duration_sum += m.avg_duration_min
            self.duration_count += 1
        if m.hours_total is not None:
            self.hours_total += m.hours_total
            self.hours_count += 1

    @property
    def avg_pct_over_20(self) -> float:
        if self.pct_over_20_count == 0:
            return 0.0
        return self.pct_over_20_sum / self.pct_over_20_count

    @property
    def avg_duration(self) -> float:
        if self.duration_count == 0:
            return 0.0
        return self.duration_sum / self.duration_count

    @property
    def utilization(self) -> float:
        if self.hours_total <= 0:
            return 0.0
        return self.visits_total / self.hours_total


def _totals(metrics: Iterable[NormalizedMetric]) -> _Totals:
    totals = _Totals()
    for m in metrics:
        totals.add(m)
    return totals


def _group_by(metrics: Iterable[NormalizedMetric], key) -> Dict[object, List[NormalizedMetric]]:
    groups: Dict[object, List[NormalizedMetric]] = defaultdict(list)
    for m in metrics:
        groups[key(m)].append(m)
    return groups


# -------------------------------------------------------------------
# By week / month
# -------------------------------------------------------------------


def aggregate_by_week(metrics: Sequence[NormalizedMetric]) -> List[WeeklyAggregate]:
    """One aggregate per distinct week, sorted by week ascending."""
    aggregates = []
    for week_start, week_metrics in _group_by(metrics, lambda m: m.week_start).items():
        t = _totals(week_metrics)
        aggregates.append(
            WeeklyAggregate(
                week_start=week_start,
                visits_total=t.visits_total,
                visits_over_20=t.visits_over_20,
                pct_over_20=t.avg_pct_over_20,
                avg_duration_min=t.avg_duration,
                hours_total=t.hours_total,
                utilization=round_half_up(t.utilization),
                provider_count=len(t.providers),
            )
        )
    return sorted(aggregates, key=lambda a: a.week_start)


def month_key(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def get_month_label(month: str) -> str:
    """``"2025-01"`` -> ``"Jan 2025"``."""
    year, month_num = month.split("-")
    return f"{_MONTH_LABELS[int(month_num) - 1]} {year}"


def aggregate_by_month(metrics: Sequence[NormalizedMetric]) -> List[MonthlyAggregate]:
    """Calendar-month rollup keyed by each record's week start."""
    aggregates = []
    for month, month_metrics in _group_by(metrics, lambda m: month_key(m.week_start)).items():
        t = _totals(month_metrics)
        aggregates.append(
            MonthlyAggregate(
                month=month,
                label=get_month_label(month),
                visits_total=t.visits_total,
                visits_over_20=t.visits_over_20,
                pct_over_20=t.avg_pct_over_20,
                avg_duration_min=t.avg_duration,
                hours_total=t.hours_total,
                utilization=round_half_up(t.utilization),
                provider_count=len(t.providers),
                week_count=len(t.weeks),
            )
        )
    return sorted(aggregates, key=lambda a: a.month)


def aggregate_by_time_period(
    metrics: Sequence[NormalizedMetric],
    period: TimePeriod = "weekly",
) -> Union[List[WeeklyAggregate], List[MonthlyAggregate]]:
    if period == "monthly":
        return aggregate_by_month(metrics)
    if period == "weekly":
        return aggregate_by_week(metrics)
    raise ValueError(f"Unknown time period: {period!r}")


# -------------------------------------------------------------------
# By provider / program
# -------------------------------------------------------------------


def aggregate_by_provider(metrics: Sequence[NormalizedMetric]) -> List[ProviderAggregate]:
    """One aggregate per provider, sorted alphabetically."""
    aggregates = []
    for provider, provider_metrics in _group_by(metrics, lambda m: m.provider).items():
        t = _totals(provider_metrics)
        avg_visits = (
            t.visits_total / t.visits_total_count if t.visits_total_count else 0.0
        )
        avg_hours = t.hours_total / t.hours_count if t.hours_count else 0.0
        avg_utilization = avg_visits / avg_hours if avg_hours > 0 else 0.0

        aggregates.append(
            ProviderAggregate(
                provider=provider,
                weeks=sorted(provider_metrics, key=lambda m: m.week_start),
                avg_visits_total=round_half_up(avg_visits),
                avg_pct_over_20=round_half_up(t.avg_pct_over_20),
                avg_duration_min=round_half_up(t.avg_duration),
                avg_hours_total=round_half_up(avg_hours),
                avg_utilization=round_half_up(avg_utilization),
                total_visits=t.visits_total,
                total_hours=round_half_up(t.hours_total),
            )
        )
    return sorted(aggregates, key=lambda a: a.provider)


def aggregate_by_program(metrics: Sequence[NormalizedMetric]) -> List[ProgramAggregate]:
    """
    Visit totals per program from program-grouped records, largest first.
    Records without a program or a visit count are ignored.
    """
    by_program: Dict[str, List[NormalizedMetric]] = defaultdict(list)
    for m in metrics:
        if m.source != "oncehub-program-report" or not m.program:
            continue
        if not m.program_visits:
            continue
        by_program[m.program].append(m)

    aggregates = [
        ProgramAggregate(
            program=program,
            total_visits=sum(m.program_visits for m in rows),
            provider_count=len({m.provider for m in rows}),
            week_count=len({m.week_start for m in rows}),
            visit_groups=sorted({m.visit_group for m in rows if m.visit_group}),
        )
        for program, rows in by_program.items()
    ]
    return sorted(aggregates, key=lambda a: a.total_visits, reverse=True)


# -------------------------------------------------------------------
# Lookups / filtering
# -------------------------------------------------------------------


def get_unique_providers(metrics: Iterable[NormalizedMetric]) -> List[str]:
    return sorted({m.provider for m in metrics})


def get_unique_weeks(metrics: Iterable[NormalizedMetric]) -> List[date]:
    return sorted({m.week_start for m in metrics})


def get_unique_months(metrics: Iterable[NormalizedMetric]) -> List[str]:
    return sorted({month_key(m.week_start) for m in metrics})


def filter_metrics(
    metrics: Iterable[NormalizedMetric],
    providers: Optional[Sequence[str]] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    sources: Optional[Sequence[str]] = None,
) -> List[NormalizedMetric]:
    """
    Keep records matching every given criterion.  Empty or ``None``
    criteria match everything; date bounds are inclusive.
    """
    result = []
    for m in metrics:
        if providers and m.provider not in providers:
            continue
        if start_date and m.week_start < start_date:
            continue
        if end_date and m.week_start > end_date:
            continue
        if sources and m.source not in sources:
            continue
        result.append(m)
    return result
