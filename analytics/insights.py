"""
Insight feed and KPI summary built from the two most recent weeks.

Insight rules (latest week vs. the one before it):
  - total visits changed by >= 10%   (warning at >= 25%)
  - average duration changed by >= 10%   (warning at >= 20%)
  - utilization moved by >= 0.5 visits/hour   (warning at >= 1)
  - up to 3 visit-count and 2 duration outliers among the latest week's
    records, scored at the insight threshold (critical at |z| >= 3.5)

The feed is ordered critical -> warning -> info, keeping emission order
within a severity.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from analytics.aggregations import aggregate_by_week
from analytics.constants import INSIGHT_OUTLIER_THRESHOLD
from analytics.outliers import detect_outliers
from dto.insights import Insight, KPISummary, WeeklyAggregate, WoWChanges
from dto.metric import NormalizedMetric
from utils.rounding import round_half_up, round_to_int

logger = logging.getLogger(__name__)

_SEVERITY_RANK = {"critical": 0, "warning": 1, "info": 2}

_WOW_MIN_PERCENT = 10
_VISITS_WARNING_PERCENT = 25
_DURATION_WARNING_PERCENT = 20
_UTILIZATION_MIN_DELTA = 0.5
_UTILIZATION_WARNING_DELTA = 1
_CRITICAL_Z = 3.5
_MAX_VISIT_OUTLIERS = 3
_MAX_DURATION_OUTLIERS = 2


def _percent_change(current: float, previous: float) -> float:
    if previous == 0:
        return 0.0
    return (current - previous) / previous * 100


class _InsightFeed:
    """Collects insights and numbers them in emission order."""

    def __init__(self) -> None:
        self.items: List[Insight] = []

    def add(self, **fields) -> None:
        self.items.append(Insight(id=f"insight-{len(self.items) + 1}", **fields))

    def ranked(self) -> List[Insight]:
        return sorted(self.items, key=lambda i: _SEVERITY_RANK[i.severity])


def _wow_insights(feed: _InsightFeed, latest: WeeklyAggregate, previous: WeeklyAggregate) -> None:
    visits_delta = latest.visits_total - previous.visits_total
    visits_pct = _percent_change(latest.visits_total, previous.visits_total)
    if abs(visits_pct) >= _WOW_MIN_PERCENT:
        direction = "increased" if visits_delta > 0 else "decreased"
        feed.add(
            type="wow_change",
            severity="warning" if abs(visits_pct) >= _VISITS_WARNING_PERCENT else "info",
            title="Visits Increased" if visits_delta > 0 else "Visits Decreased",
            description=(
                f"Total visits {direction} by {abs(round_to_int(visits_pct))}% "
                "compared to last week"
            ),
            metric="visits_total",
            week_start=latest.week_start,
            value=latest.visits_total,
            change=visits_delta,
            change_percent=round_half_up(visits_pct),
        )

    duration_delta = latest.avg_duration_min - previous.avg_duration_min
    duration_pct = _percent_change(latest.avg_duration_min, previous.avg_duration_min)
    if abs(duration_pct) >= _WOW_MIN_PERCENT:
        direction = "increased" if duration_delta > 0 else "decreased"
        feed.add(
            type="wow_change",
            severity="warning" if abs(duration_pct) >= _DURATION_WARNING_PERCENT else "info",
            title="Duration Increased" if duration_delta > 0 else "Duration Decreased",
            description=(
                f"Average visit duration {direction} by "
                f"{abs(round_to_int(duration_pct))}%"
            ),
            metric="avg_duration_min",
            week_start=latest.week_start,
            value=round_half_up(latest.avg_duration_min),
            change=round_half_up(duration_delta),
            change_percent=round_half_up(duration_pct),
        )

    utilization_delta = latest.utilization - previous.utilization
    if abs(utilization_delta) >= _UTILIZATION_MIN_DELTA:
        direction = "improved" if utilization_delta > 0 else "declined"
        feed.add(
            type="wow_change",
            severity=(
                "warning" if abs(utilization_delta) >= _UTILIZATION_WARNING_DELTA else "info"
            ),
            title="Utilization Up" if utilization_delta > 0 else "Utilization Down",
            description=(
                f"Provider utilization (visits/hour) {direction} from "
                f"{previous.utilization:.2f} to {latest.utilization:.2f}"
            ),
            metric="utilization",
            week_start=latest.week_start,
            value=latest.utilization,
            change=round_half_up(utilization_delta),
        )


def _outlier_insights(feed: _InsightFeed, latest_metrics: Sequence[NormalizedMetric]) -> None:
    visit_outliers = detect_outliers(
        latest_metrics, "visits_total", INSIGHT_OUTLIER_THRESHOLD
    )
    for outlier in visit_outliers[:_MAX_VISIT_OUTLIERS]:
        m = outlier.metric
        high = outlier.z_score > 0
        feed.add(
            type="outlier",
            severity="critical" if abs(outlier.z_score) >= _CRITICAL_Z else "warning",
            title="High Visit Count" if high else "Low Visit Count",
            description=(
                f"{m.provider} has {'unusually high' if high else 'unusually low'} "
                f"visits ({m.visits_total}) this week"
            ),
            metric="visits_total",
            provider=m.provider,
            week_start=m.week_start,
            value=m.visits_total or 0,
            z_score=outlier.z_score,
        )

    duration_outliers = detect_outliers(
        latest_metrics, "avg_duration_min", INSIGHT_OUTLIER_THRESHOLD
    )
    for outlier in duration_outliers[:_MAX_DURATION_OUTLIERS]:
        m = outlier.metric
        high = outlier.z_score > 0
        feed.add(
            type="outlier",
            severity="critical" if abs(outlier.z_score) >= _CRITICAL_Z else "warning",
            title="Long Avg Duration" if high else "Short Avg Duration",
            description=(
                f"{m.provider} has {'unusually long' if high else 'unusually short'} "
                f"average duration ({m.avg_duration_min:.1f} min)"
            ),
            metric="avg_duration_min",
            provider=m.provider,
            week_start=m.week_start,
            value=m.avg_duration_min or 0,
            z_score=outlier.z_score,
        )


def generate_insights(metrics: Sequence[NormalizedMetric]) -> List[Insight]:
    """Ranked insights; empty when fewer than two weeks are present."""
    weekly = aggregate_by_week(metrics)
    if len(weekly) < 2:
        return []

    latest, previous = weekly[-1], weekly[-2]
    feed = _InsightFeed()
    _wow_insights(feed, latest, previous)
    _outlier_insights(
        feed, [m for m in metrics if m.week_start == latest.week_start]
    )

    logger.debug(
        "Generated %d insight(s) for week %s",
        len(feed.items),
        latest.week_start.isoformat(),
    )
    return feed.ranked()


def calculate_kpis(metrics: Sequence[NormalizedMetric]) -> KPISummary:
    """
    Latest-week KPIs with percent changes against the previous week.

    With a single week the week is compared with itself (all changes 0);
    with no data every KPI is 0.
    """
    weekly = aggregate_by_week(metrics)
    if not weekly:
        return KPISummary()

    latest = weekly[-1]
    previous = weekly[-2] if len(weekly) > 1 else latest

    def _change(current: float, prior: float) -> float:
        return round_half_up(_percent_change(current, prior))

    return KPISummary(
        total_visits=latest.visits_total,
        avg_pct_over_20=round_half_up(latest.pct_over_20),
        avg_duration=round_half_up(latest.avg_duration_min),
        total_hours=round_half_up(latest.hours_total),
        avg_utilization=round_half_up(latest.utilization),
        provider_count=latest.provider_count,
        week_count=len(weekly),
        wow=WoWChanges(
            visits=_change(latest.visits_total, previous.visits_total),
            pct_over_20=_change(latest.pct_over_20, previous.pct_over_20),
            duration=_change(latest.avg_duration_min, previous.avg_duration_min),
            hours=_change(latest.hours_total, previous.hours_total),
            utilization=_change(latest.utilization, previous.utilization),
        ),
    )
