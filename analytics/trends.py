"""
Per-provider trend series: week-over-week deltas and trailing averages.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Sequence

from analytics.constants import ROLLING_WINDOW_SIZE
from dto.insights import RollingAverage, WoWDelta
from dto.metric import NormalizedMetric, NumericField
from utils.rounding import round_half_up


def _by_provider_sorted(
    metrics: Sequence[NormalizedMetric],
) -> Dict[str, List[NormalizedMetric]]:
    groups: Dict[str, List[NormalizedMetric]] = defaultdict(list)
    for m in metrics:
        groups[m.provider].append(m)
    return {
        provider: sorted(rows, key=lambda m: m.week_start)
        for provider, rows in groups.items()
    }


def calculate_wow_deltas(
    metrics: Sequence[NormalizedMetric],
    field: NumericField,
) -> List[WoWDelta]:
    """
    Delta of *field* between each provider's consecutive records.

    Pairs where either value is absent, or the previous value is 0, are
    skipped.
    """
    deltas: List[WoWDelta] = []
    for provider, rows in _by_provider_sorted(metrics).items():
        for prev_row, row in zip(rows, rows[1:]):
            current = row.value_of(field)
            previous = prev_row.value_of(field)
            if current is None or previous is None or previous == 0:
                continue
            delta = current - previous
            deltas.append(
                WoWDelta(
                    week_start=row.week_start,
                    provider=provider,
                    metric=field,
                    current=current,
                    previous=previous,
                    delta=delta,
                    delta_percent=round_half_up(delta / previous * 100),
                )
            )
    return deltas


def calculate_rolling_average(
    metrics: Sequence[NormalizedMetric],
    field: NumericField,
    window_size: int = ROLLING_WINDOW_SIZE,
) -> List[RollingAverage]:
    """
    Trailing mean of *field* over each provider's last *window_size*
    records (present values only), ending at the current record.
    """
    if window_size < 1:
        raise ValueError(f"window_size must be at least 1, got {window_size}")

    results: List[RollingAverage] = []
    for provider, rows in _by_provider_sorted(metrics).items():
        for i, row in enumerate(rows):
            current = row.value_of(field)
            if current is None:
                continue
            window = rows[max(0, i - window_size + 1): i + 1]
            values = [v for v in (m.value_of(field) for m in window) if v is not None]
            rolling = sum(values) / len(values)
            results.append(
                RollingAverage(
                    week_start=row.week_start,
                    provider=provider,
                    metric=field,
                    value=current,
                    rolling_avg=round_half_up(rolling),
                    deviation=round_half_up(current - rolling),
                )
            )
    return results
