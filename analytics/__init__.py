"""
Analytics over normalized provider metrics.

Every function is stateless: it takes the (optionally pre-filtered)
metric list and returns plain pydantic models for presentation.
"""

from analytics.aggregations import (
    aggregate_by_month,
    aggregate_by_program,
    aggregate_by_provider,
    aggregate_by_time_period,
    aggregate_by_week,
    filter_metrics,
    get_month_label,
    get_unique_months,
    get_unique_providers,
    get_unique_weeks,
)
from analytics.insights import calculate_kpis, generate_insights
from analytics.outliers import (
    calculate_mad,
    calculate_modified_z_score,
    calculate_z_score,
    detect_outliers,
)
from analytics.trends import calculate_rolling_average, calculate_wow_deltas

__all__ = [
    "aggregate_by_month",
    "aggregate_by_program",
    "aggregate_by_provider",
    "aggregate_by_time_period",
    "aggregate_by_week",
    "filter_metrics",
    "get_month_label",
    "get_unique_months",
    "get_unique_providers",
    "get_unique_weeks",
    "calculate_kpis",
    "generate_insights",
    "calculate_mad",
    "calculate_modified_z_score",
    "calculate_z_score",
    "detect_outliers",
    "calculate_rolling_average",
    "calculate_wow_deltas",
]
