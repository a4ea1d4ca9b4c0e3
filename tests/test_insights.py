"""
tests/test_insights.py

Insight generation and the KPI summary.
"""

from __future__ import annotations

from datetime import date

from analytics import calculate_kpis, generate_insights


# ---------------------------------------------------------------------------
# generate_insights
# ---------------------------------------------------------------------------


class TestGenerateInsights:
    def test_week_over_week_changes(self, two_week_metrics) -> None:
        insights = generate_insights(two_week_metrics)

        assert [(i.id, i.metric, i.severity) for i in insights] == [
            ("insight-1", "visits_total", "warning"),
            ("insight-2", "avg_duration_min", "warning"),
            ("insight-3", "utilization", "warning"),
        ]
        visits, duration, utilization = insights
        assert visits.title == "Visits Increased"
        assert visits.value == 80
        assert visits.change == 30
        assert visits.change_percent == 60
        assert visits.description == "Total visits increased by 60% compared to last week"
        assert visits.week_start == date(2025, 1, 13)

        assert duration.change_percent == 26.32
        assert utilization.change == 1
        assert "from 1.00 to 2.00" in utilization.description

    def test_critical_outlier_ranks_first(self, make_metric) -> None:
        latest = [
            make_metric("2025-01-13", f"P{i}", "visit-count-report", visits_total=v)
            for i, v in enumerate([10, 10, 10, 10, 100], start=1)
        ]
        previous = [make_metric("2025-01-06", "P1", "visit-count-report", visits_total=120)]

        insights = generate_insights(previous + latest)

        assert [(i.id, i.type, i.severity) for i in insights] == [
            ("insight-2", "outlier", "critical"),
            ("insight-1", "wow_change", "info"),
        ]
        outlier = insights[0]
        assert outlier.provider == "P5"
        assert outlier.title == "High Visit Count"
        assert outlier.z_score == 3.99
        assert outlier.value == 100

    def test_near_uniform_week_yields_warning_outlier(self, make_metric) -> None:
        latest = [
            make_metric("2025-01-13", f"P{i}", "visit-count-report", visits_total=v)
            for i, v in enumerate([10, 10, 10, 11, 12], start=1)
        ]
        previous = [make_metric("2025-01-06", "P1", "visit-count-report", visits_total=53)]

        insights = generate_insights(previous + latest)

        assert [(i.type, i.severity, i.provider, i.z_score) for i in insights] == [
            ("outlier", "warning", "P5", 2.66)
        ]

    def test_small_changes_produce_nothing(self, make_metric) -> None:
        metrics = [
            make_metric("2025-01-06", "P1", visits_total=100, avg_duration_min=20.0),
            make_metric("2025-01-13", "P1", visits_total=105, avg_duration_min=21.0),
        ]
        assert generate_insights(metrics) == []

    def test_needs_two_weeks(self, make_metric) -> None:
        assert generate_insights([make_metric("2025-01-06", "P1", visits_total=5)]) == []
        assert generate_insights([]) == []


# ---------------------------------------------------------------------------
# calculate_kpis
# ---------------------------------------------------------------------------


class TestCalculateKpis:
    def test_latest_week_against_previous(self, two_week_metrics) -> None:
        kpis = calculate_kpis(two_week_metrics)

        assert kpis.total_visits == 80
        assert kpis.avg_pct_over_20 == 35
        assert kpis.avg_duration == 24
        assert kpis.total_hours == 40
        assert kpis.avg_utilization == 2
        assert kpis.provider_count == 3
        assert kpis.week_count == 2
        assert kpis.wow.visits == 60
        assert kpis.wow.pct_over_20 == 133.33
        assert kpis.wow.duration == 26.32
        assert kpis.wow.hours == -20
        assert kpis.wow.utilization == 100

    def test_single_week_compares_with_itself(self, make_metric) -> None:
        kpis = calculate_kpis([make_metric("2025-01-06", "P1", visits_total=12)])
        assert kpis.total_visits == 12
        assert kpis.week_count == 1
        assert kpis.wow.visits == 0

    def test_empty(self) -> None:
        kpis = calculate_kpis([])
        assert kpis.total_visits == 0
        assert kpis.week_count == 0
        assert kpis.wow.visits == 0
