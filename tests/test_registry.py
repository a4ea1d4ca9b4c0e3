"""
tests/test_registry.py

Sheet-name resolution in extractors/registry.py.
"""

from __future__ import annotations

import pytest

from extractors import resolve_shape, supported_sheets


class TestResolveShape:
    @pytest.mark.parametrize(
        "name, shape",
        [
            ("Doxy - Over 20 minutes", "duration"),
            ("Gusto Hours ", "hours"),
            ("Doxy Visits", "visit_count"),
            ("Oncehub - Program Grouped", "program"),
            ("Oncehub Report - Number of Visi", "oncehub_visits"),
        ],
    )
    def test_exact_names(self, name, shape) -> None:
        assert resolve_shape(name) == shape

    def test_case_and_whitespace_insensitive(self) -> None:
        assert resolve_shape("gusto hours") == "hours"
        assert resolve_shape("  DOXY VISITS  ") == "visit_count"

    @pytest.mark.parametrize(
        "name, shape",
        [
            ("Doxy - Over 20 minutes (Dec)", "duration"),
            ("visits OVER20", "duration"),
            ("Gusto Hourly Export", "hours"),
            ("Doxy Visit Counts", "visit_count"),
            ("OnceHub Programs", "program"),
            ("Oncehub Program Visits", "program"),
            ("OnceHub Visits Dec", "oncehub_visits"),
        ],
    )
    def test_fuzzy_matches_in_priority_order(self, name, shape) -> None:
        assert resolve_shape(name) == shape

    @pytest.mark.parametrize("name", ["Summary", "Sheet1", "Gusto Payroll", "Doxy"])
    def test_unrelated_tabs(self, name) -> None:
        assert resolve_shape(name) is None

    def test_supported_sheets_keeps_source_spelling(self) -> None:
        names = supported_sheets()
        assert len(names) == 5
        assert "Gusto Hours " in names
