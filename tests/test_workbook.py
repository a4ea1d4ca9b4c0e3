"""
tests/test_workbook.py

Workbook loading: format detection, grid materialisation and formula
fallback.
"""

from __future__ import annotations

import io
import threading
from datetime import datetime
from pathlib import Path

import numpy as np
import openpyxl
import pytest

import utils.formula_values as formula_values
import utils.workbook as workbook
from utils.formula_values import _unwrap, compute_formula_values, find_uncached_formulas
from utils.workbook import WorkbookReadError, detect_format, load_workbook_grids

XLS_FIXTURE = Path(__file__).parent / "data" / "doxy_visits.xls"


def _formula_workbook() -> bytes:
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Data"
    ws["A1"] = 2
    ws["A2"] = "=A1*3"
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


# ---------------------------------------------------------------------------
# Format detection / loading
# ---------------------------------------------------------------------------


class TestDetectFormat:
    def test_magic_bytes_win_over_extension(self) -> None:
        assert detect_format(b"PK\x03\x04rest", "legacy.xls") == "xlsx"
        assert detect_format(b"\xd0\xcf\x11\xe0rest", "book.xlsx") == "xls"

    def test_extension_fallback(self) -> None:
        assert detect_format(b"????", "OLD.XLS") == "xls"
        assert detect_format(b"????", "book.xlsx") == "xlsx"
        assert detect_format(b"????") == "xlsx"


class TestLoadWorkbookGrids:
    def test_sheets_in_workbook_order_with_dense_grids(self, xlsx_bytes) -> None:
        data = xlsx_bytes(
            {
                "First": [["a", None, "c"], [1]],
                "Second": [[None, "x"]],
            }
        )
        sheets = load_workbook_grids(data, "book.xlsx")

        assert [s.sheet_name for s in sheets] == ["First", "Second"]
        assert sheets[0].grid == [["a", None, "c"], [1, None, None]]
        assert sheets[1].grid == [[None, "x"]]

    def test_legacy_xls_cells_are_converted(self) -> None:
        sheets = load_workbook_grids(XLS_FIXTURE.read_bytes(), "visits.xls")

        assert [s.sheet_name for s in sheets] == ["Doxy Visits"]
        grid = sheets[0].grid
        assert grid == [
            ["Provider", datetime(2025, 1, 6), None],
            ["Dr. Chen", 12, True],
            ["Dr. Lee", 7.5, None],
        ]
        assert isinstance(grid[1][1], int)
        assert grid[1][2] is True

    def test_empty_bytes(self) -> None:
        with pytest.raises(WorkbookReadError, match="empty"):
            load_workbook_grids(b"", "empty.xlsx")

    def test_corrupt_zip(self) -> None:
        with pytest.raises(WorkbookReadError, match="corrupt.xlsx"):
            load_workbook_grids(b"PK\x03\x04not really a zip", "corrupt.xlsx")


# ---------------------------------------------------------------------------
# Formula fallback
# ---------------------------------------------------------------------------


class TestUncachedFormulas:
    def test_find_uncached_formulas(self) -> None:
        wb = openpyxl.Workbook()
        ws = wb.active
        ws["A1"] = 2
        ws["A2"] = "=A1*3"
        ws["B2"] = "=A1+1"

        pending = find_uncached_formulas(ws, [[2, None], [None, 3]])
        assert pending == [(1, 0)]

    def test_computed_values_fill_grid(self, monkeypatch) -> None:
        calls = []

        def _fake_compute(data):
            calls.append(len(data))
            return {("DATA", "A2"): 6}

        monkeypatch.setattr(workbook, "EVALUATE_FORMULAS", True)
        monkeypatch.setattr(workbook, "compute_formula_values", _fake_compute)
        sheets = load_workbook_grids(_formula_workbook(), "formulas.xlsx")

        assert len(calls) == 1
        assert sheets[0].grid == [[2], [6]]

    def test_formulas_library_computes_missing_value(self, monkeypatch) -> None:
        monkeypatch.setattr(workbook, "EVALUATE_FORMULAS", True)
        sheets = load_workbook_grids(_formula_workbook(), "formulas.xlsx")

        assert sheets[0].grid == [[2], [6]]

    def test_evaluation_can_be_disabled(self, monkeypatch) -> None:
        def _unexpected(data):
            raise AssertionError("formula evaluation should be skipped")

        monkeypatch.setattr(workbook, "EVALUATE_FORMULAS", False)
        monkeypatch.setattr(workbook, "compute_formula_values", _unexpected)
        sheets = load_workbook_grids(_formula_workbook(), "formulas.xlsx")

        assert sheets[0].grid == [[2], [None]]

    def test_no_formulas_skips_evaluation(self, monkeypatch, xlsx_bytes) -> None:
        def _unexpected(data):
            raise AssertionError("nothing to evaluate")

        monkeypatch.setattr(workbook, "EVALUATE_FORMULAS", True)
        monkeypatch.setattr(workbook, "compute_formula_values", _unexpected)
        sheets = load_workbook_grids(xlsx_bytes({"Plain": [[1, 2]]}), "plain.xlsx")
        assert sheets[0].grid == [[1, 2]]


class TestComputeFormulaValues:
    def test_failure_returns_empty(self, monkeypatch) -> None:
        def _fail(path):
            raise RuntimeError("cannot evaluate")

        monkeypatch.setattr(formula_values, "_calculate", _fail)
        assert compute_formula_values(b"PK\x03\x04", timeout_seconds=5) == {}

    def test_timeout_returns_empty(self, monkeypatch) -> None:
        release = threading.Event()

        def _slow(path):
            release.wait(5)
            return {("DATA", "A1"): 1}

        monkeypatch.setattr(formula_values, "_calculate", _slow)
        try:
            assert compute_formula_values(b"PK\x03\x04", timeout_seconds=0) == {}
        finally:
            release.set()

    def test_result_is_passed_through(self, monkeypatch) -> None:
        monkeypatch.setattr(formula_values, "_calculate", lambda path: {("S", "A1"): 4})
        assert compute_formula_values(b"PK\x03\x04", timeout_seconds=5) == {("S", "A1"): 4}


class TestUnwrap:
    def test_single_cell_array(self) -> None:
        assert _unwrap(np.array([[5.0]])) == 5.0

    def test_multi_cell_array_is_dropped(self) -> None:
        assert _unwrap(np.array([1, 2])) is None

    def test_numpy_scalar_becomes_python(self) -> None:
        value = _unwrap(np.int64(3))
        assert value == 3
        assert type(value) is int

    def test_unknown_objects(self) -> None:
        assert _unwrap(object()) is None
