"""
Formula evaluation for workbooks without cached results.

openpyxl only exposes the value Excel cached the last time the file was
calculated.  Exports written by scripts (or by openpyxl itself) carry the
formula text but no cached value, so totals and derived columns read back
as ``None``.  The ``formulas`` library evaluates the workbook model and
gives us those values.
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, List, Tuple

import numpy as np
from openpyxl.worksheet.formula import ArrayFormula
from openpyxl.worksheet.worksheet import Worksheet

from utils.constants import FORMULA_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

# (SHEET_NAME_UPPER, "B7") -> value
FormulaValues = Dict[Tuple[str, str], Any]


def find_uncached_formulas(
    formula_ws: Worksheet,
    grid: List[List[Any]],
) -> List[Tuple[int, int]]:
    """
    Return 0-based ``(row, col)`` positions holding a formula whose cached
    value is missing from *grid*.
    """
    pending: List[Tuple[int, int]] = []
    for r, row in enumerate(grid):
        for c, value in enumerate(row):
            if value is not None:
                continue
            raw = formula_ws.cell(row=r + 1, column=c + 1).value
            if isinstance(raw, ArrayFormula) or (
                isinstance(raw, str) and raw.startswith("=")
            ):
                pending.append((r, c))
    return pending


def _unwrap(value: Any) -> Any:
    """Reduce a ``formulas`` result to a plain Python scalar (or ``None``)."""
    v = value
    if hasattr(v, "value"):
        # Ranges object: get the underlying array
        v = getattr(v, "value", v)
    if isinstance(v, np.ndarray):
        if v.size != 1:
            return None
        v = v.flat[0]
    if isinstance(v, (np.integer, np.floating)):
        v = v.item()
    if isinstance(v, (str, int, float)):
        return v
    return None


def _calculate(file_path: str) -> FormulaValues:
    import formulas

    xl_model = formulas.ExcelModel().loads(file_path).finish()
    results = xl_model.calculate()

    # Keys look like  "'[file.xlsx]SHEET NAME'!E2"
    pattern = re.compile(
        r"'\[" + re.escape(Path(file_path).name) + r"\](.+?)'!([A-Z]+\d+)$",
        re.IGNORECASE,
    )
    out: FormulaValues = {}
    for key, val in results.items():
        m = pattern.match(str(key))
        if not m:
            continue
        v = _unwrap(val)
        if v is not None:
            out[(m.group(1).upper(), m.group(2).upper())] = v
    return out


def compute_formula_values(
    data: bytes,
    timeout_seconds: int = FORMULA_TIMEOUT_SECONDS,
) -> FormulaValues:
    """
    Evaluate every formula in the xlsx *data* and return a lookup keyed by
    ``(SHEET_NAME_UPPER, COORDINATE)``.

    Returns an empty dict when evaluation fails or exceeds *timeout_seconds*.
    """
    # ``formulas`` only loads from a path.
    fd, tmp_path = tempfile.mkstemp(suffix=".xlsx")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)

        result_holder: List[FormulaValues] = [{}]

        def _run() -> None:
            try:
                result_holder[0] = _calculate(tmp_path)
            except Exception:
                logger.warning(
                    "Formula evaluation failed; computed values will be unavailable",
                    exc_info=True,
                )

        thread = threading.Thread(target=_run, daemon=True)
        thread.start()
        thread.join(timeout=timeout_seconds)

        if thread.is_alive():
            logger.warning(
                "Formula evaluation timed out after %ds; skipping",
                timeout_seconds,
            )
            return {}
        return result_holder[0]
    finally:
        try:
            os.remove(tmp_path)
        except OSError:
            logger.debug("Could not remove temporary workbook %s", tmp_path)
