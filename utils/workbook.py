"""
Workbook loading: raw bytes -> one dense grid per worksheet.

Format is detected from the leading magic bytes, falling back to the file
extension:
  - ``PK\\x03\\x04``        OOXML zip (.xlsx / .xlsm)  -> openpyxl
  - ``\\xd0\\xcf\\x11\\xe0``  OLE2 compound doc (.xls)  -> xlrd

The only hard failure in the whole parsing path lives here: bytes that
cannot be decoded as a workbook raise ``WorkbookReadError``.
"""

from __future__ import annotations

import io
import logging
from typing import Any, List

import openpyxl
import xlrd
from openpyxl.utils import get_column_letter
from pydantic import BaseModel

from utils.cells import grid_from_rows, grid_from_sheet
from utils.constants import EVALUATE_FORMULAS
from utils.formula_values import compute_formula_values, find_uncached_formulas

logger = logging.getLogger(__name__)

_XLSX_MAGIC = b"PK\x03\x04"
_XLS_MAGIC = b"\xd0\xcf\x11\xe0"


class WorkbookReadError(ValueError):
    """Raised when workbook bytes cannot be decoded at all."""


class SheetGrid(BaseModel):
    sheet_name: str
    grid: List[List[Any]] = []


def detect_format(data: bytes, filename: str = "") -> str:
    """Return ``"xlsx"`` or ``"xls"``."""
    if data.startswith(_XLSX_MAGIC):
        return "xlsx"
    if data.startswith(_XLS_MAGIC):
        return "xls"
    if filename.lower().endswith(".xls"):
        return "xls"
    return "xlsx"


def load_workbook_grids(data: bytes, filename: str = "") -> List[SheetGrid]:
    """
    Decode *data* and return one ``SheetGrid`` per worksheet in workbook
    order.
    """
    if not data:
        raise WorkbookReadError(f"Workbook '{filename}' is empty")

    fmt = detect_format(data, filename)
    logger.info("Loading workbook '%s' (%s, %d bytes)", filename, fmt, len(data))
    if fmt == "xls":
        return _load_xls(data, filename)
    return _load_xlsx(data, filename)


# -------------------------------------------------------------------
# XLSX (openpyxl)
# -------------------------------------------------------------------


def _open_xlsx(data: bytes, filename: str, data_only: bool):
    try:
        return openpyxl.load_workbook(io.BytesIO(data), data_only=data_only)
    except Exception as exc:
        raise WorkbookReadError(
            f"Could not read '{filename}' as an xlsx workbook: {exc}"
        ) from exc


def _load_xlsx(data: bytes, filename: str) -> List[SheetGrid]:
    cached_wb = _open_xlsx(data, filename, data_only=True)
    try:
        sheets = [
            SheetGrid(sheet_name=ws.title, grid=grid_from_sheet(ws))
            for ws in cached_wb.worksheets
        ]
    finally:
        cached_wb.close()

    if EVALUATE_FORMULAS:
        _fill_uncached_formulas(data, filename, sheets)
    return sheets


def _fill_uncached_formulas(
    data: bytes,
    filename: str,
    sheets: List[SheetGrid],
) -> None:
    """Replace missing cached formula results in *sheets* with computed ones."""
    formula_wb = _open_xlsx(data, filename, data_only=False)
    try:
        pending = {
            sheet.sheet_name: find_uncached_formulas(
                formula_wb[sheet.sheet_name], sheet.grid
            )
            for sheet in sheets
        }
    finally:
        formula_wb.close()

    total = sum(len(cells) for cells in pending.values())
    if total == 0:
        return

    logger.info("Computing %d uncached formula value(s)...", total)
    computed = compute_formula_values(data)
    filled = 0
    for sheet in sheets:
        sheet_upper = sheet.sheet_name.upper()
        for r, c in pending[sheet.sheet_name]:
            value = computed.get((sheet_upper, f"{get_column_letter(c + 1)}{r + 1}"))
            if value is not None:
                sheet.grid[r][c] = value
                filled += 1
    logger.info("  -> %d formula value(s) filled", filled)


# -------------------------------------------------------------------
# XLS (xlrd)
# -------------------------------------------------------------------


def _xls_value(cell: "xlrd.sheet.Cell", datemode: int) -> Any:
    ctype = cell.ctype
    if ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK, xlrd.XL_CELL_ERROR):
        return None
    if ctype == xlrd.XL_CELL_DATE:
        try:
            return xlrd.xldate_as_datetime(cell.value, datemode)
        except (ValueError, xlrd.xldate.XLDateError):
            return cell.value
    if ctype == xlrd.XL_CELL_BOOLEAN:
        return bool(cell.value)
    if ctype == xlrd.XL_CELL_NUMBER and float(cell.value).is_integer():
        return int(cell.value)
    return cell.value


def _load_xls(data: bytes, filename: str) -> List[SheetGrid]:
    try:
        book = xlrd.open_workbook(file_contents=data)
    except Exception as exc:
        raise WorkbookReadError(
            f"Could not read '{filename}' as an xls workbook: {exc}"
        ) from exc

    sheets: List[SheetGrid] = []
    try:
        for sh in book.sheets():
            rows = [
                [_xls_value(cell, book.datemode) for cell in sh.row(r)]
                for r in range(sh.nrows)
            ]
            sheets.append(SheetGrid(sheet_name=sh.name, grid=grid_from_rows(rows)))
    finally:
        book.release_resources()
    return sheets
