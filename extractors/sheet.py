"""
Sheet extraction: the state machine every sheet shape shares.

Responsibilities:
  1. Reject grids with fewer physical rows than the shape needs.
  2. Locate the week blocks on the shape's header row.
  3. Walk every data row, and within it every block:
       - the provider cell must look like a provider name
       - the shape's row reader parses the block's fields
  4. Report a sheet that yielded nothing as a ``data-validation`` warning.

Dispatch is by shape tag rather than by subclass; the per-shape
differences live in ``extractors.shapes`` (layout data) and
``extractors.rows`` (field parsing).
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, List, Optional

from detection import locate_week_blocks
from dto.metric import NormalizedMetric
from dto.output import SheetResult
from dto.warning import ParserWarning
from extractors.rows import READERS, RowContext
from extractors.shapes import SHAPES, SheetShape
from utils.cells import cell_at, clean_text, is_data_row

logger = logging.getLogger(__name__)


def extract_sheet(
    shape: SheetShape,
    grid: List[List[Any]],
    sheet_name: str,
    today: Optional[date] = None,
) -> SheetResult:
    """
    Extract normalized records from one worksheet grid.

    Args:
        shape: Which sheet layout to apply.
        grid: Dense row-major cell grid starting at A1.
        sheet_name: Used for warnings and the result.
        today: Reference date for headers that omit the year.

    Returns a ``SheetResult``; problems are reported as warnings, never
    raised.
    """
    shape_spec = SHAPES[shape]
    reader = READERS[shape]
    metrics: List[NormalizedMetric] = []
    warnings: List[ParserWarning] = []

    def _result() -> SheetResult:
        return SheetResult(
            sheet_name=sheet_name,
            shape=shape,
            metrics=metrics,
            warnings=warnings,
        )

    if len(grid) < shape_spec.min_rows:
        warnings.append(
            ParserWarning(
                sheet_name=sheet_name,
                type="unknown-format",
                message=(
                    f"Sheet has insufficient data rows ({len(grid)} found, "
                    f"{shape_spec.min_rows} required)"
                ),
            )
        )
        return _result()

    blocks, block_warnings = locate_week_blocks(
        grid, shape_spec.layout, sheet_name, today=today
    )
    warnings.extend(block_warnings)

    if not blocks:
        warnings.append(
            ParserWarning(
                sheet_name=sheet_name,
                type="week-parse-failure",
                message="No valid week blocks found in header row",
                row=shape_spec.layout.header_row + 1,
            )
        )
        return _result()

    logger.debug("  %d week block(s) in '%s'", len(blocks), sheet_name)

    for row_idx in range(shape_spec.data_start_row, len(grid)):
        row = grid[row_idx]
        ctx = RowContext(sheet_name=sheet_name, sheet_row=row_idx + 1, warnings=warnings)
        for block in blocks:
            provider = clean_text(cell_at(row, block.provider_col))
            if not is_data_row(provider):
                continue
            metric = reader(row, block, provider, ctx)
            if metric is not None:
                metrics.append(metric)

    if not metrics:
        warnings.append(
            ParserWarning(
                sheet_name=sheet_name,
                type="data-validation",
                message="No valid metrics extracted from sheet",
            )
        )

    return _result()
