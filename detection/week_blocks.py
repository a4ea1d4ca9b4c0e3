"""
Week-block locator.

Scans one header row of a grid for week-header cells and turns each hit
into a ``WeekBlock`` whose role columns come from the sheet shape's
``BlockLayout``.  Role offsets are relative to the header cell; when the
leftmost role would fall before column A the whole block is shifted right
so that role sits in column A and the others keep their spacing:

    shift          = max(0, -(header_col + min(layout.roles.values())))
    column(role)   = header_col + layout.roles[role] + shift

A candidate block is dropped (with an ``unparsed-block`` warning) when its
provider column was already claimed by an earlier block.

A block with a role column past the right edge of the grid is kept, with
a ``missing-column`` warning; its out-of-range cells read as empty.

Header cells that parse as dates by accident (stray serial-range numbers)
still produce blocks; the extractors discard them at row level because
such blocks never yield a numeric value.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from openpyxl.utils import get_column_letter

from dto.blocks import BlockLayout, WeekBlock
from dto.warning import ParserWarning
from utils.cells import clean_text, parse_week_header

logger = logging.getLogger(__name__)


def _resolve_columns(layout: BlockLayout, header_col: int) -> Dict[str, int]:
    shift = max(0, -(header_col + min(layout.roles.values())))
    return {
        role: header_col + delta + shift for role, delta in layout.roles.items()
    }


def locate_week_blocks(
    grid: List[List[Any]],
    layout: BlockLayout,
    sheet_name: str,
    today: Optional[date] = None,
) -> Tuple[List[WeekBlock], List[ParserWarning]]:
    """
    Return the week blocks found on ``layout.header_row`` (left to right)
    together with warnings for rejected or incomplete candidates.
    """
    blocks: List[WeekBlock] = []
    warnings: List[ParserWarning] = []

    if layout.header_row >= len(grid):
        return blocks, warnings

    header = grid[layout.header_row]
    width = len(header)
    sheet_row = layout.header_row + 1
    claimed_provider_cols: Dict[int, date] = {}

    for col, cell in enumerate(header):
        week_start = parse_week_header(cell, today=today)
        if week_start is None:
            continue

        label = clean_text(cell)
        columns = _resolve_columns(layout, col)

        provider_col = columns["provider"]
        if provider_col in claimed_provider_cols:
            warnings.append(
                ParserWarning(
                    sheet_name=sheet_name,
                    type="unparsed-block",
                    message=(
                        f"Week header '{label}' shares provider column "
                        f"{get_column_letter(provider_col + 1)} with week "
                        f"{claimed_provider_cols[provider_col].isoformat()}"
                    ),
                    row=sheet_row,
                    column=get_column_letter(col + 1),
                    week_block=week_start,
                )
            )
            continue

        beyond = sorted(role for role, c in columns.items() if c >= width)
        if beyond:
            warnings.append(
                ParserWarning(
                    sheet_name=sheet_name,
                    type="missing-column",
                    message=(
                        f"Week '{label}' has no column for: {', '.join(beyond)}"
                    ),
                    row=sheet_row,
                    column=get_column_letter(col + 1),
                    week_block=week_start,
                )
            )

        claimed_provider_cols[provider_col] = week_start
        blocks.append(
            WeekBlock(
                week_start=week_start,
                anchor_col=col,
                header_text=label,
                columns=columns,
            )
        )
        logger.debug(
            "  Week block %s at %s (%s)",
            week_start.isoformat(),
            get_column_letter(col + 1),
            label,
        )

    return blocks, warnings
