"""
Per-shape row readers.

A reader turns one (data row, week block) pair into a ``NormalizedMetric``
or returns ``None`` to skip the pair silently.  Skipping is the common
case: short weeks and partial exports leave many blocks empty for a given
provider row.  The provider cell has already passed ``is_data_row`` when a
reader is called.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, NamedTuple, Optional, Sequence

from openpyxl.utils import get_column_letter

from dto.blocks import WeekBlock
from dto.metric import NormalizedMetric
from dto.warning import ParserWarning
from extractors.constants import MAX_WEEKLY_HOURS
from extractors.shapes import SheetShape
from utils.cells import cell_at, clean_text, parse_number
from utils.rounding import round_half_up, round_to_int


class RowContext(NamedTuple):
    sheet_name: str
    sheet_row: int  # 1-based
    warnings: List[ParserWarning]


RowReader = Callable[
    [Sequence[Any], WeekBlock, str, RowContext], Optional[NormalizedMetric]
]


def _read_duration(
    row: Sequence[Any], block: WeekBlock, provider: str, ctx: RowContext
) -> Optional[NormalizedMetric]:
    total = parse_number(cell_at(row, block.columns["visits_total"]))
    over = parse_number(cell_at(row, block.columns["visits_over_20"]))
    if total is None and over is None:
        return None

    pct: Optional[float] = None
    if total is not None and over is not None and total > 0:
        pct = round_to_int(over / total * 10000) / 100

    return NormalizedMetric(
        week_start=block.week_start,
        provider=provider,
        source="duration-report",
        visits_total=total,
        visits_over_20=over,
        pct_over_20=pct,
    )


def _read_hours(
    row: Sequence[Any], block: WeekBlock, provider: str, ctx: RowContext
) -> Optional[NormalizedMetric]:
    hours_col = block.columns["hours"]
    hours = parse_number(cell_at(row, hours_col))
    if hours is None:
        return None

    if hours < 0 or hours > MAX_WEEKLY_HOURS:
        ctx.warnings.append(
            ParserWarning(
                sheet_name=ctx.sheet_name,
                type="data-validation",
                message=(
                    f"Unusual hours value ({hours}) for {provider} "
                    f"in week {block.week_start.isoformat()}"
                ),
                row=ctx.sheet_row,
                column=get_column_letter(hours_col + 1),
                week_block=block.week_start,
            )
        )

    return NormalizedMetric(
        week_start=block.week_start,
        provider=provider,
        source="hours-report",
        hours_total=round_half_up(hours),
    )


def _visit_counter(source: str) -> RowReader:
    def _read(
        row: Sequence[Any], block: WeekBlock, provider: str, ctx: RowContext
    ) -> Optional[NormalizedMetric]:
        visits = parse_number(cell_at(row, block.columns["visits"]))
        if visits is None:
            return None
        return NormalizedMetric(
            week_start=block.week_start,
            provider=provider,
            source=source,
            visits_total=round_to_int(visits),
        )

    return _read


def _read_program(
    row: Sequence[Any], block: WeekBlock, provider: str, ctx: RowContext
) -> Optional[NormalizedMetric]:
    program = clean_text(cell_at(row, block.columns["program"]))
    visit_group = clean_text(cell_at(row, block.columns["visit_group"]))
    visits = parse_number(cell_at(row, block.columns["program_visits"]))
    if visits is None or not program:
        return None

    return NormalizedMetric(
        week_start=block.week_start,
        provider=provider,
        source="oncehub-program-report",
        program=program,
        visit_group=visit_group or None,
        program_visits=round_to_int(visits),
    )


READERS: Dict[SheetShape, RowReader] = {
    "duration": _read_duration,
    "hours": _read_hours,
    "visit_count": _visit_counter("visit-count-report"),
    "program": _read_program,
    "oncehub_visits": _visit_counter("oncehub-visit-report"),
}
