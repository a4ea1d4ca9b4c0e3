"""
The closed set of sheet shapes this parser understands.

Each shape is pure data: which source tag its records carry, how many
physical rows the sheet needs, which row holds the week headers, where
data starts, and the role offsets of one week block.

Layouts as they appear in the exports:

  duration        row 0: |          |              | WEEK OF 11/30          |
                  row 1: | Provider | Total Visits | Visits over 20 minutes |
  hours           row 0: | 12/14-12/20 |       |
                  row 1: | <provider>  | hours |
  visit_count     row 0: | Provider | 11/30-12/6 | Provider | 46004 |
  program         row 0: |          |         | Week of 11/30 |                  |
                  row 1: | Provider | Program | Visit Group   | Number of Visits |
  oncehub_visits  row 0: | Week of 12/6  |                  |
                  row 1: | Provider Name | Number of Visits |
"""

from __future__ import annotations

from typing import Dict, Literal

from pydantic import BaseModel

from dto.blocks import BlockLayout
from dto.metric import Source

SheetShape = Literal[
    "duration",
    "hours",
    "visit_count",
    "program",
    "oncehub_visits",
]


class ShapeSpec(BaseModel):
    shape: SheetShape
    source: Source
    min_rows: int
    data_start_row: int
    layout: BlockLayout

    model_config = {"frozen": True}


SHAPES: Dict[SheetShape, ShapeSpec] = {
    "duration": ShapeSpec(
        shape="duration",
        source="duration-report",
        min_rows=3,
        data_start_row=2,
        layout=BlockLayout(
            header_row=0,
            roles={"provider": -2, "visits_total": -1, "visits_over_20": 0},
        ),
    ),
    "hours": ShapeSpec(
        shape="hours",
        source="hours-report",
        min_rows=2,
        data_start_row=1,
        layout=BlockLayout(header_row=0, roles={"provider": 0, "hours": 1}),
    ),
    "visit_count": ShapeSpec(
        shape="visit_count",
        source="visit-count-report",
        min_rows=2,
        data_start_row=1,
        layout=BlockLayout(header_row=0, roles={"provider": -1, "visits": 0}),
    ),
    "program": ShapeSpec(
        shape="program",
        source="oncehub-program-report",
        min_rows=3,
        data_start_row=2,
        layout=BlockLayout(
            header_row=0,
            roles={
                "provider": -2,
                "program": -1,
                "visit_group": 0,
                "program_visits": 1,
            },
        ),
    ),
    "oncehub_visits": ShapeSpec(
        shape="oncehub_visits",
        source="oncehub-visit-report",
        min_rows=3,
        data_start_row=2,
        layout=BlockLayout(header_row=0, roles={"provider": 0, "visits": 1}),
    ),
}
