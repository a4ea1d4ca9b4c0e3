"""
Week-block DTOs.

A ``BlockLayout`` describes, for one sheet shape, where each role column
sits relative to the column holding the week header.  A ``WeekBlock`` is
one discovered horizontal segment of a worksheet with its role columns
resolved to absolute (0-based) indices.

    Header row:  |          |             | Week of 1/6  |
    Sub-header:  | Provider | Total Visits | Over 20 min |
                   delta -2     delta -1      delta 0
"""

from __future__ import annotations

from datetime import date
from typing import Dict

from pydantic import BaseModel


class BlockLayout(BaseModel):
    """Role offsets for one sheet shape."""

    header_row: int = 0

    # role name -> column delta from the week-header column
    roles: Dict[str, int]

    model_config = {"frozen": True}


class WeekBlock(BaseModel):
    week_start: date
    anchor_col: int
    header_text: str
    columns: Dict[str, int]

    @property
    def provider_col(self) -> int:
        return self.columns["provider"]
