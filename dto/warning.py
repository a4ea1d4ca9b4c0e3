from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel

WarningType = Literal[
    "missing-column",
    "unparsed-block",
    "week-parse-failure",
    "data-validation",
    "unknown-format",
]


class ParserWarning(BaseModel):
    """A non-fatal problem found while extracting a worksheet."""

    sheet_name: str
    type: WarningType
    message: str
    row: Optional[int] = None  # 1-based sheet row
    column: Optional[str] = None  # A1 column letter, e.g. "C"
    week_block: Optional[date] = None

    model_config = {"frozen": True}
