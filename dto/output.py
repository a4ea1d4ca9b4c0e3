"""
Top-level output DTOs returned by ``parser.parse_workbook``.

    ParseResult
      ├─ metrics:  List[NormalizedMetric]   (all sheets, arrival order)
      ├─ sheets:   List[SheetResult]        (matched sheets only)
      │    └─ metrics / warnings for that sheet
      ├─ warnings: List[ParserWarning]      (all sheets)
      └─ metadata: ParseMetadata

``ParseOutput`` is what the CLI writes: a ``ParseResult`` plus the optional
analytics sections.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from dto.insights import Insight, KPISummary, WeeklyAggregate
from dto.metric import NormalizedMetric
from dto.warning import ParserWarning


class SheetResult(BaseModel):
    """Structured output for a single worksheet."""

    sheet_name: str
    shape: Optional[str] = None
    metrics: List[NormalizedMetric] = []
    warnings: List[ParserWarning] = []

    model_config = {"frozen": True}


class ParseMetadata(BaseModel):
    filename: str
    parsed_at: datetime
    sheet_count: int
    record_count: int

    model_config = {"frozen": True}


class ParseResult(BaseModel):
    """Top-level output for an entire workbook."""

    metrics: List[NormalizedMetric] = []
    sheets: List[SheetResult] = []
    warnings: List[ParserWarning] = []
    metadata: ParseMetadata

    model_config = {"frozen": True}


class ParseOutput(ParseResult):
    weekly: Optional[List[WeeklyAggregate]] = None
    kpis: Optional[KPISummary] = None
    insights: Optional[List[Insight]] = None
