"""
Provider metrics parser: workbook orchestrator and CLI entry point.

Usage:
    python parser.py <workbook.xlsx> [--output <output.json>] [--merge] [--insights]

Loads a scheduling / payroll export workbook, matches every tab against
the known report shapes, extracts normalized per-provider-per-week
records from the matched tabs, and writes the result as a single JSON
file.

With --merge, records sharing a (week, provider) key are coalesced into
one record.  With --insights, weekly aggregates, KPIs and insights are
written alongside the parse result.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import dotenv

from analytics import aggregate_by_week, calculate_kpis, generate_insights
from dto.metric import OPTIONAL_FIELDS, NormalizedMetric
from dto.output import ParseMetadata, ParseOutput, ParseResult, SheetResult
from dto.warning import ParserWarning
from extractors import extract_sheet, resolve_shape
from utils.workbook import WorkbookReadError, load_workbook_grids

logger = logging.getLogger(__name__)

# Source tag that wins when records from several sources are merged.
_PREFERRED_SOURCE = "duration-report"


# -------------------------------------------------------------------
# Main pipeline
# -------------------------------------------------------------------


def parse_workbook(
    data: bytes,
    filename: str,
    today: Optional[date] = None,
) -> ParseResult:
    """
    Parse workbook *data* and return a ``ParseResult``.

    Only unreadable bytes raise (``WorkbookReadError``).  Unsupported tabs
    are skipped, and problems inside supported tabs become warnings.
    *today* anchors year inference for week headers without a year.
    """
    sheets = load_workbook_grids(data, filename)

    sheet_results: List[SheetResult] = []
    for sheet in sheets:
        shape = resolve_shape(sheet.sheet_name)
        if shape is None:
            logger.debug("Skipping unsupported sheet: '%s'", sheet.sheet_name)
            continue

        logger.info("Processing sheet: '%s' (%s)", sheet.sheet_name, shape)
        try:
            result = extract_sheet(shape, sheet.grid, sheet.sheet_name, today=today)
        except Exception:
            logger.exception(
                "Failed to process sheet '%s'; adding empty result", sheet.sheet_name
            )
            result = SheetResult(
                sheet_name=sheet.sheet_name,
                shape=shape,
                warnings=[
                    ParserWarning(
                        sheet_name=sheet.sheet_name,
                        type="unknown-format",
                        message="Sheet could not be processed",
                    )
                ],
            )

        logger.info(
            "  -> %d record(s), %d warning(s)",
            len(result.metrics),
            len(result.warnings),
        )
        sheet_results.append(result)

    metrics = [m for s in sheet_results for m in s.metrics]
    warnings = [w for s in sheet_results for w in s.warnings]

    return ParseResult(
        metrics=metrics,
        sheets=sheet_results,
        warnings=warnings,
        metadata=ParseMetadata(
            filename=filename,
            parsed_at=datetime.now(timezone.utc),
            sheet_count=len(sheet_results),
            record_count=len(metrics),
        ),
    )


def merge_metrics(metrics: List[NormalizedMetric]) -> List[NormalizedMetric]:
    """
    Collapse records sharing ``(week_start, provider)`` into one record.

    Each optional field takes the first non-null value in arrival order.
    The merged ``source`` is the duration report when any record in the
    group came from it, otherwise the first record's source.
    """
    groups: Dict[Tuple[date, str], List[NormalizedMetric]] = {}
    for metric in metrics:
        groups.setdefault((metric.week_start, metric.provider), []).append(metric)

    merged: List[NormalizedMetric] = []
    for group in groups.values():
        first = group[0]
        if len(group) == 1:
            merged.append(first)
            continue

        update = {}
        for field in OPTIONAL_FIELDS:
            update[field] = next(
                (getattr(m, field) for m in group if getattr(m, field) is not None),
                None,
            )
        if any(m.source == _PREFERRED_SOURCE for m in group):
            update["source"] = _PREFERRED_SOURCE
        merged.append(first.model_copy(update=update))

    return merged


def build_output(
    result: ParseResult,
    merge: bool = False,
    insights: bool = False,
) -> ParseOutput:
    """
    Turn a ``ParseResult`` into the document the CLI writes.

    With *merge*, records are coalesced by ``merge_metrics`` and
    ``metadata.record_count`` follows the merged count.  With *insights*,
    weekly aggregates, KPIs and the insight feed are computed from the
    (possibly merged) records.
    """
    metrics = result.metrics
    metadata = result.metadata
    if merge:
        metrics = merge_metrics(metrics)
        metadata = metadata.model_copy(update={"record_count": len(metrics)})
        logger.info(
            "Merged %d record(s) into %d", len(result.metrics), len(metrics)
        )

    extra = {}
    if insights:
        extra = {
            "weekly": aggregate_by_week(metrics),
            "kpis": calculate_kpis(metrics),
            "insights": generate_insights(metrics),
        }

    return ParseOutput(
        metrics=metrics,
        sheets=result.sheets,
        warnings=result.warnings,
        metadata=metadata,
        **extra,
    )


# -------------------------------------------------------------------
# CLI
# -------------------------------------------------------------------


def main() -> None:
    dotenv.load_dotenv()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )

    parser = argparse.ArgumentParser(
        description="Parse a provider metrics workbook into normalized JSON.",
    )
    parser.add_argument(
        "workbook",
        help="Path to the .xlsx / .xls export to parse",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output JSON file path (default: <input_name>_metrics.json)",
    )
    parser.add_argument(
        "--merge",
        action="store_true",
        help="Merge records that share a week and provider",
    )
    parser.add_argument(
        "--insights",
        action="store_true",
        help="Include weekly aggregates, KPIs and insights in the output",
    )
    args = parser.parse_args()

    path = args.workbook
    if not os.path.isfile(path):
        logger.error("File not found: %s", path)
        sys.exit(1)

    output_path = args.output or f"{Path(path).stem}_metrics.json"

    try:
        result = parse_workbook(Path(path).read_bytes(), Path(path).name)
    except WorkbookReadError as exc:
        logger.error("%s", exc)
        sys.exit(1)

    for warning in result.warnings:
        logger.warning("[%s] %s: %s", warning.type, warning.sheet_name, warning.message)

    output = build_output(result, merge=args.merge, insights=args.insights)
    json_str = output.model_dump_json(indent=2, exclude_none=True)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(json_str)

    logger.info(
        "Output written to %s (%d record(s) from %d sheet(s))",
        output_path,
        output.metadata.record_count,
        output.metadata.sheet_count,
    )


if __name__ == "__main__":
    main()
