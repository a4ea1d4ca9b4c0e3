"""
Sheet-name -> sheet-shape resolution.

Evaluated top to bottom; the first matching predicate wins:
  1. exact sheet names as the source systems emit them (including the
     trailing space in "Gusto Hours " and the truncated Oncehub tab name)
  2. the same names compared case- and whitespace-insensitively
  3. substring heuristics for renamed copies of those tabs

Sheets that match nothing are not an error; workbooks routinely carry
unrelated tabs.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Tuple

from extractors.shapes import SheetShape

KNOWN_SHEETS: Dict[str, SheetShape] = {
    "Doxy - Over 20 minutes": "duration",
    "Gusto Hours ": "hours",
    "Doxy Visits": "visit_count",
    "Oncehub - Program Grouped": "program",
    "Oncehub Report - Number of Visi": "oncehub_visits",
}


def normalize_sheet_name(name: str) -> str:
    return name.lower().strip()


_NORMALIZED_KNOWN: Dict[str, SheetShape] = {
    normalize_sheet_name(name): shape for name, shape in KNOWN_SHEETS.items()
}

SheetMatcher = Tuple[Callable[[str], bool], SheetShape]


def _contains_all(*parts: str) -> Callable[[str], bool]:
    return lambda name: all(p in normalize_sheet_name(name) for p in parts)


def _contains_any(*parts: str) -> Callable[[str], bool]:
    return lambda name: any(p in normalize_sheet_name(name) for p in parts)


FUZZY_MATCHERS: List[SheetMatcher] = [
    (_contains_any("over 20", "over20"), "duration"),
    (_contains_all("gusto", "hour"), "hours"),
    (_contains_all("doxy", "visit"), "visit_count"),
    (_contains_all("oncehub", "program"), "program"),
    (_contains_all("oncehub", "visit"), "oncehub_visits"),
]


def resolve_shape(sheet_name: str) -> Optional[SheetShape]:
    """Return the shape for *sheet_name*, or ``None`` for unsupported tabs."""
    if sheet_name in KNOWN_SHEETS:
        return KNOWN_SHEETS[sheet_name]

    normalized = normalize_sheet_name(sheet_name)
    if normalized in _NORMALIZED_KNOWN:
        return _NORMALIZED_KNOWN[normalized]

    for matches, shape in FUZZY_MATCHERS:
        if matches(sheet_name):
            return shape
    return None


def supported_sheets() -> List[str]:
    return list(KNOWN_SHEETS)
