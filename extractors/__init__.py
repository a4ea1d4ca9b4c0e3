from extractors.registry import resolve_shape, supported_sheets
from extractors.shapes import SHAPES, SheetShape
from extractors.sheet import extract_sheet

__all__ = [
    "SHAPES",
    "SheetShape",
    "extract_sheet",
    "resolve_shape",
    "supported_sheets",
]
