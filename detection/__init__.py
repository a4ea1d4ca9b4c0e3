"""
Week-block detection.

Each sheet shape lays its weeks out as repeating horizontal blocks; the
locator finds them from the week-header row and resolves each block's
role columns.
"""

from detection.week_blocks import locate_week_blocks

__all__ = [
    "locate_week_blocks",
]
