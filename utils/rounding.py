from __future__ import annotations

import math


def round_half_up(value: float, digits: int = 2) -> float:
    """
    Round *value* to *digits* decimals with halves going up.

    Unlike the built-in ``round``, ``0.125`` becomes ``0.13`` rather than
    ``0.12``.
    """
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def round_to_int(value: float) -> int:
    """Half-up integer rounding (``2.5 -> 3``, ``-2.5 -> -2``)."""
    return int(math.floor(value + 0.5))
