"""
Small numeric helpers shared by scoring, derivations and reporting.

Rounding is half-up (away from the bankers' rounding of the built-in
``round()``) so displayed scores and percentiles match the published product.
"""

from __future__ import annotations

import math


def clamp(value: float, lo: float, hi: float) -> float:
    """Clamp ``value`` to the closed interval ``[lo, hi]``."""
    return max(lo, min(hi, value))


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round ``value`` to ``ndigits`` decimals, ties toward +infinity.

    >>> round_half_up(2.5)
    3.0
    >>> round_half_up(-2.5)
    -2.0
    """
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def round_int(value: float) -> int:
    """Half-up rounding to the nearest integer."""
    return int(math.floor(value + 0.5))
