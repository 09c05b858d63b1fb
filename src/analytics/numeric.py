"""Rounding shared by every engine component."""

from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with halves going towards +infinity.

    Python's built-in ``round`` uses banker's rounding (``round(62.5) == 62``);
    stored scores and percentages were always produced with half-up rounding
    (``62.5 -> 63``, ``-2.5 -> -2``), so the engine uses this everywhere.
    """
    return int(math.floor(value + 0.5))
