"""Rounding for stored money values.

Frozen expense amounts are kept to the cent, half-up, going through ``str`` so
binary float noise (``12.345`` stored as ``12.3449999...``) does not round down.
"""

from __future__ import annotations
from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")


def round2(value: float) -> float:
    return float(Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP))
