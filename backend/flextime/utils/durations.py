"""
Minute/hour arithmetic shared by the session deriver, the aggregator and the
clock-in/out view.

Rounding is half-up everywhere (Python's ``round`` is half-to-even). Hours are
derived from an aggregated minute sum exactly once, so totals never drift by
summing pre-rounded values.
"""

from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

_ONE = Decimal("1")
_CENT = Decimal("0.01")
_MICROS_PER_MINUTE = Decimal(60_000_000)


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from ``start`` to ``end``, rounded half-up."""
    micros = (end - start) // timedelta(microseconds=1)
    return int((Decimal(micros) / _MICROS_PER_MINUTE).quantize(_ONE, rounding=ROUND_HALF_UP))


def minutes_to_hours(minutes: int) -> float:
    """Convert a minute total to hours with two decimal places."""
    return float((Decimal(minutes) / 60).quantize(_CENT, rounding=ROUND_HALF_UP))
