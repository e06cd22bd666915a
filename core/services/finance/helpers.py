from __future__ import annotations

import math
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

_CENT = Decimal("0.01")
_UNIT = Decimal("1")


def round2(value: float) -> float:
    """Round to 2 decimals, halves away from zero (2.345 -> 2.35, -2.345 -> -2.35)."""
    return float(to_cents(value))


def to_cents(value: float | int) -> Decimal:
    """Money amount as a Decimal quantized to the cent, halves away from zero."""
    return Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP)


def round_whole(value: float) -> float:
    return float(Decimal(str(value)).quantize(_UNIT, rounding=ROUND_HALF_UP))


def money_sum(values: Iterable[float | int]) -> float:
    """Exact integer addition when every term is integral, fsum otherwise."""
    items = list(values)
    if all(float(v).is_integer() for v in items):
        return float(sum(int(v) for v in items))
    return math.fsum(items)


def percentage(part: float, whole: float) -> float:
    return round2(part / whole * 100) if whole > 0 else 0.0


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def month_start(now: datetime) -> datetime:
    return as_utc(now).replace(day=1, hour=0, minute=0, second=0, microsecond=0)


__all__ = ["round2", "to_cents", "round_whole", "money_sum", "percentage", "as_utc", "month_start"]
