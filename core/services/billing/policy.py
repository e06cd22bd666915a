from __future__ import annotations

import os

from core.models import DEFAULT_TOTAL_STEPS

DEFAULT_TAX_RATE = 0.05
DEFAULT_PAYMENT_TERM_DAYS = 30


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name, "") or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name, "") or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def default_tax_rate() -> float:
    rate = _env_float("BILLING_TAX_RATE", DEFAULT_TAX_RATE)
    if rate < 0.0 or rate > 1.0:
        return DEFAULT_TAX_RATE
    return rate


def default_payment_term_days() -> int:
    days = _env_int("BILLING_PAYMENT_TERM_DAYS", DEFAULT_PAYMENT_TERM_DAYS)
    return days if days > 0 else DEFAULT_PAYMENT_TERM_DAYS


def default_approval_steps() -> int:
    steps = _env_int("BILLING_DEFAULT_APPROVAL_STEPS", DEFAULT_TOTAL_STEPS)
    return steps if steps >= 1 else DEFAULT_TOTAL_STEPS


__all__ = [
    "DEFAULT_TAX_RATE",
    "DEFAULT_PAYMENT_TERM_DAYS",
    "default_tax_rate",
    "default_payment_term_days",
    "default_approval_steps",
]
