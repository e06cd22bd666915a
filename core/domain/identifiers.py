from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4


def generate_id() -> str:
    return str(uuid4())


def record_number(prefix: str, *, now: datetime | None = None, suffix_length: int = 4) -> str:
    """Human-readable record number, e.g. ``PAY-20260301-3FA2``."""
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y%m%d")
    return f"{prefix}-{stamp}-{uuid4().hex[:suffix_length].upper()}"


__all__ = ["generate_id", "record_number"]
