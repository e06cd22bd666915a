from __future__ import annotations

from datetime import datetime, timezone
from threading import RLock
from typing import Optional

from core.services.finance.models import FinancialSummary


class SummaryCache:
    """Latest FinancialSummary per project, plus the time of the last write."""

    def __init__(self) -> None:
        self._entries: dict[str, FinancialSummary] = {}
        self._last_updated: Optional[datetime] = None
        self._lock = RLock()

    def get(self, project_id: str) -> Optional[FinancialSummary]:
        with self._lock:
            return self._entries.get(project_id)

    def put(self, project_id: str, summary: FinancialSummary) -> None:
        with self._lock:
            self._entries[project_id] = summary
            self._last_updated = datetime.now(timezone.utc)

    def invalidate(self, project_id: str) -> bool:
        with self._lock:
            return self._entries.pop(project_id, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._last_updated = None

    @property
    def last_updated(self) -> Optional[datetime]:
        with self._lock:
            return self._last_updated

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, project_id: object) -> bool:
        with self._lock:
            return project_id in self._entries


__all__ = ["SummaryCache"]
