from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from core.models import BillingRecord, BillingStatus, RecordType


class BillingRecordRepository(ABC):
    @abstractmethod
    def add(self, record: BillingRecord) -> None: ...

    @abstractmethod
    def get(self, project_id: str, record_id: str) -> Optional[BillingRecord]: ...

    @abstractmethod
    def update(self, record: BillingRecord, *, expected_version: int) -> int:
        """Persist `record` if the stored version still equals `expected_version`.

        Returns the new version. Raises ConcurrencyError on a stale write and
        NotFoundError when the record no longer exists.
        """

    @abstractmethod
    def list_by_project(
        self,
        project_id: str,
        *,
        record_type: RecordType | None = None,
        statuses: set[BillingStatus] | None = None,
    ) -> List[BillingRecord]: ...

    @abstractmethod
    def exists_record_number(self, project_id: str, record_number: str) -> bool: ...


__all__ = ["BillingRecordRepository"]
