from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from core.interfaces import BillingRecordRepository
from core.models import BillingRecord, BillingStatus, RecordType
from infra.db.billing.mapper import record_from_orm, record_to_orm, record_to_values
from infra.db.models import BillingRecordORM
from infra.db.optimistic import update_with_version_check


class SqlAlchemyBillingRecordRepository(BillingRecordRepository):
    def __init__(self, session: Session):
        self.session = session

    def add(self, record: BillingRecord) -> None:
        self.session.add(record_to_orm(record))

    def update(self, record: BillingRecord, *, expected_version: int) -> int:
        return update_with_version_check(
            self.session,
            BillingRecordORM,
            record.id,
            expected_version,
            record_to_values(record),
            scope={"project_id": record.project_id},
            not_found_message=f"Billing record not found: {record.id}",
            stale_message=(
                f"Billing record {record.record_number} was modified by another user. "
                "Reload and try again."
            ),
        )

    def get(self, project_id: str, record_id: str) -> Optional[BillingRecord]:
        obj = self.session.get(BillingRecordORM, record_id)
        if obj is None or obj.project_id != project_id:
            return None
        return record_from_orm(obj)

    def list_by_project(
        self,
        project_id: str,
        *,
        record_type: RecordType | None = None,
        statuses: set[BillingStatus] | None = None,
    ) -> List[BillingRecord]:
        stmt = select(BillingRecordORM).where(BillingRecordORM.project_id == project_id)
        if record_type is not None:
            stmt = stmt.where(BillingRecordORM.record_type == record_type.value)
        if statuses:
            stmt = stmt.where(BillingRecordORM.status.in_([s.value for s in statuses]))
        stmt = stmt.order_by(BillingRecordORM.created_at, BillingRecordORM.record_number)
        rows = self.session.execute(stmt).scalars().all()
        return [record_from_orm(row) for row in rows]

    def exists_record_number(self, project_id: str, record_number: str) -> bool:
        stmt = select(BillingRecordORM.id).where(
            BillingRecordORM.project_id == project_id,
            BillingRecordORM.record_number == record_number,
        )
        return self.session.execute(stmt).first() is not None


__all__ = ["SqlAlchemyBillingRecordRepository"]
