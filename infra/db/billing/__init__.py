from infra.db.billing.mapper import (
    record_from_orm,
    record_to_orm,
    record_to_values,
    workflow_from_json,
    workflow_to_json,
)
from infra.db.billing.repository import SqlAlchemyBillingRecordRepository

__all__ = [
    "record_to_orm",
    "record_from_orm",
    "record_to_values",
    "workflow_to_json",
    "workflow_from_json",
    "SqlAlchemyBillingRecordRepository",
]
