# infra/db/models.py
from __future__ import annotations
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from infra.db.base import Base


class BillingRecordORM(Base):
    __tablename__ = "billing_records"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    project_id: Mapped[str] = mapped_column(String, nullable=False)
    record_number: Mapped[str] = mapped_column(String(64), nullable=False)
    record_type: Mapped[str] = mapped_column(String(16), nullable=False)
    contract_id: Mapped[str] = mapped_column(String, nullable=False)
    acceptance_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    task_ids_json: Mapped[str] = mapped_column(Text, nullable=False, default="[]")

    billing_party_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    paying_party_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    line_items_json: Mapped[str] = mapped_column(Text, nullable=False, default="[]")

    subtotal: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    tax: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    tax_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    total: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    billing_percentage: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    status: Mapped[str] = mapped_column(String(32), nullable=False, default="draft")
    workflow_json: Mapped[str] = mapped_column(Text, nullable=False, default="{}")

    due_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    paid_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    paid_amount: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    payment_method: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    invoicing_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    metadata_json: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    attachment_ids_json: Mapped[str] = mapped_column(Text, nullable=False, default="[]")

    created_by: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_by: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    __table_args__ = (
        UniqueConstraint("project_id", "record_number", name="ux_billing_record_number"),
        Index("idx_billing_project_type", "project_id", "record_type"),
        Index("idx_billing_project_status", "project_id", "status"),
    )
