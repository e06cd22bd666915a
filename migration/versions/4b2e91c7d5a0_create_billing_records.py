"""create billing records table

Revision ID: 4b2e91c7d5a0
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "4b2e91c7d5a0"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "billing_records",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("project_id", sa.String(), nullable=False),
        sa.Column("record_number", sa.String(length=64), nullable=False),
        sa.Column("record_type", sa.String(length=16), nullable=False),
        sa.Column("contract_id", sa.String(), nullable=False),
        sa.Column("acceptance_id", sa.String(), nullable=True),
        sa.Column("task_ids_json", sa.Text(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("billing_party_json", sa.Text(), nullable=True),
        sa.Column("paying_party_json", sa.Text(), nullable=True),
        sa.Column("line_items_json", sa.Text(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("subtotal", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("tax", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("tax_rate", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("total", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("billing_percentage", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("status", sa.String(length=32), nullable=False, server_default=sa.text("'draft'")),
        sa.Column("workflow_json", sa.Text(), nullable=False, server_default=sa.text("'{}'")),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("paid_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("paid_amount", sa.Float(), nullable=True),
        sa.Column("payment_method", sa.String(length=32), nullable=True),
        sa.Column("invoicing_json", sa.Text(), nullable=True),
        sa.Column("metadata_json", sa.Text(), nullable=False, server_default=sa.text("'{}'")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("attachment_ids_json", sa.Text(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("created_by", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_by", sa.String(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("project_id", "record_number", name="ux_billing_record_number"),
    )
    op.create_index(
        "idx_billing_project_type",
        "billing_records",
        ["project_id", "record_type"],
        unique=False,
    )
    op.create_index(
        "idx_billing_project_status",
        "billing_records",
        ["project_id", "status"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("idx_billing_project_status", table_name="billing_records")
    op.drop_index("idx_billing_project_type", table_name="billing_records")
    op.drop_table("billing_records")
