from __future__ import annotations

from sqlalchemy import create_engine, inspect

from core.services.billing.policy import (
    default_approval_steps,
    default_payment_term_days,
    default_tax_rate,
)
from infra.db.base import resolve_db_url
from infra.migrate import run_migrations


def test_migrations_create_billing_records_table(tmp_path):
    db_url = f"sqlite:///{(tmp_path / 'billing.db').as_posix()}"

    run_migrations(db_url)

    engine = create_engine(db_url, future=True)
    try:
        inspector = inspect(engine)
        assert "billing_records" in inspector.get_table_names()
        columns = {c["name"] for c in inspector.get_columns("billing_records")}
        assert {"version", "workflow_json", "paid_amount", "record_number"} <= columns
    finally:
        engine.dispose()


def test_db_url_can_be_overridden(monkeypatch):
    monkeypatch.setenv("BILLING_DB_URL", "sqlite:///:memory:")
    assert resolve_db_url() == "sqlite:///:memory:"


def test_policy_defaults(monkeypatch):
    for name in ("BILLING_TAX_RATE", "BILLING_PAYMENT_TERM_DAYS", "BILLING_DEFAULT_APPROVAL_STEPS"):
        monkeypatch.delenv(name, raising=False)

    assert default_tax_rate() == 0.05
    assert default_payment_term_days() == 30
    assert default_approval_steps() == 2


def test_policy_ignores_invalid_values(monkeypatch):
    monkeypatch.setenv("BILLING_TAX_RATE", "1.5")
    monkeypatch.setenv("BILLING_PAYMENT_TERM_DAYS", "soon")
    monkeypatch.setenv("BILLING_DEFAULT_APPROVAL_STEPS", "0")

    assert default_tax_rate() == 0.05
    assert default_payment_term_days() == 30
    assert default_approval_steps() == 2


def test_policy_reads_environment(monkeypatch):
    monkeypatch.setenv("BILLING_TAX_RATE", "0.08")
    monkeypatch.setenv("BILLING_DEFAULT_APPROVAL_STEPS", "3")

    assert default_tax_rate() == 0.08
    assert default_approval_steps() == 3
