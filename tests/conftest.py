# tests/conftest.py
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from core.events.domain_events import EventBus
from core.models import Actor, InvoicingInfo, LineItem, PartyInfo
from core.services.billing import AcceptanceData, ContractData, GeneratePayableOptions
from infra.db.base import Base
from infra.services import build_service_graph

PROJECT_ID = "proj-1"
OWNER = PartyInfo(id="owner-1", name="Harbour Development Ltd", tax_id="OWN-001")
CONTRACTOR = PartyInfo(id="ctr-1", name="Acme Builders", tax_id="CTR-001")


@pytest.fixture
def session():
    # separate in-memory DB for tests
    engine = create_engine("sqlite:///:memory:", future=True)
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def services(session, event_bus):
    graph = build_service_graph(session, event_bus=event_bus)
    try:
        yield graph.as_dict()
    finally:
        graph.close()


@pytest.fixture
def submitter():
    return Actor(user_id="u-site", user_name="Site Engineer", role="engineer")


@pytest.fixture
def make_receivable(services, submitter):
    """Draft receivable with one line item; pass amount=None for no items."""

    def _make(amount: float | None = 100_000.0, *, task_ids=("task-1",), tax_rate=0.0, due_in_days=30):
        items = []
        if amount is not None:
            items.append(
                LineItem.create(
                    source_item_id="boq-1",
                    description="Foundation works",
                    quantity=1,
                    unit_price=amount,
                )
            )
        return services["generation_service"].create_receivable(
            PROJECT_ID,
            "contract-1",
            billing_party=CONTRACTOR,
            paying_party=OWNER,
            line_items=items,
            actor=submitter,
            task_ids=task_ids,
            tax_rate=tax_rate,
            due_date=datetime.now(timezone.utc) + timedelta(days=due_in_days),
        )

    return _make


@pytest.fixture
def make_payable(services):
    """Draft payable generated from an acceptance, tax-free so total == amount."""

    def _make(amount: float = 100.0, *, contractor: PartyInfo = CONTRACTOR, task_ids=("task-1",)):
        acceptance = AcceptanceData(
            id=f"acc-{contractor.id}",
            project_id=PROJECT_ID,
            contract_id="contract-2",
            total_amount=amount,
            accepted_at=datetime.now(timezone.utc),
            task_ids=tuple(task_ids),
        )
        contract = ContractData(
            id="contract-2",
            project_id=PROJECT_ID,
            contract_number="SUB-002",
            owner_id=OWNER.id,
            owner_name=OWNER.name,
            contractor_id=contractor.id,
            contractor_name=contractor.name,
        )
        return services["generation_service"].generate_payable(
            acceptance,
            contract,
            GeneratePayableOptions(tax_rate=0.0),
        )

    return _make


@pytest.fixture
def invoiced_payable(services, make_payable, submitter):
    """Payable approved by a one-step roster and invoiced for its full amount."""
    ls = services["lifecycle_service"]
    finance = Actor(user_id="u-fin", user_name="Finance Officer", role="finance")

    def _make(amount: float = 100.0):
        record = make_payable(amount)
        ls.submit(record.project_id, record.id, submitter, approvers=[finance])
        ls.approve(record.project_id, record.id, finance)
        return ls.mark_as_invoiced(
            record.project_id,
            record.id,
            finance,
            InvoicingInfo(
                invoice_number="CTR-INV-0042",
                invoice_date=date(2026, 3, 1),
                tax_id="CTR-001",
                amount=amount,
                attachment_ids=("att-1",),
            ),
        )

    return _make
