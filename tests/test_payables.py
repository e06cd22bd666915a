from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from core.events.domain_events import BillingEventType
from core.exceptions import InvalidTransitionError, ValidationError
from core.models import Actor, BillingStatus, InvoicingInfo, PaymentMethod
from core.services.billing import BankInfo, PaymentInfo

FINANCE = Actor(user_id="u-fin", user_name="Finance Officer", role="finance")


def _invoice(amount: float = 100.0) -> InvoicingInfo:
    return InvoicingInfo(
        invoice_number="CTR-INV-0042",
        invoice_date=date(2026, 3, 1),
        tax_id="CTR-001",
        amount=amount,
        attachment_ids=("att-1",),
    )


def test_mark_as_invoiced_stores_invoice_details(services, invoiced_payable):
    record = invoiced_payable()

    assert record.status == BillingStatus.INVOICED
    assert record.invoicing.invoice_number == "CTR-INV-0042"
    assert record.invoicing.invoice_date == date(2026, 3, 1)
    assert record.invoicing.attachment_ids == ("att-1",)


def test_mark_as_invoiced_requires_approval(services, make_payable):
    record = make_payable()

    with pytest.raises(InvalidTransitionError):
        services["lifecycle_service"].mark_as_invoiced(record.project_id, record.id, FINANCE, _invoice())


@pytest.mark.parametrize(
    "first,second,expected_status",
    [
        (30.0, 70.0, BillingStatus.PAID),
        (30.0, 20.0, BillingStatus.PARTIAL_PAID),
        (100.0, None, BillingStatus.PAID),
    ],
)
def test_payments_accumulate(services, invoiced_payable, first, second, expected_status):
    ls = services["lifecycle_service"]
    record = invoiced_payable(100.0)

    updated = ls.mark_as_paid(record.project_id, record.id, FINANCE, PaymentInfo(first, PaymentMethod.BANK_TRANSFER))
    if second is not None:
        updated = ls.mark_as_paid(record.project_id, record.id, FINANCE, PaymentInfo(second, PaymentMethod.CHECK))

    assert updated.paid_amount == first + (second or 0.0)
    assert updated.status == expected_status


def test_cent_instalments_settle_the_balance_exactly(services, invoiced_payable):
    ls = services["lifecycle_service"]
    record = invoiced_payable(0.3)

    partial = ls.mark_as_paid(record.project_id, record.id, FINANCE, PaymentInfo(0.1, PaymentMethod.CASH))
    assert partial.status == BillingStatus.PARTIAL_PAID

    paid = ls.mark_as_paid(record.project_id, record.id, FINANCE, PaymentInfo(0.2, PaymentMethod.CASH))
    assert paid.status == BillingStatus.PAID
    assert paid.paid_amount == 0.3


def test_sub_cent_payment_is_rejected(services, invoiced_payable):
    record = invoiced_payable()

    with pytest.raises(ValidationError) as exc:
        services["lifecycle_service"].mark_as_paid(
            record.project_id, record.id, FINANCE, PaymentInfo(0.004, PaymentMethod.CASH)
        )
    assert exc.value.code == "PAYMENT_AMOUNT_INVALID"


def test_payment_completed_event_flags_full_payment(services, event_bus, invoiced_payable):
    ls = services["lifecycle_service"]
    seen = []
    event_bus.subscribe(BillingEventType.PAYMENT_COMPLETED, seen.append)
    record = invoiced_payable(100.0)

    ls.mark_as_paid(record.project_id, record.id, FINANCE, PaymentInfo(40.0, PaymentMethod.CASH))
    ls.mark_as_paid(record.project_id, record.id, FINANCE, PaymentInfo(60.0, PaymentMethod.CASH))

    assert [(e.payload["amount"], e.payload["total_paid"], e.payload["is_fully_paid"]) for e in seen] == [
        (40.0, 40.0, False),
        (60.0, 100.0, True),
    ]


def test_payment_details_are_kept_in_metadata(services, invoiced_payable):
    ls = services["lifecycle_service"]
    record = invoiced_payable()
    paid_on = datetime(2026, 3, 10, 9, 30, tzinfo=timezone.utc)

    paid = ls.mark_as_paid(
        record.project_id,
        record.id,
        FINANCE,
        PaymentInfo(
            amount=100.0,
            method=PaymentMethod.BANK_TRANSFER,
            paid_date=paid_on,
            reference="REF-77",
            bank_info=BankInfo("First Bank", "001-22", "TX-9"),
        ),
    )

    assert paid.paid_date == paid_on
    assert paid.payment_method == PaymentMethod.BANK_TRANSFER
    assert paid.metadata["payment_reference"] == "REF-77"
    assert paid.metadata["bank_info"]["transaction_id"] == "TX-9"


def test_overpayment_is_rejected(services, invoiced_payable):
    ls = services["lifecycle_service"]
    record = invoiced_payable(100.0)
    ls.mark_as_paid(record.project_id, record.id, FINANCE, PaymentInfo(80.0, PaymentMethod.CASH))

    with pytest.raises(ValidationError) as exc:
        ls.mark_as_paid(record.project_id, record.id, FINANCE, PaymentInfo(30.0, PaymentMethod.CASH))

    assert exc.value.code == "PAYMENT_EXCEEDS_BALANCE"
    assert ls.get_record(record.project_id, record.id).paid_amount == 80.0


def test_non_positive_payment_is_rejected(services, invoiced_payable):
    record = invoiced_payable()

    with pytest.raises(ValidationError):
        services["lifecycle_service"].mark_as_paid(
            record.project_id, record.id, FINANCE, PaymentInfo(0.0, PaymentMethod.CASH)
        )


def test_paid_record_is_terminal(services, invoiced_payable):
    ls = services["lifecycle_service"]
    record = invoiced_payable(100.0)
    ls.mark_as_paid(record.project_id, record.id, FINANCE, PaymentInfo(100.0, PaymentMethod.CASH))

    with pytest.raises(ValidationError):
        ls.mark_as_paid(record.project_id, record.id, FINANCE, PaymentInfo(1.0, PaymentMethod.CASH))
    with pytest.raises(InvalidTransitionError):
        ls.cancel(record.project_id, record.id, FINANCE)


def test_payment_before_invoice_is_an_invalid_transition(services, make_payable, submitter):
    ls = services["lifecycle_service"]
    record = make_payable()
    ls.submit(record.project_id, record.id, submitter, approvers=[FINANCE])
    ls.approve(record.project_id, record.id, FINANCE)

    with pytest.raises(InvalidTransitionError):
        ls.mark_as_paid(record.project_id, record.id, FINANCE, PaymentInfo(10.0, PaymentMethod.CASH))
