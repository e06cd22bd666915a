from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, List

from sqlalchemy.orm import Session

from core.events.domain_events import BillingEventType, EventBus, domain_events
from core.exceptions import BusinessRuleError, DomainError, ValidationError
from core.interfaces import BillingRecordRepository
from core.models import (
    SYSTEM_ACTOR,
    Actor,
    BillingRecord,
    LineItem,
    PartyInfo,
    RecordType,
    record_number,
)
from core.services.billing.models import (
    AcceptanceData,
    BatchFailure,
    BatchResult,
    ContractData,
    GeneratePayableOptions,
)
from core.services.billing.policy import (
    default_approval_steps,
    default_payment_term_days,
    default_tax_rate,
)
from core.services.billing.workflow import create_workflow
from core.services.finance.helpers import round_whole

logger = logging.getLogger(__name__)

_NUMBER_PREFIX = {
    RecordType.RECEIVABLE: "INV",
    RecordType.PAYABLE: "PAY",
}
_MAX_NUMBER_ATTEMPTS = 10


def calculate_totals(subtotal: float, tax_rate: float) -> tuple[float, float, float]:
    tax = round_whole(subtotal * tax_rate)
    return subtotal, tax, subtotal + tax


class PayableGenerationService:
    """Creates draft billing records: payables from acceptance results, receivables from line items."""

    def __init__(
        self,
        session: Session,
        record_repo: BillingRecordRepository,
        event_bus: EventBus | None = None,
    ):
        self._session: Session = session
        self._record_repo: BillingRecordRepository = record_repo
        self._events: EventBus = event_bus or domain_events

    def generate_payable(
        self,
        acceptance: AcceptanceData,
        contract: ContractData,
        options: GeneratePayableOptions | None = None,
        *,
        actor: Actor | None = None,
    ) -> BillingRecord:
        options = options or GeneratePayableOptions()
        actor = actor or SYSTEM_ACTOR
        logger.info(
            "Generating payable for acceptance %s, contractor %s",
            acceptance.id,
            contract.contractor_id,
        )
        if acceptance.project_id != contract.project_id:
            raise ValidationError(
                "Acceptance and contract belong to different projects.",
                code="PROJECT_MISMATCH",
            )
        if acceptance.total_amount <= 0:
            raise ValidationError("Acceptance amount must be greater than 0.", code="ACCEPTANCE_AMOUNT_INVALID")
        if not 0 < options.payment_percentage <= 100:
            raise ValidationError("Payment percentage must be within (0, 100].", code="PAYMENT_PERCENTAGE_INVALID")

        gross = acceptance.total_amount * (options.payment_percentage / 100)
        management_fee = gross * contract.management_fee_rate
        net = gross * contract.contractor_rate - management_fee
        if net <= 0:
            raise ValidationError(
                f"Net payable for contractor {contract.contractor_id} is not positive.",
                code="NET_AMOUNT_INVALID",
            )
        tax_rate = default_tax_rate() if options.tax_rate is None else options.tax_rate
        subtotal, tax, _total = calculate_totals(net, tax_rate)

        item = LineItem.create(
            source_item_id=contract.id,
            description=f"Acceptance payment - {acceptance.id} (contractor: {contract.contractor_name})",
            unit="lot",
            quantity=1,
            unit_price=acceptance.total_amount,
            amount=net,
            completion_percentage=100.0,
            previous_billed=0.0,
            current_billing=net,
        )
        term_days = contract.payment_term_days or default_payment_term_days()
        due_date = options.due_date or datetime.now(timezone.utc) + timedelta(days=term_days)

        record = BillingRecord.create(
            project_id=acceptance.project_id,
            record_number=self._next_record_number(acceptance.project_id, RecordType.PAYABLE),
            record_type=RecordType.PAYABLE,
            contract_id=contract.id,
            billing_party=PartyInfo(id=contract.owner_id, name=contract.owner_name),
            paying_party=PartyInfo(id=contract.contractor_id, name=contract.contractor_name),
            due_date=due_date,
            created_by=actor.user_id,
            line_items=[item],
            subtotal=subtotal,
            tax=tax,
            tax_rate=tax_rate,
            billing_percentage=options.payment_percentage,
            acceptance_id=acceptance.id,
            task_ids=set(acceptance.task_ids),
            approval_workflow=create_workflow(default_approval_steps()),
            notes=options.notes or f"Generated from acceptance {acceptance.id}",
        )
        self._add(record)
        self._events.emit(
            BillingEventType.PAYMENT_GENERATED,
            record.project_id,
            actor,
            {
                "record_id": record.id,
                "record_number": record.record_number,
                "acceptance_id": acceptance.id,
                "contractor_id": contract.contractor_id,
                "contractor_name": contract.contractor_name,
                "amount": record.total,
            },
        )
        logger.info(
            "Payable %s generated for contractor %s, amount %s",
            record.record_number,
            contract.contractor_name,
            record.total,
        )
        return record

    def batch_generate_payables(
        self,
        acceptance: AcceptanceData,
        contracts: Iterable[ContractData],
        options: GeneratePayableOptions | None = None,
        *,
        actor: Actor | None = None,
    ) -> BatchResult:
        contracts = list(contracts)
        logger.info("Batch generating payables for %s contractors", len(contracts))
        result = BatchResult()
        for contract in contracts:
            try:
                result.succeeded.append(
                    self.generate_payable(acceptance, contract, options, actor=actor)
                )
            except Exception as exc:
                logger.exception(
                    "Failed to generate payable for contractor %s: %s",
                    contract.contractor_id,
                    exc,
                )
                result.failed.append(
                    BatchFailure(
                        key=contract.contractor_id,
                        code=exc.code if isinstance(exc, DomainError) else type(exc).__name__,
                        message=str(exc),
                    )
                )
        logger.info(
            "Batch generation completed: %s/%s payables created",
            len(result.succeeded),
            len(contracts),
        )
        return result

    def create_receivable(
        self,
        project_id: str,
        contract_id: str,
        *,
        billing_party: PartyInfo,
        paying_party: PartyInfo,
        line_items: List[LineItem],
        actor: Actor,
        task_ids: Iterable[str] = (),
        due_date: datetime | None = None,
        tax_rate: float | None = None,
        billing_percentage: float = 0.0,
        acceptance_id: str | None = None,
        notes: str | None = None,
    ) -> BillingRecord:
        if not 0 <= billing_percentage <= 100:
            raise ValidationError("Billing percentage must be within [0, 100].", code="BILLING_PERCENTAGE_INVALID")
        rate = default_tax_rate() if tax_rate is None else tax_rate
        if not 0 <= rate <= 1:
            raise ValidationError("Tax rate must be within [0, 1].", code="TAX_RATE_INVALID")
        subtotal, tax, _total = calculate_totals(
            sum(item.current_billing for item in line_items), rate
        )
        record = BillingRecord.create(
            project_id=project_id,
            record_number=self._next_record_number(project_id, RecordType.RECEIVABLE),
            record_type=RecordType.RECEIVABLE,
            contract_id=contract_id,
            billing_party=billing_party,
            paying_party=paying_party,
            due_date=due_date or datetime.now(timezone.utc) + timedelta(days=default_payment_term_days()),
            created_by=actor.user_id,
            line_items=list(line_items),
            subtotal=subtotal,
            tax=tax,
            tax_rate=rate,
            billing_percentage=billing_percentage,
            acceptance_id=acceptance_id,
            task_ids=set(task_ids),
            approval_workflow=create_workflow(default_approval_steps()),
            notes=notes,
        )
        self._add(record)
        logger.info("Created receivable %s in project %s", record.record_number, project_id)
        return record

    def _add(self, record: BillingRecord) -> None:
        try:
            self._record_repo.add(record)
            self._session.commit()
        except Exception as e:
            self._session.rollback()
            logger.error("Error creating billing record: %s", e)
            raise e

    def _next_record_number(self, project_id: str, record_type: RecordType) -> str:
        prefix = _NUMBER_PREFIX[record_type]
        for _ in range(_MAX_NUMBER_ATTEMPTS):
            candidate = record_number(prefix)
            if not self._record_repo.exists_record_number(project_id, candidate):
                return candidate
        raise BusinessRuleError(
            "Could not allocate a unique record number.",
            code="RECORD_NUMBER_EXHAUSTED",
        )


__all__ = ["PayableGenerationService", "calculate_totals"]
