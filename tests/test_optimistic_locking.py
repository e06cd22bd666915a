from __future__ import annotations

import pytest

from core.exceptions import ConcurrencyError, NotFoundError
from core.models import Actor, BillingStatus

ALICE = Actor(user_id="u-alice", user_name="Alice")
BOB = Actor(user_id="u-bob", user_name="Bob")


def test_repository_rejects_stale_expected_version(services, make_receivable):
    repo = services["record_repo"]
    record = make_receivable()
    stale = repo.get(record.project_id, record.id)

    assert repo.update(record, expected_version=record.version) == record.version + 1
    services["session"].commit()

    with pytest.raises(ConcurrencyError) as exc:
        repo.update(stale, expected_version=stale.version)
    assert exc.value.code == "STALE_WRITE"


def test_repository_update_of_missing_record_is_not_found(services, make_receivable):
    repo = services["record_repo"]
    record = make_receivable()
    record.id = "does-not-exist"

    with pytest.raises(NotFoundError):
        repo.update(record, expected_version=1)


def test_racing_approvals_do_not_double_advance(services, make_receivable, submitter, monkeypatch):
    monkeypatch.setenv("BILLING_DEFAULT_APPROVAL_STEPS", "3")
    ls = services["lifecycle_service"]
    record = make_receivable()
    ls.submit(record.project_id, record.id, submitter)
    stale = ls.get_record(record.project_id, record.id)

    ls.approve(record.project_id, record.id, ALICE)

    # second approver read the record before the first write landed
    monkeypatch.setattr(ls, "_load", lambda _project_id, _record_id: stale)
    with pytest.raises(ConcurrencyError):
        ls.approve(record.project_id, record.id, BOB)
    monkeypatch.undo()

    stored = ls.get_record(record.project_id, record.id)
    assert stored.status == BillingStatus.UNDER_REVIEW
    assert stored.approval_workflow.current_step == 2
    assert [a.user_id for a in stored.approval_workflow.approvers] == ["u-alice"]
    assert stored.version == stale.version + 1
