from __future__ import annotations

from datetime import date

import pytest

from sstdb.apps.evaluations import models, repository, services
from sstdb.apps.evaluations.enums import EvaluationStatus


def _create_template(db, *, year=None):
    template = models.EvaluationTemplate(
        code="EV-BATCH",
        name="Inducción SST",
        validity_year=year or date.today().year,
    )
    db.add(template)
    db.commit()
    return template


def _approve(db, template, employee_id, *, scope_id=None, status=EvaluationStatus.APPROVED):
    db.add(
        models.AppliedEvaluation(
            code="EVAL-20260101-TEST",
            template_id=template.id,
            employee_id=employee_id,
            percentage=90 if status == EvaluationStatus.APPROVED else 20,
            status=status,
            attempt_number=1,
            training_scope_id=scope_id,
        )
    )
    db.commit()


def _exclude(db, employee_id):
    db.add(models.CommitteeMembership(employee_id=employee_id, committee_name="Gerencia", exclude_from_evaluations=True))
    db.commit()


def test_no_active_templates_lets_everyone_sign(db_session):
    _create_template(db_session, year=date.today().year - 1)

    result = services.check_batch_completion(db_session, employee_ids=["EMP-1", "EMP-2"])

    assert result.has_evaluations is False
    assert result.results == {"EMP-1": True, "EMP-2": True}


def test_unscoped_check_counts_any_approval(db_session):
    template = _create_template(db_session)
    _approve(db_session, template, "EMP-1", scope_id="CAP-1")
    _approve(db_session, template, "EMP-2")
    _approve(db_session, template, "EMP-3", status=EvaluationStatus.NOT_APPROVED)

    result = services.check_batch_completion(db_session, employee_ids=["EMP-1", "EMP-2", "EMP-3", "EMP-4"])

    assert result.has_evaluations is True
    assert result.results == {"EMP-1": True, "EMP-2": True, "EMP-3": False, "EMP-4": False}


def test_scoped_check_requires_approval_in_one_of_the_scopes(db_session):
    template = _create_template(db_session)
    _approve(db_session, template, "EMP-1", scope_id="CAP-1")
    _approve(db_session, template, "EMP-2", scope_id="CAP-9")
    _approve(db_session, template, "EMP-3")

    result = services.check_batch_completion(
        db_session,
        employee_ids=["EMP-1", "EMP-2", "EMP-3"],
        training_scope_ids=["CAP-1", "CAP-2"],
    )

    assert result.results == {"EMP-1": True, "EMP-2": False, "EMP-3": False}


def test_excluded_employees_always_complete(db_session):
    _create_template(db_session)
    _exclude(db_session, "EMP-BOSS")

    result = services.check_batch_completion(db_session, employee_ids=["EMP-BOSS", "EMP-1"], training_scope_ids=["CAP-1"])

    assert result.results == {"EMP-BOSS": True, "EMP-1": False}


def test_exclusion_lookup_failure_excludes_nobody(db_session, monkeypatch):
    template = _create_template(db_session)
    _exclude(db_session, "EMP-BOSS")
    _approve(db_session, template, "EMP-1")

    def boom(db):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(repository, "list_excluded_employee_ids", boom)

    result = services.check_batch_completion(db_session, employee_ids=["EMP-BOSS", "EMP-1"])

    assert result.results == {"EMP-BOSS": False, "EMP-1": True}


def test_large_batches_are_queried_in_chunks(db_session):
    template = _create_template(db_session)
    employee_ids = [f"EMP-{i:03d}" for i in range(repository.EMPLOYEE_BATCH_SIZE * 2 + 3)]
    for employee_id in employee_ids[::2]:
        _approve(db_session, template, employee_id)

    result = services.check_batch_completion(db_session, employee_ids=employee_ids)

    assert len(result.results) == len(employee_ids)
    assert [employee_id for employee_id, done in result.results.items() if done] == employee_ids[::2]


def test_blank_ids_are_dropped_and_empty_request_rejected(db_session):
    _create_template(db_session)

    result = services.check_batch_completion(db_session, employee_ids=["EMP-1", " ", ""])
    assert list(result.results) == ["EMP-1"]

    with pytest.raises(services.InvalidEvaluationRequest):
        services.check_batch_completion(db_session, employee_ids=["  "])
    with pytest.raises(services.InvalidEvaluationRequest):
        services.check_batch_completion(db_session, employee_ids=[])


def test_approved_attempt_map_marks_unscoped_approvals_with_none(db_session):
    template = _create_template(db_session)
    _approve(db_session, template, "EMP-1")
    _approve(db_session, template, "EMP-1", scope_id="CAP-1")

    approved = repository.list_approved_attempts(db_session, employee_ids=["EMP-1", "EMP-2"])

    assert approved == {"EMP-1": {None, "CAP-1"}}
