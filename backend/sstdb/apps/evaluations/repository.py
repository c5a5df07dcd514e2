# backend/sstdb/apps/evaluations/repository.py
"""
Read/write contract between the evaluation engine and the record store.

Every function takes the session first and keyword arguments after it.
Nothing here caches: eligibility must always be computed from the rows as
they are now.
"""

from __future__ import annotations

import logging
import os
from typing import Iterable, Optional, Sequence

from sqlalchemy.orm import Session

from . import models
from .enums import EvaluationStatus, MembershipStatus, TemplateStatus
from .normalization import chunked

logger = logging.getLogger(__name__)

# Per-call record limit of the store (lookups by id, bulk inserts).
STORE_BATCH_SIZE = int(os.getenv("EVAL_STORE_BATCH_SIZE", "10"))
# Employee ids per approved-attempt query.
EMPLOYEE_BATCH_SIZE = int(os.getenv("EVAL_EMPLOYEE_BATCH_SIZE", "20"))


def list_active_templates(db: Session, *, year: int) -> list[models.EvaluationTemplate]:
    return (
        db.query(models.EvaluationTemplate)
        .filter(
            models.EvaluationTemplate.status == TemplateStatus.ACTIVE,
            models.EvaluationTemplate.validity_year == year,
        )
        .order_by(models.EvaluationTemplate.code, models.EvaluationTemplate.id)
        .all()
    )


def get_template(db: Session, *, template_id: str) -> Optional[models.EvaluationTemplate]:
    return db.get(models.EvaluationTemplate, template_id)


def list_committee_memberships(db: Session, *, employee_id: str) -> dict:
    """
    Return `{"committees": [...], "excluded": bool}` for one employee.

    Only Active memberships name committees; the exclusion flag counts on
    any row.
    """
    rows = (
        db.query(models.CommitteeMembership)
        .filter(models.CommitteeMembership.employee_id == employee_id)
        .all()
    )
    committees: list[str] = []
    excluded = False
    for row in rows:
        if row.exclude_from_evaluations:
            excluded = True
        if row.status == MembershipStatus.ACTIVE and row.committee_name and row.committee_name not in committees:
            committees.append(row.committee_name)
    return {"committees": committees, "excluded": excluded}


def list_excluded_employee_ids(db: Session) -> set[str]:
    rows = (
        db.query(models.CommitteeMembership.employee_id)
        .filter(models.CommitteeMembership.exclude_from_evaluations.is_(True))
        .distinct()
        .all()
    )
    return {employee_id for (employee_id,) in rows if employee_id}


def list_attempts(
    db: Session,
    *,
    employee_id: str,
    template_id: str,
    scope_id: Optional[str] = None,
) -> list[models.AppliedEvaluation]:
    """
    All graded attempts of one employee on one template.

    With `scope_id`, only attempts tied to that training session are kept.
    The scope filter runs after the fetch so a scoped and an unscoped caller
    always start from the same row set.
    """
    rows = (
        db.query(models.AppliedEvaluation)
        .filter(
            models.AppliedEvaluation.employee_id == employee_id,
            models.AppliedEvaluation.template_id == template_id,
        )
        .order_by(models.AppliedEvaluation.created_at, models.AppliedEvaluation.id)
        .all()
    )
    if scope_id:
        rows = [row for row in rows if row.training_scope_id == scope_id]
    return rows


def list_approved_attempts(
    db: Session,
    *,
    employee_ids: Sequence[str],
    scope_ids: Optional[Iterable[str]] = None,
) -> dict[str, set[Optional[str]]]:
    """
    Map employee id -> set of training scope ids with an Approved attempt.

    Unscoped approvals are recorded as `None` in the set, so an employee
    with any approval at all is present in the map. When `scope_ids` is
    given, approvals outside it are still returned; callers intersect.
    """
    approved: dict[str, set[Optional[str]]] = {}
    unique_ids = list(dict.fromkeys(employee_ids))
    for batch in chunked(unique_ids, EMPLOYEE_BATCH_SIZE):
        rows = (
            db.query(
                models.AppliedEvaluation.employee_id,
                models.AppliedEvaluation.training_scope_id,
            )
            .filter(
                models.AppliedEvaluation.employee_id.in_(batch),
                models.AppliedEvaluation.status == EvaluationStatus.APPROVED,
            )
            .all()
        )
        for employee_id, training_scope_id in rows:
            if not employee_id:
                continue
            approved.setdefault(employee_id, set()).add(training_scope_id or None)
    return approved


def list_template_question_links(db: Session, *, template_id: str) -> list[models.TemplateQuestionLink]:
    # Insertion order; callers apply the stable sort on `order`.
    return (
        db.query(models.TemplateQuestionLink)
        .filter(models.TemplateQuestionLink.template_id == template_id)
        .order_by(models.TemplateQuestionLink.id)
        .all()
    )


def get_question_bank_items(db: Session, *, ids: Sequence[str]) -> list[models.QuestionBankItem]:
    items: list[models.QuestionBankItem] = []
    unique_ids = [qid for qid in dict.fromkeys(ids) if qid]
    for batch in chunked(unique_ids, STORE_BATCH_SIZE):
        items.extend(
            db.query(models.QuestionBankItem)
            .filter(models.QuestionBankItem.id.in_(batch))
            .all()
        )
    return items


def create_applied_evaluation(db: Session, *, fields: dict) -> str:
    """Insert and commit one attempt header, returning its record id."""
    evaluation = models.AppliedEvaluation(**fields)
    db.add(evaluation)
    db.commit()
    db.refresh(evaluation)
    return evaluation.id


def create_answer_records(db: Session, *, evaluation_id: str, records: Sequence[dict]) -> int:
    """
    Insert and commit one batch of answers for an evaluation.

    A failing batch is rolled back on its own and re-raised; rows committed
    by earlier calls stay.
    """
    if len(records) > STORE_BATCH_SIZE:
        raise ValueError(f"at most {STORE_BATCH_SIZE} answer records per call")
    try:
        db.add_all(models.AnswerRecord(evaluation_id=evaluation_id, **record) for record in records)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return len(records)
