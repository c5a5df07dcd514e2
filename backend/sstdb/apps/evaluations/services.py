# backend/sstdb/apps/evaluations/services.py
"""
Training-evaluation eligibility and scoring.

Read path:
- `resolve_committee_membership`  active committees + exclusion flag
- `track_attempts`                attempts used / approved for one template
- `list_pending_evaluations`      what one employee still owes
- `check_batch_completion`        the same question for many employees
- `assemble_template`             a template expanded into its questions

Write path:
- `record_submission`             grade an attempt and persist it

Per-answer correctness and points are declared by the caller and are not
recomputed here.
"""

from __future__ import annotations

import json
import logging
import math
import os
import random
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional, Sequence

from sqlalchemy.orm import Session

from sstdb.utils.identifiers import generate_answer_code, generate_evaluation_code

from . import models, repository, schemas
from .enums import EvaluationStatus, LEGACY_POPULATION_ALL, POPULATION_ALL
from .normalization import (
    chunked,
    clean_identifier,
    normalize_correct_answer,
    parse_options,
    resolve_question_type,
    round_half_up,
)

logger = logging.getLogger(__name__)

DEFAULT_PASS_THRESHOLD = float(os.getenv("EVAL_DEFAULT_PASS_THRESHOLD", "60"))
DEFAULT_MAX_ATTEMPTS = 1


class InvalidEvaluationRequest(ValueError):
    """A required identifier or payload part is missing."""


class TemplateNotFound(LookupError):
    pass


@dataclass(frozen=True)
class CommitteeMembershipInfo:
    committees: frozenset[str] = field(default_factory=frozenset)
    excluded: bool = False


@dataclass(frozen=True)
class AttemptState:
    attempts_used: int = 0
    approved: bool = False


def _require(value, label: str) -> str:
    cleaned = clean_identifier(value)
    if cleaned is None:
        raise InvalidEvaluationRequest(f"{label} is required")
    return cleaned


def _current_year() -> int:
    return date.today().year


# ---------------------------------------------------------------------------
# Membership
# ---------------------------------------------------------------------------


def resolve_committee_membership(db: Session, *, employee_id: str) -> CommitteeMembershipInfo:
    """
    Active committees for an employee plus the exclusion flag.

    A failed lookup degrades to "no memberships, not excluded".
    """
    try:
        info = repository.list_committee_memberships(db, employee_id=employee_id)
    except Exception:
        logger.warning(
            "Committee membership lookup failed; treating employee as not excluded",
            extra={"employee_id": employee_id},
            exc_info=True,
        )
        db.rollback()
        return CommitteeMembershipInfo()
    return CommitteeMembershipInfo(
        committees=frozenset(info.get("committees") or ()),
        excluded=bool(info.get("excluded")),
    )


def _excluded_employee_ids(db: Session) -> set[str]:
    try:
        return repository.list_excluded_employee_ids(db)
    except Exception:
        logger.warning("Exclusion lookup failed; no employee treated as excluded", exc_info=True)
        db.rollback()
        return set()


def matches_population(population_target: Optional[str], committees: Iterable[str]) -> bool:
    """
    True when a template's population target covers the employee.

    The target is free text and may name several committees, so a
    committee matches when its name is contained in the target.
    """
    target = (population_target or "").strip()
    if not target or target in (POPULATION_ALL, LEGACY_POPULATION_ALL):
        return True
    return any(committee and committee in target for committee in committees)


# ---------------------------------------------------------------------------
# Attempts
# ---------------------------------------------------------------------------


def summarize_attempts(rows: Sequence[models.AppliedEvaluation]) -> AttemptState:
    # Rows without an attempt number count as the first attempt.
    attempts_used = max((row.attempt_number or 1 for row in rows), default=0)
    approved = any(row.status == EvaluationStatus.APPROVED for row in rows)
    return AttemptState(attempts_used=attempts_used, approved=approved)


def track_attempts(
    db: Session,
    *,
    employee_id: str,
    template_id: str,
    training_scope_id: Optional[str] = None,
) -> AttemptState:
    rows = repository.list_attempts(
        db,
        employee_id=employee_id,
        template_id=template_id,
        scope_id=clean_identifier(training_scope_id),
    )
    return summarize_attempts(rows)


# ---------------------------------------------------------------------------
# Eligibility
# ---------------------------------------------------------------------------


def _template_summary_fields(template: models.EvaluationTemplate) -> dict:
    threshold = template.pass_threshold_percent
    return {
        "id": template.id,
        "code": template.code,
        "name": template.name,
        "description": template.description,
        "template_type": template.template_type,
        "pass_threshold_percent": DEFAULT_PASS_THRESHOLD if threshold is None else threshold,
        "time_limit_minutes": template.time_limit_minutes or 0,
        "attempts_allowed": template.max_attempts or DEFAULT_MAX_ATTEMPTS,
    }


def list_pending_evaluations(
    db: Session,
    *,
    employee_id: str,
    year: Optional[int] = None,
    training_scope_id: Optional[str] = None,
) -> list[schemas.PendingEvaluation]:
    """
    Templates an employee still owes this year, plus the ones already passed.

    A template stays listed while it is approved (shown as completed) or
    still has attempts left; exhausted, unapproved templates drop out.
    """
    employee_id = _require(employee_id, "employee_id")
    scope_id = clean_identifier(training_scope_id)
    year = year or _current_year()

    membership = resolve_committee_membership(db, employee_id=employee_id)
    if membership.excluded:
        return []

    templates = repository.list_active_templates(db, year=year)
    eligible = [t for t in templates if matches_population(t.population_target, membership.committees)]

    pending: list[schemas.PendingEvaluation] = []
    for template in eligible:
        state = track_attempts(
            db,
            employee_id=employee_id,
            template_id=template.id,
            training_scope_id=scope_id,
        )
        summary = _template_summary_fields(template)
        available = not state.approved and state.attempts_used < summary["attempts_allowed"]
        if not (available or state.approved):
            continue
        pending.append(
            schemas.PendingEvaluation(
                **summary,
                attempts_used=state.attempts_used,
                approved=state.approved,
                available=available,
            )
        )
    return pending


def check_batch_completion(
    db: Session,
    *,
    employee_ids: Sequence[str],
    training_scope_ids: Optional[Sequence[str]] = None,
    year: Optional[int] = None,
) -> schemas.BatchCompletionResponse:
    """
    Decide, for many employees at once, whether their evaluation is done.

    Used to gate attendance signatures: `True` means the employee may sign.
    Excluded employees always pass, and so does everyone when no template
    is active for the year.
    """
    ids = [cleaned for cleaned in (clean_identifier(e) for e in employee_ids or ()) if cleaned]
    if not ids:
        raise InvalidEvaluationRequest("employee_ids is required")
    requested_scopes = {cleaned for cleaned in (clean_identifier(s) for s in training_scope_ids or ()) if cleaned}
    year = year or _current_year()

    excluded = _excluded_employee_ids(db)

    if not repository.list_active_templates(db, year=year):
        return schemas.BatchCompletionResponse(
            has_evaluations=False,
            results={employee_id: True for employee_id in ids},
        )

    approved = repository.list_approved_attempts(
        db,
        employee_ids=ids,
        scope_ids=requested_scopes or None,
    )

    results: dict[str, bool] = {}
    for employee_id in ids:
        if employee_id in excluded:
            results[employee_id] = True
            continue
        scopes = approved.get(employee_id)
        if requested_scopes:
            results[employee_id] = bool(scopes and scopes & requested_scopes)
        else:
            results[employee_id] = scopes is not None
    return schemas.BatchCompletionResponse(has_evaluations=True, results=results)


# ---------------------------------------------------------------------------
# Question assembly
# ---------------------------------------------------------------------------


def build_question(
    link: models.TemplateQuestionLink,
    item: Optional[models.QuestionBankItem],
    position: int,
) -> schemas.QuestionRead:
    options = parse_options(item.options_raw if item else None)
    question_type = resolve_question_type(item.question_type if item else None)
    return schemas.QuestionRead(
        id=link.id,
        source_id=link.question_id,
        order=link.order if link.order is not None else position,
        point_value=link.point_value or 0,
        required=bool(link.required),
        text=(item.text if item else None) or "",
        question_type=question_type,
        options=options.display,
        correct_answer=normalize_correct_answer(
            item.correct_answer_raw if item else None,
            options,
            question_type,
        ),
        explanation=(item.explanation if item else None) or "",
    )


def assemble_template(
    db: Session,
    *,
    template_id: str,
    rng: Optional[random.Random] = None,
) -> schemas.TemplateExpansionResponse:
    """
    Expand a template into its ordered, normalized questions.

    Links are sorted by `order` with ties kept in fetch order. When the
    template randomizes, every call returns a fresh permutation; the result
    must not be cached.
    """
    template_id = _require(template_id, "template_id")
    template = repository.get_template(db, template_id=template_id)
    if template is None:
        raise TemplateNotFound(f"Template {template_id} not found")

    links = sorted(
        repository.list_template_question_links(db, template_id=template_id),
        key=lambda link: link.order or 0,
    )
    question_ids = [link.question_id for link in links if link.question_id]
    items = {item.id: item for item in repository.get_question_bank_items(db, ids=question_ids)}

    questions = []
    for position, link in enumerate(links, start=1):
        item = items.get(link.question_id) if link.question_id else None
        if item is None:
            logger.warning(
                "Template question has no bank item",
                extra={"template_id": template_id, "link_id": link.id, "question_id": link.question_id},
            )
        questions.append(build_question(link, item, position))

    if template.randomize_questions:
        questions = (rng or random).sample(questions, len(questions))

    return schemas.TemplateExpansionResponse(
        template=schemas.TemplateRead(
            **_template_summary_fields(template),
            randomize_questions=bool(template.randomize_questions),
            show_feedback=bool(template.show_feedback),
        ),
        questions=questions,
    )


# ---------------------------------------------------------------------------
# Scoring and recording
# ---------------------------------------------------------------------------


def compute_percentage(score_obtained: float, score_max: float) -> float:
    if score_max <= 0:
        return 0.0
    return round_half_up(score_obtained / score_max * 100)


def grade(percentage: float, pass_threshold_percent: float) -> EvaluationStatus:
    if percentage >= pass_threshold_percent:
        return EvaluationStatus.APPROVED
    return EvaluationStatus.NOT_APPROVED


def _pass_threshold(db: Session, template_id: str) -> float:
    try:
        template = repository.get_template(db, template_id=template_id)
    except Exception:
        logger.warning(
            "Template threshold lookup failed; using default",
            extra={"template_id": template_id, "default_threshold": DEFAULT_PASS_THRESHOLD},
            exc_info=True,
        )
        db.rollback()
        return DEFAULT_PASS_THRESHOLD
    if template is None or template.pass_threshold_percent is None:
        logger.warning(
            "Template threshold missing; using default",
            extra={"template_id": template_id, "default_threshold": DEFAULT_PASS_THRESHOLD},
        )
        return DEFAULT_PASS_THRESHOLD
    return float(template.pass_threshold_percent)


def _serialize_answer(answer_given) -> Optional[str]:
    if isinstance(answer_given, list):
        return json.dumps(answer_given, ensure_ascii=False, separators=(",", ":"))
    return answer_given


def _record_answers(
    db: Session,
    *,
    evaluation_id: str,
    evaluation_code: str,
    answers: Sequence[schemas.AnswerSubmission],
) -> int:
    """
    Persist answers in store-sized batches.

    A failed batch is logged and skipped; the header and earlier batches
    stay committed.
    """
    saved = 0
    answer_index = 0
    for batch in chunked(list(answers), repository.STORE_BATCH_SIZE):
        records = []
        for answer in batch:
            answer_index += 1
            records.append(
                {
                    "code": generate_answer_code(evaluation_code, answer_index),
                    "question_id": answer.question_id,
                    "link_id": answer.link_id,
                    "answer_given": _serialize_answer(answer.answer_given),
                    "is_correct": answer.is_correct,
                    "points_awarded": answer.points_awarded or 0,
                    "time_spent_seconds": answer.time_spent_seconds or 0,
                    "presented_order": answer.presented_order,
                }
            )
        try:
            saved += repository.create_answer_records(db, evaluation_id=evaluation_id, records=records)
        except Exception:
            logger.error(
                "Failed to save answer batch; continuing with the rest",
                extra={"evaluation_id": evaluation_id, "batch_size": len(records), "first_index": answer_index - len(records) + 1},
                exc_info=True,
            )
    if saved < len(answers):
        logger.warning(
            "Evaluation saved with missing answers",
            extra={"evaluation_id": evaluation_id, "saved": saved, "expected": len(answers)},
        )
    return saved


def record_submission(
    db: Session,
    *,
    payload: schemas.SubmissionCreate,
    today: Optional[date] = None,
) -> schemas.SubmissionResult:
    """
    Grade a submitted attempt and store it with its answers.

    `attempt_number` is taken from the caller when given. Two concurrent
    submissions for the same employee/template can pick the same number;
    nothing here serializes on that key.
    """
    template_id = _require(payload.template_id, "template_id")
    employee_id = _require(payload.employee_id, "employee_id")
    if not payload.answers:
        raise InvalidEvaluationRequest("answers must not be empty")
    scope_id = clean_identifier(payload.training_scope_id)
    today = today or date.today()

    score_obtained = round_half_up(sum(answer.points_awarded or 0 for answer in payload.answers))
    score_max = round_half_up(payload.score_max or 0)
    percentage = compute_percentage(score_obtained, score_max)
    if not all(math.isfinite(value) for value in (score_obtained, score_max, percentage)):
        raise InvalidEvaluationRequest("scores must be finite numbers")
    threshold = _pass_threshold(db, template_id)
    status = grade(percentage, threshold)

    attempt_number = payload.attempt_number
    if attempt_number is None:
        state = track_attempts(db, employee_id=employee_id, template_id=template_id, training_scope_id=scope_id)
        attempt_number = state.attempts_used + 1

    evaluation_code = generate_evaluation_code(today)
    evaluation_id = repository.create_applied_evaluation(
        db,
        fields={
            "code": evaluation_code,
            "template_id": template_id,
            "employee_id": employee_id,
            "employee_name": payload.employee_name,
            "document_id": payload.document_id,
            "role_label": payload.role_label,
            "evaluation_date": today,
            "score_obtained": score_obtained,
            "score_max": score_max,
            "percentage": percentage,
            "status": status,
            "attempt_number": attempt_number,
            "training_scope_id": scope_id,
            "time_spent_minutes": payload.time_spent_minutes,
        },
    )
    logger.info(
        "Evaluation recorded",
        extra={
            "evaluation_id": evaluation_id,
            "employee_id": employee_id,
            "template_id": template_id,
            "attempt_number": attempt_number,
            "status": status.value,
        },
    )

    _record_answers(
        db,
        evaluation_id=evaluation_id,
        evaluation_code=evaluation_code,
        answers=payload.answers,
    )

    return schemas.SubmissionResult(
        evaluation_id=evaluation_id,
        score_obtained=score_obtained,
        score_max=score_max,
        percentage=percentage,
        status=status,
        pass_threshold_percent=threshold,
    )
