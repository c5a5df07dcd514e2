# backend/sstdb/apps/evaluations/models.py
from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum as SAEnum,
    Float,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
)

from sstdb.database import Base
from sstdb.utils.identifiers import generate_record_id

from .enums import EvaluationStatus, MembershipStatus, TemplateStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class CommitteeMembership(Base):
    """
    One employee's seat on one committee.

    `exclude_from_evaluations` is maintained by committee leadership; the
    employee is exempt from every evaluation if any of their rows sets it.
    """

    __tablename__ = "committee_memberships"
    __table_args__ = (
        Index("ix_committee_memberships_employee_status", "employee_id", "status"),
    )

    id = Column(String(36), primary_key=True, default=generate_record_id)
    employee_id = Column(String(64), nullable=False, index=True)
    committee_name = Column(String(255), nullable=False)
    status = Column(
        SAEnum(
            MembershipStatus,
            name="committee_membership_status_enum",
            native_enum=False,
            values_callable=_enum_values,
        ),
        nullable=False,
        default=MembershipStatus.ACTIVE,
    )
    exclude_from_evaluations = Column(Boolean, nullable=False, default=False, index=True)

    def __repr__(self) -> str:
        return f"<CommitteeMembership employee={self.employee_id} committee={self.committee_name!r} status={self.status}>"


class EvaluationTemplate(Base):
    __tablename__ = "evaluation_templates"
    __table_args__ = (
        Index("ix_evaluation_templates_status_year", "status", "validity_year"),
    )

    id = Column(String(36), primary_key=True, default=generate_record_id)
    code = Column(String(64), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    template_type = Column(String(64), nullable=True)

    # Free text: "All" or one or more committee names.
    population_target = Column(String(512), nullable=True)

    status = Column(
        SAEnum(
            TemplateStatus,
            name="evaluation_template_status_enum",
            native_enum=False,
            values_callable=_enum_values,
        ),
        nullable=False,
        default=TemplateStatus.ACTIVE,
    )
    validity_year = Column(Integer, nullable=False, index=True)

    pass_threshold_percent = Column(Float, nullable=False, default=60)
    time_limit_minutes = Column(Integer, nullable=True)
    max_attempts = Column(Integer, nullable=False, default=1)
    randomize_questions = Column(Boolean, nullable=False, default=False)
    show_feedback = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    def __repr__(self) -> str:
        return f"<EvaluationTemplate id={self.id} code={self.code} year={self.validity_year} status={self.status}>"


class QuestionBankItem(Base):
    __tablename__ = "question_bank_items"

    id = Column(String(36), primary_key=True, default=generate_record_id)
    text = Column(Text, nullable=False, default="")
    question_type = Column(String(64), nullable=True)

    # A list of option texts, a list of {key, text} objects, or whatever
    # string the authoring sheet produced.
    options_raw = Column(JSON, nullable=True)
    correct_answer_raw = Column(Text, nullable=True)
    explanation = Column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<QuestionBankItem id={self.id} type={self.question_type}>"


class TemplateQuestionLink(Base):
    """
    Places one bank question on one template.

    The integer key doubles as the fetch order used to break ties on
    `order`.
    """

    __tablename__ = "evaluation_template_questions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    template_id = Column(
        String(36),
        ForeignKey("evaluation_templates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    question_id = Column(
        String(36),
        ForeignKey("question_bank_items.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    order = Column("display_order", Integer, nullable=True)
    point_value = Column(Float, nullable=False, default=0)
    required = Column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<TemplateQuestionLink id={self.id} template={self.template_id} question={self.question_id} order={self.order}>"


class AppliedEvaluation(Base):
    """One graded attempt. Rows are append-only."""

    __tablename__ = "applied_evaluations"
    __table_args__ = (
        Index("ix_applied_evaluations_employee_template", "employee_id", "template_id"),
        Index("ix_applied_evaluations_employee_status", "employee_id", "status"),
    )

    id = Column(String(36), primary_key=True, default=generate_record_id)
    code = Column(String(32), nullable=False, index=True)
    template_id = Column(
        String(36),
        ForeignKey("evaluation_templates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    employee_id = Column(String(64), nullable=False, index=True)
    employee_name = Column(String(255), nullable=True)
    document_id = Column(String(64), nullable=True)
    role_label = Column(String(255), nullable=True)

    evaluation_date = Column("date", Date, nullable=False, default=date.today)
    score_obtained = Column(Float, nullable=False, default=0)
    score_max = Column(Float, nullable=False, default=0)
    percentage = Column(Float, nullable=False, default=0)
    status = Column(
        SAEnum(
            EvaluationStatus,
            name="applied_evaluation_status_enum",
            native_enum=False,
            values_callable=_enum_values,
        ),
        nullable=False,
        index=True,
    )
    # Supplied by the caller; may be missing on rows imported from older sheets.
    attempt_number = Column(Integer, nullable=True)
    training_scope_id = Column(String(64), nullable=True, index=True)
    time_spent_minutes = Column(Float, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    def __repr__(self) -> str:
        return (
            f"<AppliedEvaluation id={self.id} employee={self.employee_id} template={self.template_id} "
            f"attempt={self.attempt_number} status={self.status}>"
        )


class AnswerRecord(Base):
    __tablename__ = "evaluation_answers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(40), nullable=False)
    evaluation_id = Column(
        String(36),
        ForeignKey("applied_evaluations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    question_id = Column(String(36), nullable=False, index=True)
    link_id = Column(Integer, nullable=True)

    # Multi-select answers arrive as a serialized list.
    answer_given = Column(Text, nullable=True)
    is_correct = Column(Boolean, nullable=False, default=False)
    points_awarded = Column(Float, nullable=False, default=0)
    time_spent_seconds = Column(Integer, nullable=False, default=0)
    presented_order = Column(Integer, nullable=True)

    def __repr__(self) -> str:
        return f"<AnswerRecord id={self.id} evaluation={self.evaluation_id} question={self.question_id} correct={self.is_correct}>"
