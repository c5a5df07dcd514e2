"""create evaluation tables

Revision ID: e1v2a3l4t5p6
Revises:
Create Date: 2026-02-02 09:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "e1v2a3l4t5p6"
down_revision = None
branch_labels = None
depends_on = None


def _status_enum(name: str, *values: str) -> sa.Enum:
    return sa.Enum(*values, name=name, native_enum=False)


def upgrade() -> None:
    op.create_table(
        "committee_memberships",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("employee_id", sa.String(length=64), nullable=False),
        sa.Column("committee_name", sa.String(length=255), nullable=False),
        sa.Column("status", _status_enum("committee_membership_status_enum", "Active", "Inactive"), nullable=False),
        sa.Column("exclude_from_evaluations", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_committee_memberships_employee_id", "committee_memberships", ["employee_id"], unique=False)
    op.create_index(
        "ix_committee_memberships_exclude_from_evaluations",
        "committee_memberships",
        ["exclude_from_evaluations"],
        unique=False,
    )
    op.create_index(
        "ix_committee_memberships_employee_status",
        "committee_memberships",
        ["employee_id", "status"],
        unique=False,
    )

    op.create_table(
        "evaluation_templates",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("code", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("template_type", sa.String(length=64), nullable=True),
        sa.Column("population_target", sa.String(length=512), nullable=True),
        sa.Column("status", _status_enum("evaluation_template_status_enum", "Active", "Inactive"), nullable=False),
        sa.Column("validity_year", sa.Integer(), nullable=False),
        sa.Column("pass_threshold_percent", sa.Float(), nullable=False, server_default="60"),
        sa.Column("time_limit_minutes", sa.Integer(), nullable=True),
        sa.Column("max_attempts", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("randomize_questions", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("show_feedback", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_evaluation_templates_code", "evaluation_templates", ["code"], unique=False)
    op.create_index("ix_evaluation_templates_validity_year", "evaluation_templates", ["validity_year"], unique=False)
    op.create_index(
        "ix_evaluation_templates_status_year",
        "evaluation_templates",
        ["status", "validity_year"],
        unique=False,
    )

    op.create_table(
        "question_bank_items",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("question_type", sa.String(length=64), nullable=True),
        sa.Column("options_raw", sa.JSON(), nullable=True),
        sa.Column("correct_answer_raw", sa.Text(), nullable=True),
        sa.Column("explanation", sa.Text(), nullable=True),
    )

    op.create_table(
        "evaluation_template_questions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column(
            "template_id",
            sa.String(length=36),
            sa.ForeignKey("evaluation_templates.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "question_id",
            sa.String(length=36),
            sa.ForeignKey("question_bank_items.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("display_order", sa.Integer(), nullable=True),
        sa.Column("point_value", sa.Float(), nullable=False, server_default="0"),
        sa.Column("required", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index(
        "ix_evaluation_template_questions_template_id",
        "evaluation_template_questions",
        ["template_id"],
        unique=False,
    )
    op.create_index(
        "ix_evaluation_template_questions_question_id",
        "evaluation_template_questions",
        ["question_id"],
        unique=False,
    )

    op.create_table(
        "applied_evaluations",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("code", sa.String(length=32), nullable=False),
        sa.Column(
            "template_id",
            sa.String(length=36),
            sa.ForeignKey("evaluation_templates.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("employee_id", sa.String(length=64), nullable=False),
        sa.Column("employee_name", sa.String(length=255), nullable=True),
        sa.Column("document_id", sa.String(length=64), nullable=True),
        sa.Column("role_label", sa.String(length=255), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("score_obtained", sa.Float(), nullable=False, server_default="0"),
        sa.Column("score_max", sa.Float(), nullable=False, server_default="0"),
        sa.Column("percentage", sa.Float(), nullable=False, server_default="0"),
        sa.Column("status", _status_enum("applied_evaluation_status_enum", "Approved", "NotApproved"), nullable=False),
        sa.Column("attempt_number", sa.Integer(), nullable=True),
        sa.Column("training_scope_id", sa.String(length=64), nullable=True),
        sa.Column("time_spent_minutes", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_applied_evaluations_code", "applied_evaluations", ["code"], unique=False)
    op.create_index("ix_applied_evaluations_template_id", "applied_evaluations", ["template_id"], unique=False)
    op.create_index("ix_applied_evaluations_employee_id", "applied_evaluations", ["employee_id"], unique=False)
    op.create_index("ix_applied_evaluations_status", "applied_evaluations", ["status"], unique=False)
    op.create_index(
        "ix_applied_evaluations_training_scope_id",
        "applied_evaluations",
        ["training_scope_id"],
        unique=False,
    )
    op.create_index(
        "ix_applied_evaluations_employee_template",
        "applied_evaluations",
        ["employee_id", "template_id"],
        unique=False,
    )
    op.create_index(
        "ix_applied_evaluations_employee_status",
        "applied_evaluations",
        ["employee_id", "status"],
        unique=False,
    )

    op.create_table(
        "evaluation_answers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("code", sa.String(length=40), nullable=False),
        sa.Column(
            "evaluation_id",
            sa.String(length=36),
            sa.ForeignKey("applied_evaluations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("question_id", sa.String(length=36), nullable=False),
        sa.Column("link_id", sa.Integer(), nullable=True),
        sa.Column("answer_given", sa.Text(), nullable=True),
        sa.Column("is_correct", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("points_awarded", sa.Float(), nullable=False, server_default="0"),
        sa.Column("time_spent_seconds", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("presented_order", sa.Integer(), nullable=True),
    )
    op.create_index("ix_evaluation_answers_evaluation_id", "evaluation_answers", ["evaluation_id"], unique=False)
    op.create_index("ix_evaluation_answers_question_id", "evaluation_answers", ["question_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_evaluation_answers_question_id", table_name="evaluation_answers")
    op.drop_index("ix_evaluation_answers_evaluation_id", table_name="evaluation_answers")
    op.drop_table("evaluation_answers")

    op.drop_index("ix_applied_evaluations_employee_status", table_name="applied_evaluations")
    op.drop_index("ix_applied_evaluations_employee_template", table_name="applied_evaluations")
    op.drop_index("ix_applied_evaluations_training_scope_id", table_name="applied_evaluations")
    op.drop_index("ix_applied_evaluations_status", table_name="applied_evaluations")
    op.drop_index("ix_applied_evaluations_employee_id", table_name="applied_evaluations")
    op.drop_index("ix_applied_evaluations_template_id", table_name="applied_evaluations")
    op.drop_index("ix_applied_evaluations_code", table_name="applied_evaluations")
    op.drop_table("applied_evaluations")

    op.drop_index("ix_evaluation_template_questions_question_id", table_name="evaluation_template_questions")
    op.drop_index("ix_evaluation_template_questions_template_id", table_name="evaluation_template_questions")
    op.drop_table("evaluation_template_questions")

    op.drop_table("question_bank_items")

    op.drop_index("ix_evaluation_templates_status_year", table_name="evaluation_templates")
    op.drop_index("ix_evaluation_templates_validity_year", table_name="evaluation_templates")
    op.drop_index("ix_evaluation_templates_code", table_name="evaluation_templates")
    op.drop_table("evaluation_templates")

    op.drop_index("ix_committee_memberships_employee_status", table_name="committee_memberships")
    op.drop_index("ix_committee_memberships_exclude_from_evaluations", table_name="committee_memberships")
    op.drop_index("ix_committee_memberships_employee_id", table_name="committee_memberships")
    op.drop_table("committee_memberships")
