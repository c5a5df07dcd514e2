# backend/sstdb/apps/evaluations/schemas.py
from __future__ import annotations

from typing import Annotated, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .enums import EvaluationStatus


class CamelModel(BaseModel):
    """Wire models speak camelCase; Python code may use either name."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Points and totals must be finite and non-negative; null means 0.
Score = Optional[Annotated[float, Field(ge=0, allow_inf_nan=False)]]

# ---------------------------------------------------------------------------
# Templates and pending list
# ---------------------------------------------------------------------------


class TemplateSummary(CamelModel):
    id: str
    code: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    template_type: Optional[str] = Field(default=None, alias="type")
    pass_threshold_percent: float = 60
    time_limit_minutes: int = 0
    attempts_allowed: int = 1


class PendingEvaluation(TemplateSummary):
    attempts_used: int = 0
    approved: bool = False
    available: bool = False


class PendingEvaluationsResponse(CamelModel):
    success: bool = True
    pending: list[PendingEvaluation] = Field(default_factory=list)


class TemplateRead(TemplateSummary):
    randomize_questions: bool = False
    show_feedback: bool = False


class QuestionRead(CamelModel):
    id: int
    source_id: Optional[str] = None
    order: int
    point_value: float = 0
    required: bool = False
    text: str = ""
    question_type: str = Field(alias="type")
    options: list[str] = Field(default_factory=list)
    correct_answer: str = ""
    explanation: str = ""


class TemplateExpansionResponse(CamelModel):
    success: bool = True
    template: TemplateRead
    questions: list[QuestionRead] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Submissions
# ---------------------------------------------------------------------------


class AnswerSubmission(CamelModel):
    question_id: str = Field(min_length=1)
    link_id: Optional[int] = None
    # Multi-select answers may be sent as a list or as its JSON encoding.
    answer_given: Optional[Union[str, list[str]]] = None
    is_correct: bool = False
    points_awarded: Score = 0
    time_spent_seconds: int = 0
    presented_order: Optional[int] = None


class SubmissionCreate(CamelModel):
    template_id: str
    employee_id: str
    employee_name: Optional[str] = None
    document_id: Optional[str] = None
    role_label: Optional[str] = None
    training_scope_id: Optional[str] = None
    answers: list[AnswerSubmission] = Field(default_factory=list)
    score_max: Score = 0
    time_spent_minutes: Optional[float] = None
    attempt_number: Optional[int] = Field(default=None, ge=1)


class SubmissionResult(CamelModel):
    success: bool = True
    evaluation_id: str
    score_obtained: float
    score_max: float
    percentage: float
    status: EvaluationStatus
    pass_threshold_percent: float


# ---------------------------------------------------------------------------
# Batch completion
# ---------------------------------------------------------------------------


class BatchCompletionRequest(CamelModel):
    employee_ids: list[str] = Field(default_factory=list)
    training_scope_ids: Optional[list[str]] = None
    year: Optional[int] = None


class BatchCompletionResponse(CamelModel):
    success: bool = True
    has_evaluations: bool
    results: dict[str, bool] = Field(default_factory=dict)
