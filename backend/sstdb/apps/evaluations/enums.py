# backend/sstdb/apps/evaluations/enums.py
from __future__ import annotations

import enum


class TemplateStatus(str, enum.Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class MembershipStatus(str, enum.Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class EvaluationStatus(str, enum.Enum):
    APPROVED = "Approved"
    NOT_APPROVED = "NotApproved"


class QuestionType(str, enum.Enum):
    SINGLE_CHOICE = "SingleChoice"
    MULTIPLE_CHOICE = "MultipleChoice"
    TRUE_FALSE = "TrueFalse"
    OPEN_TEXT = "OpenText"


# Labels written by the older Spanish-language question bank.
QUESTION_TYPE_ALIASES = {
    "Selección Única": QuestionType.SINGLE_CHOICE,
    "Selección Múltiple": QuestionType.MULTIPLE_CHOICE,
    "Verdadero/Falso": QuestionType.TRUE_FALSE,
    "Abierta": QuestionType.OPEN_TEXT,
}

POPULATION_ALL = "All"
LEGACY_POPULATION_ALL = "Todos los Colaboradores"
