from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parent
sys.path.append(str(ROOT))

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["DATABASE_WRITE_URL"] = "sqlite+pysqlite:///:memory:"

from sstdb.database import Base  # noqa: E402
from sstdb.apps.evaluations import models as evaluation_models  # noqa: E402


@pytest.fixture()
def db_session():
    engine = create_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(
        bind=engine,
        tables=[
            evaluation_models.CommitteeMembership.__table__,
            evaluation_models.EvaluationTemplate.__table__,
            evaluation_models.QuestionBankItem.__table__,
            evaluation_models.TemplateQuestionLink.__table__,
            evaluation_models.AppliedEvaluation.__table__,
            evaluation_models.AnswerRecord.__table__,
        ],
    )
    TestingSession = sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
