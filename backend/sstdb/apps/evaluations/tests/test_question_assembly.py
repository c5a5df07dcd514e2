from __future__ import annotations

import json
import random
from datetime import date

import pytest

from sstdb.apps.evaluations import models, services


def _create_template(db, **overrides):
    template = models.EvaluationTemplate(
        code=overrides.pop("code", "EV-QA"),
        name="Uso de EPP",
        validity_year=date.today().year,
        **overrides,
    )
    db.add(template)
    db.commit()
    return template


def _add_question(db, template, *, text, order=None, points=10, question_type=None, options=None, correct=None):
    item = models.QuestionBankItem(
        text=text,
        question_type=question_type,
        options_raw=options,
        correct_answer_raw=correct,
        explanation=f"Explicación de {text}",
    )
    db.add(item)
    db.flush()
    link = models.TemplateQuestionLink(
        template_id=template.id,
        question_id=item.id,
        order=order,
        point_value=points,
        required=True,
    )
    db.add(link)
    db.commit()
    return link


def test_unknown_template_raises_not_found(db_session):
    with pytest.raises(services.TemplateNotFound):
        services.assemble_template(db_session, template_id="rec-missing")


def test_blank_template_id_is_invalid(db_session):
    with pytest.raises(services.InvalidEvaluationRequest):
        services.assemble_template(db_session, template_id=" ")


def test_questions_are_sorted_by_order_with_stable_ties(db_session):
    template = _create_template(db_session)
    third = _add_question(db_session, template, text="Q3", order=3)
    first_tie = _add_question(db_session, template, text="Q1a", order=1)
    second_tie = _add_question(db_session, template, text="Q1b", order=1)
    unordered = _add_question(db_session, template, text="Q0", order=None)

    result = services.assemble_template(db_session, template_id=template.id)

    assert [q.id for q in result.questions] == [unordered.id, first_tie.id, second_tie.id, third.id]
    assert [q.text for q in result.questions] == ["Q0", "Q1a", "Q1b", "Q3"]


def test_missing_order_falls_back_to_position(db_session):
    template = _create_template(db_session)
    _add_question(db_session, template, text="Q0", order=None)

    (question,) = services.assemble_template(db_session, template_id=template.id).questions

    assert question.order == 1


def test_keyed_options_are_shown_as_text_and_answers_mapped(db_session):
    template = _create_template(db_session)
    options = [{"key": "A", "text": "Uno"}, {"key": "B", "text": "Dos"}]
    _add_question(db_session, template, text="single", order=1, options=options, correct="B")
    _add_question(
        db_session,
        template,
        text="multi",
        order=2,
        question_type="Selección Múltiple",
        options=json.dumps(options),
        correct='["A","B"]',
    )

    single, multi = services.assemble_template(db_session, template_id=template.id).questions

    assert single.options == ["Uno", "Dos"]
    assert single.correct_answer == "Dos"
    assert single.question_type == "SingleChoice"
    assert multi.question_type == "MultipleChoice"
    assert multi.correct_answer == '["Uno","Dos"]'


def test_true_false_question_answer_is_normalized(db_session):
    template = _create_template(db_session)
    _add_question(db_session, template, text="tf", question_type="Verdadero/Falso", correct="TRUE")

    (question,) = services.assemble_template(db_session, template_id=template.id).questions

    assert question.question_type == "TrueFalse"
    assert question.correct_answer == "Verdadero"


def test_unparseable_options_become_single_option(db_session):
    template = _create_template(db_session)
    _add_question(db_session, template, text="legacy", options="A) Casco B) Guantes", correct="A")

    (question,) = services.assemble_template(db_session, template_id=template.id).questions

    assert question.options == ["A) Casco B) Guantes"]
    assert question.correct_answer == "A"


def test_link_without_bank_item_yields_empty_question(db_session):
    template = _create_template(db_session)
    link = models.TemplateQuestionLink(template_id=template.id, question_id=None, order=1, point_value=5)
    db_session.add(link)
    db_session.commit()

    (question,) = services.assemble_template(db_session, template_id=template.id).questions

    assert question.id == link.id
    assert question.text == ""
    assert question.options == []
    assert question.point_value == 5


def test_template_fields_use_defaults_when_unset(db_session):
    template = _create_template(db_session, time_limit_minutes=None)

    result = services.assemble_template(db_session, template_id=template.id)

    assert result.template.pass_threshold_percent == 60
    assert result.template.time_limit_minutes == 0
    assert result.template.attempts_allowed == 1
    assert result.template.randomize_questions is False
    assert result.questions == []


def test_randomized_template_keeps_the_same_questions(db_session):
    template = _create_template(db_session, randomize_questions=True)
    links = [_add_question(db_session, template, text=f"Q{i}", order=i) for i in range(1, 9)]

    first = services.assemble_template(db_session, template_id=template.id, rng=random.Random(1))
    second = services.assemble_template(db_session, template_id=template.id, rng=random.Random(2))

    expected = sorted(link.id for link in links)
    assert sorted(q.id for q in first.questions) == expected
    assert sorted(q.id for q in second.questions) == expected
    assert len(first.questions) == len(links)
    assert first.template.randomize_questions is True


def test_more_questions_than_one_store_batch_are_all_resolved(db_session):
    template = _create_template(db_session)
    for i in range(1, 24):
        _add_question(db_session, template, text=f"Q{i}", order=i)

    questions = services.assemble_template(db_session, template_id=template.id).questions

    assert len(questions) == 23
    assert all(q.text for q in questions)


def test_camel_case_wire_names(db_session):
    template = _create_template(db_session)
    _add_question(db_session, template, text="Q1", order=1, options=["Sí", "No"], correct="Sí")

    payload = services.assemble_template(db_session, template_id=template.id).model_dump(by_alias=True)

    question = payload["questions"][0]
    assert question["type"] == "SingleChoice"
    assert question["correctAnswer"] == "Sí"
    assert question["pointValue"] == 10
    assert payload["template"]["passThresholdPercent"] == 60


def test_randomized_template_applies_the_rng_permutation(db_session):
    template = _create_template(db_session, randomize_questions=True)
    links = [_add_question(db_session, template, text=f"Q{i}", order=i) for i in range(1, 9)]
    canonical_ids = [link.id for link in links]

    result = services.assemble_template(db_session, template_id=template.id, rng=random.Random(7))

    shuffled_ids = [q.id for q in result.questions]
    assert shuffled_ids == random.Random(7).sample(canonical_ids, len(canonical_ids))
    assert shuffled_ids != canonical_ids


def test_fixed_order_template_ignores_the_rng(db_session):
    template = _create_template(db_session, randomize_questions=False)
    links = [_add_question(db_session, template, text=f"Q{i}", order=i) for i in range(1, 9)]

    result = services.assemble_template(db_session, template_id=template.id, rng=random.Random(7))

    assert [q.id for q in result.questions] == [link.id for link in links]
