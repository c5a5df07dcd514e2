from __future__ import annotations

import math

import pytest

from sstdb.apps.evaluations.normalization import (
    KeyedOptions,
    PlainOptions,
    UnparseableOptions,
    chunked,
    clean_identifier,
    normalize_correct_answer,
    parse_options,
    resolve_question_type,
    round_half_up,
)


def test_plain_option_list_from_json_string():
    options = parse_options('["Casco", "Guantes", "Botas"]')

    assert isinstance(options, PlainOptions)
    assert options.display == ["Casco", "Guantes", "Botas"]


def test_keyed_options_keep_order_and_map_keys():
    options = parse_options([{"key": "A", "text": "Uno"}, {"key": "B", "text": "Dos"}])

    assert isinstance(options, KeyedOptions)
    assert options.display == ["Uno", "Dos"]
    assert options.key_to_text == {"A": "Uno", "B": "Dos"}


def test_keyed_options_accept_legacy_texto_field():
    options = parse_options('[{"key": "A", "texto": "Extintor ABC"}, {"texto": "Sin clave"}]')

    assert isinstance(options, KeyedOptions)
    assert options.display == ["Extintor ABC", "Sin clave"]
    assert options.key_to_text == {"A": "Extintor ABC"}


@pytest.mark.parametrize("raw", ["Casco, Guantes", "{not json", '{"A": "Uno"}', "42"])
def test_malformed_options_degrade_to_single_unparseable_option(raw):
    options = parse_options(raw)

    assert isinstance(options, UnparseableOptions)
    assert options.display == [raw]


def test_missing_options_are_an_empty_plain_list():
    assert parse_options(None) == PlainOptions()
    assert parse_options("   ").display == []


def test_keyed_single_answer_maps_key_to_text():
    options = parse_options([{"key": "A", "text": "Uno"}, {"key": "B", "text": "Dos"}])

    assert normalize_correct_answer("B", options, "SingleChoice") == "Dos"


def test_keyed_multi_answer_maps_every_key():
    options = parse_options([{"key": "A", "text": "Uno"}, {"key": "B", "text": "Dos"}])

    assert normalize_correct_answer('["A","B"]', options, "MultipleChoice") == '["Uno","Dos"]'


def test_keyed_answer_falls_back_to_raw_key_when_unmapped():
    options = parse_options([{"key": "A", "text": "Uno"}])

    assert normalize_correct_answer("Z", options, "SingleChoice") == "Z"
    assert normalize_correct_answer('["A","Z"]', options, "MultipleChoice") == '["Uno","Z"]'


def test_keyed_multi_answer_that_is_not_json_is_kept():
    options = parse_options([{"key": "A", "text": "Uno"}])

    assert normalize_correct_answer("[A, B", options, "MultipleChoice") == "[A, B"


@pytest.mark.parametrize(
    "raw, expected",
    [("TRUE", "Verdadero"), ("true", "Verdadero"), ("no", "Falso"), ("false", "Falso"), (None, "Falso")],
)
def test_true_false_answers_are_binary(raw, expected):
    assert normalize_correct_answer(raw, PlainOptions(), "TrueFalse") == expected


def test_plain_and_unparseable_answers_pass_through():
    assert normalize_correct_answer("Guantes", parse_options('["Casco", "Guantes"]'), "SingleChoice") == "Guantes"
    assert normalize_correct_answer("B", parse_options("A) x B) y"), "SingleChoice") == "B"


def test_question_type_aliases_resolve_to_canonical_names():
    assert resolve_question_type("Verdadero/Falso") == "TrueFalse"
    assert resolve_question_type("Selección Múltiple") == "MultipleChoice"
    assert resolve_question_type(None) == "SingleChoice"
    assert resolve_question_type("Ordenamiento") == "Ordenamiento"


def test_round_half_up_matches_two_decimal_display():
    assert round_half_up(80) == 80.0
    assert round_half_up(66.665) == 66.67
    assert round_half_up(2 / 3 * 100) == 66.67


def test_chunked_splits_without_losing_items():
    assert list(chunked(list(range(25)), 10)) == [list(range(10)), list(range(10, 20)), list(range(20, 25))]
    with pytest.raises(ValueError):
        list(chunked([1], 0))


def test_clean_identifier_treats_blank_as_missing():
    assert clean_identifier("  EMP-1 ") == "EMP-1"
    assert clean_identifier("   ") is None
    assert clean_identifier(None) is None


def test_deeply_nested_options_degrade_instead_of_raising():
    raw = "[" * 100000

    options = parse_options(raw)

    assert isinstance(options, UnparseableOptions)
    assert options.display == [raw]


def test_deeply_nested_keyed_answer_is_returned_unchanged():
    options = parse_options([{"key": "A", "text": "Uno"}])
    raw = "[" * 100000

    assert normalize_correct_answer(raw, options, "MultipleChoice") == raw


def test_unknown_question_type_is_trimmed():
    question_type = resolve_question_type("TrueFalse ")

    assert question_type == "TrueFalse"
    assert normalize_correct_answer("true", PlainOptions(), question_type) == "Verdadero"
    assert resolve_question_type("   ") == "SingleChoice"


def test_round_half_up_handles_large_and_non_finite_values():
    assert round_half_up(1e30) == 1e30
    assert round_half_up(float("inf")) == float("inf")
    assert math.isnan(round_half_up(float("nan")))
