# backend/sstdb/apps/evaluations/normalization.py
"""
Normalization of loosely-typed question-bank content.

The bank was authored in spreadsheets, so `options_raw` arrives in one of
three shapes and `correct_answer_raw` means different things depending on
that shape. Both are resolved once, here, into explicit types:

- `PlainOptions`      a list of option texts
- `KeyedOptions`      an ordered list of (key, text) pairs
- `UnparseableOptions` the original string kept as the sole option

Nothing in this module raises on bad input; malformed encodings degrade to
`UnparseableOptions` or pass through unchanged.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from decimal import Context, Decimal, ROUND_HALF_UP
from typing import Any, Iterator, Optional, Sequence, Union

from .enums import QUESTION_TYPE_ALIASES, QuestionType

TRUE_LABEL = "Verdadero"
FALSE_LABEL = "Falso"

_TEXT_KEYS = ("text", "texto")


@dataclass(frozen=True)
class PlainOptions:
    items: tuple[str, ...] = ()

    @property
    def display(self) -> list[str]:
        return list(self.items)


@dataclass(frozen=True)
class KeyedOptions:
    # key is None for entries that only carried text
    pairs: tuple[tuple[Optional[str], str], ...] = ()
    key_to_text: dict[str, str] = field(default_factory=dict, compare=False)

    @property
    def display(self) -> list[str]:
        return [text for _, text in self.pairs]


@dataclass(frozen=True)
class UnparseableOptions:
    raw: str

    @property
    def display(self) -> list[str]:
        return [self.raw]


OptionSet = Union[PlainOptions, KeyedOptions, UnparseableOptions]


def _text_of(item: dict) -> Optional[str]:
    for key in _TEXT_KEYS:
        value = item.get(key)
        if value is not None:
            return str(value)
    return None


def parse_options(options_raw: Any) -> OptionSet:
    """
    Resolve a raw options value into one of the three option variants.

    Accepts the JSON string stored by the authoring sheet or an already
    decoded list. Missing/empty input is an empty `PlainOptions`.
    """
    if options_raw is None:
        return PlainOptions()

    if isinstance(options_raw, str):
        stripped = options_raw.strip()
        if not stripped:
            return PlainOptions()
        try:
            decoded = json.loads(stripped)
        except (ValueError, RecursionError):
            return UnparseableOptions(options_raw)
        if not isinstance(decoded, list):
            return UnparseableOptions(options_raw)
    elif isinstance(options_raw, (list, tuple)):
        decoded = list(options_raw)
    else:
        return UnparseableOptions(str(options_raw))

    pairs: list[tuple[Optional[str], str]] = []
    key_to_text: dict[str, str] = {}
    for item in decoded:
        if isinstance(item, str):
            pairs.append((None, item))
            continue
        if isinstance(item, dict):
            text = _text_of(item)
            key = item.get("key")
            if key not in (None, "") and text:
                key_to_text[str(key)] = text
                pairs.append((str(key), text))
                continue
            if text is not None:
                pairs.append((None, text))
                continue
        pairs.append((None, "" if item is None else str(item)))

    if key_to_text:
        return KeyedOptions(pairs=tuple(pairs), key_to_text=key_to_text)
    return PlainOptions(items=tuple(text for _, text in pairs))


def resolve_question_type(raw_type: Optional[str]) -> str:
    """Canonical type name; unknown types pass through trimmed."""
    cleaned = (raw_type or "").strip()
    if not cleaned:
        return QuestionType.SINGLE_CHOICE.value
    alias = QUESTION_TYPE_ALIASES.get(cleaned)
    if alias is not None:
        return alias.value
    return cleaned


def normalize_correct_answer(
    correct_answer_raw: Optional[str],
    options: OptionSet,
    question_type: str,
) -> str:
    raw = "" if correct_answer_raw is None else str(correct_answer_raw)

    if question_type == QuestionType.TRUE_FALSE.value:
        return TRUE_LABEL if raw.strip().lower() == "true" else FALSE_LABEL

    if not isinstance(options, KeyedOptions):
        return raw

    mapping = options.key_to_text
    if raw.startswith("["):
        try:
            keys = json.loads(raw)
        except (ValueError, RecursionError):
            return raw
        if not isinstance(keys, list):
            return raw
        texts = [mapping.get(str(key), key) for key in keys]
        return json.dumps(texts, ensure_ascii=False, separators=(",", ":"))

    return mapping.get(raw, raw)


def round_half_up(value: float, places: int = 2) -> float:
    """Round to `places` decimals, half away from zero. NaN and infinities pass through."""
    number = Decimal(str(value))
    if not number.is_finite():
        return float(value)
    quantum = Decimal(1).scaleb(-places)
    # precision must cover every integer digit plus the kept decimals
    context = Context(prec=max(28, number.adjusted() + places + 2))
    return float(number.quantize(quantum, rounding=ROUND_HALF_UP, context=context))


def chunked(values: Sequence, size: int) -> Iterator[list]:
    """Yield consecutive slices of at most `size` items."""
    if size < 1:
        raise ValueError("chunk size must be positive")
    for start in range(0, len(values), size):
        yield list(values[start:start + size])


def clean_identifier(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
