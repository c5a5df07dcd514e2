from __future__ import annotations

import random
import string
from datetime import date
from typing import Optional


def _random_block(length: int = 8) -> str:
    """
    Return a random string of uppercase letters and digits.
    """
    alphabet = string.ascii_uppercase + string.digits
    return "".join(random.choices(alphabet, k=length))


def generate_record_id(prefix: str = "rec") -> str:
    """
    Generate a short record id like 'rec-1F2A9C3D4E5F6A7B'.

    Used as a SQLAlchemy column default, so it must work when called
    with zero positional arguments.
    """
    block = _random_block(16)
    if prefix:
        return f"{prefix}-{block}"
    return block


def generate_evaluation_code(today: Optional[date] = None) -> str:
    """Human code for an applied evaluation: EVAL-YYYYMMDD-XXXX."""
    today = today or date.today()
    return f"EVAL-{today:%Y%m%d}-{_random_block(4)}"


def generate_answer_code(evaluation_code: str, index: int) -> str:
    """
    Human code for one answer of an evaluation.

    `EVAL-20260301-AB12` with index 7 gives `RESP-20260301-AB12-007`.
    `index` is 1-based across the whole submission, not per batch.
    """
    suffix = evaluation_code.replace("EVAL-", "", 1)
    return f"RESP-{suffix}-{index:03d}"
