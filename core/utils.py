"""Utility functions for fillbox application."""

import re
import uuid
from datetime import datetime, timezone

from .config import MODE_WORDS, MODE_NUMBERS, MODE_LETTERS


def normalize_entry(mode: str, raw: str) -> str:
    """Filter raw learner input according to the practice mode.

    WORDS keeps uppercase letters, NUMBERS keeps digits, LETTERS keeps a
    single uppercase letter.
    """
    raw = raw or ''
    if mode == MODE_NUMBERS:
        return re.sub(r'[^0-9]', '', raw)
    value = re.sub(r'[^A-Z]', '', raw.upper())
    if mode == MODE_LETTERS:
        return value[:1]
    if mode == MODE_WORDS:
        return value
    raise ValueError(f"Unknown mode: {mode}")


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> str:
    """Current time as an ISO-8601 UTC string."""
    return datetime.now(timezone.utc).isoformat()
