"""
geocoding/sanitize.py — Single-pass cleanup of free-text cache fields.

Sample addresses and employers are persisted in a semicolon-delimited,
never-quoted table. Every value passes through sanitize_field() exactly
once before it is written:

  1. ';' becomes ',' and '"' is dropped, so a row always has five fields
     and never carries quote artifacts
  2. whitespace runs (including newlines) collapse to one space, ends trimmed
  3. length is capped at MAX_SAMPLE_FIELD_LENGTH
  4. an exact whole-string duplicate ("ab" + "ab", or "ab" + " " + "ab")
     is collapsed to one copy
  5. an empty result becomes "Unknown"

No step can grow its input.
"""

from __future__ import annotations

import re

from lmia_shared.constants import (
    CACHE_DELIMITER,
    MAX_SAMPLE_FIELD_LENGTH,
    UNKNOWN_PLACEHOLDER,
)

_WHITESPACE = re.compile(r"\s+")


def collapse_exact_duplicate(value: str) -> str:
    """
    Collapse `s == half + half` or `s == half + " " + half` to `half`.

    Repeats until the value is no longer an exact duplicate, so "x x x x"
    becomes "x x" and then "x". Partial repeats are left alone.

    Names that are genuinely one word repeated, such as "Walla Walla", are
    collapsed as well. That loss is accepted to clean the "text text"
    fields that older writers produced.
    """
    while value:
        n = len(value)
        if n % 2 == 0 and value[: n // 2] == value[n // 2 :]:
            value = value[: n // 2]
            continue
        if n % 2 == 1 and n >= 3 and value[n // 2] == " ":
            left, right = value[: n // 2], value[n // 2 + 1 :]
            if left and left == right:
                value = left
                continue
        break
    return value


def sanitize_field(value: str | None, *, max_length: int = MAX_SAMPLE_FIELD_LENGTH) -> str:
    """Clean one free-text cache field. Never returns an empty string."""
    if value is None:
        return UNKNOWN_PLACEHOLDER
    text = value.replace(CACHE_DELIMITER, ",").replace('"', "")
    text = _WHITESPACE.sub(" ", text).strip()
    if len(text) > max_length:
        text = text[:max_length].rstrip()
    text = collapse_exact_duplicate(text).strip()
    return text or UNKNOWN_PLACEHOLDER


def unquote(value: str) -> str:
    """Drop CSV quote characters that older writers left around key fields."""
    return value.replace('"', "").strip()


def sanitize_coordinate(value: str | float | None) -> str:
    """Coordinates are stored as plain decimal strings with no spaces."""
    if value is None:
        return ""
    return str(value).strip()
