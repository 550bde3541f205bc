"""
geocoding/postal.py — Canadian postal code extraction and normalization.

LMIA addresses are free text ("215 Water Street, St. John's, NL A1C 6C9").
The postal code is the first LETTER DIGIT LETTER [space] DIGIT LETTER DIGIT
token found in the string. There is no validation against a real FSA
table, so an incidental alphanumeric run such as a unit number "K1A0A6B"
would also match; that is an accepted limitation.

Usage:
    from lmia_pipeline.geocoding.postal import extract_postal_code, display_form

    extract_postal_code("215 Water Street, St. John's, NL A1C 6C9")  # "A1C6C9"
    extract_postal_code("no code here")                              # None
    display_form("A1C6C9")                                           # "A1C 6C9"
"""

from __future__ import annotations

import re

# Uppercase only: LMIA files print postal codes in capitals, and matching
# lowercase would pick up ordinary words mixed with digits.
POSTAL_CODE_PATTERN = re.compile(r"[A-Z][0-9][A-Z] ?[0-9][A-Z][0-9]")

_CANONICAL_PATTERN = re.compile(r"[A-Z][0-9][A-Z][0-9][A-Z][0-9]")


def normalize_postal_code(code: str | None) -> str:
    """
    Canonical form: uppercase with all whitespace removed.

    Returns "" for None or blank input so callers can test truthiness.
    """
    if not code:
        return ""
    return re.sub(r"\s+", "", code).upper()


def is_canonical(code: str) -> bool:
    return bool(_CANONICAL_PATTERN.fullmatch(code))


def display_form(code: str) -> str:
    """`A1C6C9` -> `A1C 6C9`. Non-canonical input is returned normalized only."""
    canonical = normalize_postal_code(code)
    if not is_canonical(canonical):
        return canonical
    return f"{canonical[:3]} {canonical[3:]}"


def extract_postal_code(address: str | None) -> str | None:
    """
    Return the first postal code found in *address*, in canonical form.

    Returns None (not an error) when the address is empty or contains no
    postal code.
    """
    if not address:
        return None
    match = POSTAL_CODE_PATTERN.search(address)
    if match is None:
        return None
    return normalize_postal_code(match.group(0))


class PostalCodeExtractor:
    """Object wrapper around extract_postal_code for injection into pipelines."""

    def extract(self, address: str | None) -> str | None:
        return extract_postal_code(address)

    def normalize(self, code: str | None) -> str:
        return normalize_postal_code(code)

    def display(self, code: str) -> str:
        return display_form(code)
