"""
geo.py — Postal-code geography helpers.

Usage:
    from lmia_shared.geo import fsa_to_province_code, postal_code_province

    fsa_to_province_code("A1C")        # "10"
    postal_code_province("K1A0A6")     # "ON"
"""

from __future__ import annotations

from lmia_shared.constants import PROVINCE_ABBREVIATIONS

# The first letter of a Canadian postal code identifies the province.
_FSA_PROVINCE_MAP: dict[str, str] = {
    "A": "10",  # NL
    "B": "12",  # NS
    "C": "11",  # PE
    "E": "13",  # NB
    "G": "24",  # QC (eastern)
    "H": "24",  # QC (Montreal)
    "J": "24",  # QC (western)
    "K": "35",  # ON (eastern)
    "L": "35",  # ON (central)
    "M": "35",  # ON (Toronto)
    "N": "35",  # ON (southwestern)
    "P": "35",  # ON (northern)
    "R": "46",  # MB
    "S": "47",  # SK
    "T": "48",  # AB
    "V": "59",  # BC
    "X": "61",  # NT / NU
    "Y": "60",  # YT
}


def fsa_to_province_code(fsa: str) -> str | None:
    """
    Map a Forward Sortation Area prefix letter to a province SGC code.

    Returns None for empty input or a letter no province uses
    (D, F, I, O, Q, U, W, Z).
    """
    if not fsa:
        return None
    return _FSA_PROVINCE_MAP.get(fsa[0].upper())


def postal_code_province(postal_code: str) -> str | None:
    """Province abbreviation ("ON", "NL", ...) for a postal code, or None."""
    code = fsa_to_province_code(postal_code)
    if code is None:
        return None
    return PROVINCE_ABBREVIATIONS.get(code)
