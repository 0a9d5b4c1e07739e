"""Extractor for certificates of registration and proofs of enrollment."""

import re

from scholarcheck.utils.logger import get_logger

from .rules import (
    COLLEGE_CODE,
    SURNAME_FIRST_NAME,
    ExtractedFields,
    Pattern,
    extract_student_number,
    first_match,
    min_length,
    name_filter,
    parse_units,
    put,
)

logger = get_logger(__name__)

# Form labels that sit next to "College:" on registration forms.
_FORM_LABELS = re.compile(
    r"^(program|term|course|degree|year|level|semester|sy|units?|section|schedule"
    r"|status|name|student|date|classification|enrolled|total)$",
    re.IGNORECASE,
)

_NAME_PATTERNS: list[Pattern] = [
    (r"student\s*name[:\s]+([^\n]+?)(?:\n|$)", re.IGNORECASE),
    (r"\bname[:\s]+([A-Z][A-Za-z]+(?:[,\t ]+[A-Z][A-Za-z]+){1,3})", re.IGNORECASE),
    (SURNAME_FIRST_NAME, 0),
]

_COLLEGE_PATTERNS: list[Pattern] = [
    (COLLEGE_CODE, re.IGNORECASE),
    (r"college[:\s]+([^\n]+)", re.IGNORECASE),
    (r"college\s+of\s+[A-Za-z \t&]+", re.IGNORECASE),
]

_COURSE_PATTERNS: list[Pattern] = [
    (r"degree\s*program[:\s]+([A-Za-z \t.]+?)(?:\n|$)", re.IGNORECASE),
    (r"\b(?:BS|BA|AB|MS|MA|PhD)\s+([A-Za-z \t]+?)(?:\n|$)", re.IGNORECASE),
    (r"\bcourse[:\s]+([A-Za-z \t.]+?)(?:\n|$)", re.IGNORECASE),
]

_UNITS_PATTERNS: list[Pattern] = [
    (r"(?:total\s*)?(?:enrolled\s*)?units[:\s]*(\d+(?:\.\d)?)", re.IGNORECASE),
    (r"units\s*enrolled[:\s]*(\d+(?:\.\d)?)", re.IGNORECASE),
    (r"(\d+(?:\.\d)?)\s*units?\s*enrolled", re.IGNORECASE),
]

_CLASSIFICATION_PATTERNS: list[Pattern] = [
    (r"classification[:\s]*(freshman|sophomore|junior|senior)", re.IGNORECASE),
    (
        r"year\s*(?:level)?[:\s]*(1st|2nd|3rd|4th|5th|first|second|third|fourth|fifth)",
        re.IGNORECASE,
    ),
]


def _not_a_label(raw: str) -> str | None:
    return None if _FORM_LABELS.match(raw) else raw


def extract_registration(text: str | None) -> ExtractedFields:
    """Extract enrollment facts from a certificate of registration.

    Args:
        text: Preprocessed OCR text.

    Returns:
        Mapping with any of ``student_number``, ``name``, ``college``,
        ``course``, ``units_enrolled`` and ``classification``.
    """
    fields: ExtractedFields = {}
    if not text:
        return fields

    put(fields, "student_number", extract_student_number(text))
    put(fields, "name", first_match(text, _NAME_PATTERNS, name_filter()))
    put(fields, "college", first_match(text, _COLLEGE_PATTERNS, _not_a_label))
    put(fields, "course", first_match(text, _COURSE_PATTERNS, min_length(3)))
    put(fields, "units_enrolled", first_match(text, _UNITS_PATTERNS, parse_units))
    put(fields, "classification", first_match(text, _CLASSIFICATION_PATTERNS))

    logger.debug("Registration extraction found %s", sorted(fields))
    return fields
