"""Fallback extractor for documents without a specialized layout.

Looks for the handful of facts that appear on most institutional
paperwork: a student number, a name, a GWA, a peso amount, and a college
code. Also fills gaps left by the type-specific extractors.
"""

import re

from scholarcheck.utils.logger import get_logger

from .rules import (
    CAPITALS_LINE,
    COLLEGE_CODE,
    GIVEN_NAME_FIRST,
    SURNAME_FIRST_NAME,
    ExtractedFields,
    Pattern,
    extract_student_number,
    first_match,
    name_filter,
    parse_gwa,
    parse_income,
    put,
)

logger = get_logger(__name__)

_HEADERS = re.compile(
    r"^(UNIVERSITY|PHILIPPINES|LOS\sBAN|UPLB|COLLEGE|INSTITUTE|DEPARTMENT|OFFICE"
    r"|REGISTRAR|CERTIFICATE|REPUBLIC|BARANGAY"
    r"|(?:BUREAU|INTERNAL|REVENUE|FINANCE|ANNUAL|TAX|RETURN|INCOME|EMPLOYMENT)\b)",
    re.IGNORECASE,
)

_LABELLED_NAME_PATTERNS: list[Pattern] = [
    (r"\bname[:\s]+([A-Z][A-Za-z]+(?:[,\t ]+[A-Z][A-Za-z]+){1,4})", re.IGNORECASE),
    (
        r"(?:certify\s*that|certifies\s*that)\s+(?:(?:MR|MS|MRS|MX)[.\s]+)?"
        + GIVEN_NAME_FIRST % 3,
        re.IGNORECASE,
    ),
    (SURNAME_FIRST_NAME, 0),
]

# A bare line of capitals is only trusted when no other extractor ran
_NAME_PATTERNS: list[Pattern] = [*_LABELLED_NAME_PATTERNS, CAPITALS_LINE]

_GWA_PATTERNS: list[Pattern] = [
    (r"(?:\bGWA|general\s*weighted\s*average)[:\s]*(\d+\.\d+)", re.IGNORECASE),
]

_MONEY_PATTERNS: list[Pattern] = [
    (r"(?:PHP?|₱)\s*([\d,]+(?:\.\d{2})?)", re.IGNORECASE),
]

_COLLEGE_PATTERNS: list[Pattern] = [(COLLEGE_CODE, re.IGNORECASE)]


def extract_generic(text: str | None, gap_fill: bool = False) -> ExtractedFields:
    """Extract commonly printed fields from any document.

    Args:
        text: Preprocessed OCR text.
        gap_fill: Set when the result only fills fields a type-specific
            extractor missed. Unlabelled capitals lines, which on such
            documents are usually agency or form headings, are then not
            taken as the name.

    Returns:
        Mapping with any of ``student_number``, ``name``, ``gwa``,
        ``income`` and ``college``. Empty when nothing recognizable
        is found.
    """
    fields: ExtractedFields = {}
    if not text:
        return fields

    put(fields, "student_number", extract_student_number(text, hyphenless=True))
    put(
        fields,
        "name",
        first_match(
            text,
            _LABELLED_NAME_PATTERNS if gap_fill else _NAME_PATTERNS,
            name_filter(headers=_HEADERS),
        ),
    )
    put(fields, "gwa", first_match(text, _GWA_PATTERNS, parse_gwa))
    put(fields, "income", first_match(text, _MONEY_PATTERNS, parse_income))
    put(fields, "college", first_match(text, _COLLEGE_PATTERNS))

    logger.debug("Generic extraction found %s", sorted(fields))
    return fields
