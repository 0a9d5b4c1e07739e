"""Extractors for identification cards and proofs of employment.

ID cards print the holder's name in capitals, often surname first, and
carry little else that OCR can read reliably.
"""

import re

from scholarcheck.utils.logger import get_logger

from .rules import (
    CAPITALS_LINE,
    COLLEGE_CODE,
    SURNAME_FIRST_NAME,
    ExtractedFields,
    Pattern,
    first_match,
    min_length,
    name_filter,
    parse_student_number,
    put,
)

logger = get_logger(__name__)

_PARTICLES = r"(?:DE(?: LA)?|DEL|DELOS|DELA|SAN|SANTA|STO|STA)"

_STUDENT_HEADERS = re.compile(
    r"^(UNIVERSITY|STUDENT|COLLEGE|REPUBLIC|PHILIPPINES|LOS\s*BANOS)", re.IGNORECASE
)

_EMPLOYEE_HEADERS = re.compile(
    r"^(UNIVERSITY|EMPLOYEE|COLLEGE|REPUBLIC|PHILIPPINES|LOS\s*BANOS|OFFICE|DEPARTMENT)",
    re.IGNORECASE,
)

_STUDENT_NUMBER_PATTERNS: list[Pattern] = [
    (r"student\s*(?:no|number|#|id)[.:\s]*(\d{4}[-\s]?\d{5,6})", re.IGNORECASE),
    (r"\b(?:id|no)[.:\s]*(\d{4}[-\s]?\d{5,6})", re.IGNORECASE),
    (r"(\d{4}-\d{5,6})", 0),
    (r"\b(20\d{2}\d{5,6})\b", 0),
]

_STUDENT_NAME_PATTERNS: list[Pattern] = [
    (
        r"\bname[:\s]+([A-Za-z][A-Za-z \t.,'-]+?)(?:\n|$)",
        re.IGNORECASE | re.MULTILINE,
    ),
    (
        r"([A-Z][A-Z ]{1,}" + _PARTICLES + r"?[A-Z ]*,[ ]*[A-Z][A-Za-z .]+?)(?:\n|$)",
        re.MULTILINE,
    ),
    CAPITALS_LINE,
    (SURNAME_FIRST_NAME, 0),
]

_STUDENT_COLLEGE_PATTERNS: list[Pattern] = [
    (COLLEGE_CODE, re.IGNORECASE),
    (r"college\s+of\s+([A-Za-z \t&]+?)(?:\n|$|,)", re.IGNORECASE),
    (r"college[:\s]+([^\n]+)", re.IGNORECASE),
]

_STUDENT_COURSE_PATTERNS: list[Pattern] = [
    (r"\b(?:course|program|degree)[:\s]+([A-Za-z \t.]+?)(?:\n|$)", re.IGNORECASE),
    (r"\b(?:BS|BA|AB|MS|MA|PhD)\s+(?:in\s+)?([A-Za-z \t]+?)(?:\n|$)", re.IGNORECASE),
    (r"\b(BS[A-Z]{1,4}|BA[A-Z]{1,4}|AB[A-Z]{1,4})\b", 0),
]

_EMPLOYEE_NAME_PATTERNS: list[Pattern] = [
    (r"\bname[:\s]+([A-Za-z][A-Za-z \t.,'-]+)", re.IGNORECASE),
    (
        r"(?:certify|certifies)\s+that\s+(?:mr|ms|mrs|mx|prof|dr)[.\s]+"
        r"([A-Z][A-Za-z \t.,'-]+?)(?:\s+is|\s+has|\s*,)",
        re.IGNORECASE,
    ),
    (r"([A-Z][A-Z \t]*" + _PARTICLES + r"?[A-Z \t]*,\s*[A-Z][A-Za-z \t.]+)", 0),
    CAPITALS_LINE,
]

_EMPLOYEE_ID_PATTERNS: list[Pattern] = [
    (r"employee\s*(?:no|number|#|id)[.:\s]*([\w-]+)", re.IGNORECASE),
    (r"\b(?:emp|staff)\s*(?:no|id)[.:\s]*([\w-]+)", re.IGNORECASE),
]

_POSITION_PATTERNS: list[Pattern] = [
    (r"(?:position|designation|rank)[:\s]+([A-Za-z \t]+?)(?:\n|$)", re.IGNORECASE),
    (
        r"\b(?:as|is\s+a|is\s+an|is\s+the)\s+([A-Za-z \t]+?)(?:\s+(?:of|at|in)\s)",
        re.IGNORECASE,
    ),
]

_EMPLOYEE_COLLEGE_PATTERNS: list[Pattern] = [
    (COLLEGE_CODE, re.IGNORECASE),
    (r"college\s+of\s+([A-Za-z \t&]+?)(?:\n|$|,)", re.IGNORECASE),
    (
        r"\b(?:department|dept|institute|office)\s+(?:of\s+)?([A-Za-z \t&]+?)(?:\n|$|,)",
        re.IGNORECASE,
    ),
    (r"\b(ICS|IMSP|INSTAT|IC|IH|DHUM|DBT|DCS|DAEcon|DPSM)\b", re.IGNORECASE),
]


def _single_line(raw: str) -> str:
    return raw.split("\n", 1)[0].strip()


def _employee_name(raw: str) -> str | None:
    return name_filter(min_length=4, headers=_EMPLOYEE_HEADERS)(_single_line(raw))


def extract_student_id(text: str | None) -> ExtractedFields:
    """Extract student number, name, college, and course from a student ID."""
    fields: ExtractedFields = {}
    if not text:
        return fields

    put(
        fields,
        "student_number",
        first_match(text, _STUDENT_NUMBER_PATTERNS, parse_student_number),
    )
    put(
        fields,
        "name",
        first_match(
            text,
            _STUDENT_NAME_PATTERNS,
            name_filter(min_length=4, headers=_STUDENT_HEADERS),
        ),
    )
    put(fields, "college", first_match(text, _STUDENT_COLLEGE_PATTERNS))
    put(fields, "course", first_match(text, _STUDENT_COURSE_PATTERNS, min_length(2)))

    logger.debug("Student ID extraction found %s", sorted(fields))
    return fields


def extract_employee_id(text: str | None) -> ExtractedFields:
    """Extract holder name, employee number, position, and unit.

    Used for employee ID cards and certificates of employment.
    """
    fields: ExtractedFields = {}
    if not text:
        return fields

    put(fields, "name", first_match(text, _EMPLOYEE_NAME_PATTERNS, _employee_name))
    put(fields, "employee_id", first_match(text, _EMPLOYEE_ID_PATTERNS))
    put(fields, "position", first_match(text, _POSITION_PATTERNS, min_length(3)))
    put(fields, "college", first_match(text, _EMPLOYEE_COLLEGE_PATTERNS))

    logger.debug("Employee ID extraction found %s", sorted(fields))
    return fields
