"""Extractors for academic records: transcripts and grade reports.

Both read the general weighted average (GWA), the student number, and the
student's name; transcripts additionally carry the college and degree
program.
"""

import re

from scholarcheck.utils.logger import get_logger

from .rules import (
    ACADEMIC_HEADERS,
    CAPITALS_LINE,
    COLLEGE_CODE,
    SURNAME_FIRST_NAME,
    ExtractedFields,
    Pattern,
    extract_student_number,
    first_match,
    min_length,
    name_filter,
    parse_gwa,
    put,
)

logger = get_logger(__name__)

_TRANSCRIPT_GWA_PATTERNS: list[Pattern] = [
    (r"general\s*weighted\s*average[:\s]*(\d+\.\d+)", re.IGNORECASE),
    (r"\bGWA[:\s]*(\d+\.\d+)", re.IGNORECASE),
    (r"cumulative\s*GWA[:\s]*(\d+\.\d+)", re.IGNORECASE),
    (r"weighted\s*average[:\s]*(\d+\.\d+)", re.IGNORECASE),
    (r"overall\s*average[:\s]*(\d+\.\d+)", re.IGNORECASE),
    (r"\bave(?:rage)?[:\s]*(\d\.\d{1,4})", re.IGNORECASE),
]

_GRADE_REPORT_GWA_PATTERNS: list[Pattern] = [
    (r"general\s*weighted\s*average[:\s]*(\d+\.\d+)", re.IGNORECASE),
    (r"\bGWA[:\s]*(\d+\.\d+)", re.IGNORECASE),
    (r"semester\s*(?:grade|average|GWA)[:\s]*(\d+\.\d+)", re.IGNORECASE),
    (r"weighted\s*average[:\s]*(\d+\.\d+)", re.IGNORECASE),
    (r"\baverage[:\s]*(\d\.\d{1,4})", re.IGNORECASE),
]

_LABELLED_NAME = r"([A-Z][A-Za-z]+(?:[,\t ]+[A-Z][A-Za-z]+){1,%d})"

_TRANSCRIPT_NAME_PATTERNS: list[Pattern] = [
    (r"\bname[:\s]+" + _LABELLED_NAME % 4, re.IGNORECASE),
    (r"\bstudent[:\s]+" + _LABELLED_NAME % 4, re.IGNORECASE),
    (SURNAME_FIRST_NAME, 0),
    CAPITALS_LINE,
]

_GRADE_REPORT_NAME_PATTERNS: list[Pattern] = [
    (r"\bname[:\s]+" + _LABELLED_NAME % 3, re.IGNORECASE),
    (r"\bstudent[:\s]+" + _LABELLED_NAME % 3, re.IGNORECASE),
    (SURNAME_FIRST_NAME, 0),
]

_COLLEGE_PATTERNS: list[Pattern] = [
    (r"college\s+of\s+([A-Za-z \t&]+?)(?:\n|$|degree)", re.IGNORECASE),
    (COLLEGE_CODE, re.IGNORECASE),
    (r"college[:\s]+([A-Za-z \t&]+?)(?:\n|$)", re.IGNORECASE),
]

_COURSE_PATTERNS: list[Pattern] = [
    (r"degree\s*(?:program)?[:\s]+([A-Za-z \t.]+?)(?:\n|$)", re.IGNORECASE),
    (r"\b(?:BS|BA|AB|MS|MA|PhD)\s+([A-Za-z \t]+?)(?:\n|$|major)", re.IGNORECASE),
    (r"\bcourse[:\s]+([A-Za-z \t.]+?)(?:\n|$)", re.IGNORECASE),
    (r"\bprogram[:\s]+([A-Za-z \t.]+?)(?:\n|$)", re.IGNORECASE),
]


def extract_transcript(text: str | None) -> ExtractedFields:
    """Extract fields from a transcript of records.

    Args:
        text: Preprocessed OCR text.

    Returns:
        Mapping with any of ``gwa``, ``student_number``, ``name``,
        ``college`` and ``course``.
    """
    fields: ExtractedFields = {}
    if not text:
        return fields

    put(fields, "gwa", first_match(text, _TRANSCRIPT_GWA_PATTERNS, parse_gwa))
    put(fields, "student_number", extract_student_number(text, hyphenless=True))
    put(
        fields,
        "name",
        first_match(
            text, _TRANSCRIPT_NAME_PATTERNS, name_filter(headers=ACADEMIC_HEADERS)
        ),
    )
    put(fields, "college", first_match(text, _COLLEGE_PATTERNS))
    put(fields, "course", first_match(text, _COURSE_PATTERNS, min_length(3)))

    logger.debug("Transcript extraction found %s", sorted(fields))
    return fields


def extract_grade_report(text: str | None) -> ExtractedFields:
    """Extract GWA, student number, and name from a grade report."""
    fields: ExtractedFields = {}
    if not text:
        return fields

    put(fields, "gwa", first_match(text, _GRADE_REPORT_GWA_PATTERNS, parse_gwa))
    put(fields, "student_number", extract_student_number(text))
    put(fields, "name", first_match(text, _GRADE_REPORT_NAME_PATTERNS, name_filter()))

    logger.debug("Grade report extraction found %s", sorted(fields))
    return fields
