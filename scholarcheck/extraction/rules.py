"""Shared regex heuristics and sanity filters for field extractors.

Every extractor describes each field as an ordered list of
``(regex, flags)`` candidates. ``first_match`` walks the list and returns
the first captured value that survives the field's sanity filter, so a
pattern that matches garbage falls through to the next candidate.
"""

import re
from collections.abc import Callable
from typing import Any

Pattern = tuple[str, int]
ExtractedFields = dict[str, Any]

GWA_MIN = 1.0
GWA_MAX = 5.0
INCOME_MIN = 1_000.0
INCOME_MAX = 50_000_000.0
UNITS_MIN = 1.0
UNITS_MAX = 30.0

_STUDENT_NUMBER_SHAPE = re.compile(r"^\d{4}-?\d{5,6}$")

COLLEGE_CODE = r"\b(CAS|CAFS|CEM|CEAT|CDC|CFNR|CHE|CVM|CPAF|SESAM|Graduate\s*School)\b"

FILIPINO_PARTICLES = r"(?:DE ?LA|DELA|DEL|DE LOS|DELOS|SAN|STA|SANTA|SANTO)"

# "DELA CRUZ, Juan P.", the registrar's surname-first layout, on one line
SURNAME_FIRST_NAME = (
    r"([A-Z]{2,}(?: " + FILIPINO_PARTICLES + r")?(?: [A-Z]{2,})*, *"
    r"[A-Z][a-z]+(?: [A-Z]\.?)?(?: [A-Z][a-z]+)*)"
)

# "Juan P. Dela Cruz"; meant for case-insensitive patterns
GIVEN_NAME_FIRST = r"([A-Z][A-Za-z]+(?:[ \t]+[A-Z]\.?)?(?:[ \t]+[A-Z][A-Za-z]+){1,%d})"

# Whole line of capitals such as "JUAN DELA CRUZ"
CAPITALS_LINE: Pattern = (r"^([A-Z]{2,}(?: [A-Z]{2,}){1,4})$", re.MULTILINE)

STUDENT_NUMBER_PATTERNS: list[Pattern] = [
    (r"student\s*(?:no|number|#|id)[.:\s]*(\d{4}[-\s]?\d{5,6})", re.IGNORECASE),
    (r"(\d{4}-\d{5,6})", 0),
]

# Hyphenless form such as 202203446.
HYPHENLESS_STUDENT_NUMBER: Pattern = (r"\b(20\d{2}\d{5,6})\b", 0)

_TRAILING_CONNECTIVES = re.compile(
    r"(?:\s+(?:is|has|was|who|a|an|the|of|and|with|from|residing|resident))+$",
    re.IGNORECASE,
)

ACADEMIC_HEADERS = re.compile(
    r"^(UNIVERSITY|PHILIPPINES|LOS\sBAN|UPLB|COLLEGE|INSTITUTE|DEPARTMENT|OFFICE"
    r"|REGISTRAR|TRANSCRIPT|RECORDS|ACADEMIC|PROGRAM|DEGREE|SEMESTER|CAMPUS)",
    re.IGNORECASE,
)


def first_match(
    text: str,
    patterns: list[Pattern],
    accept: Callable[[str], Any] | None = None,
) -> Any:
    """Return the first pattern capture that passes ``accept``.

    Args:
        text: Preprocessed OCR text.
        patterns: Ordered ``(regex, flags)`` candidates. The first group is
            used when the pattern has one, otherwise the whole match.
        accept: Converts a stripped capture into the stored value, or
            returns ``None`` to reject it. Defaults to the stripped text.

    Returns:
        The converted value, or ``None`` when no candidate survives.
    """
    if not text:
        return None
    for pattern, flags in patterns:
        match = re.search(pattern, text, flags)
        if not match:
            continue
        raw = match.group(1) if match.lastindex else match.group(0)
        value = raw.strip()
        if accept is not None:
            value = accept(value)
        if value is not None and value != "":
            return value
    return None


def parse_gwa(raw: str) -> float | None:
    """Accept a grade average on the 1.0 (best) to 5.0 (fail) scale."""
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if GWA_MIN <= value <= GWA_MAX else None


def parse_student_number(raw: str) -> str | None:
    """Accept an institutional id shaped like ``YYYY-NNNNN``."""
    compact = re.sub(r"\s", "", raw)
    return compact if _STUDENT_NUMBER_SHAPE.match(compact) else None


def parse_income(raw: str) -> float | None:
    """Accept a peso amount within a plausible annual income range."""
    try:
        value = float(raw.replace(",", ""))
    except ValueError:
        return None
    return value if INCOME_MIN <= value <= INCOME_MAX else None


def parse_units(raw: str) -> float | None:
    """Accept an enrolled-units count for one term."""
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if UNITS_MIN <= value <= UNITS_MAX else None


def name_filter(
    min_length: int = 5, headers: re.Pattern[str] | None = None
) -> Callable[[str], str | None]:
    """Build a filter rejecting short captures and header/label lines.

    Case-insensitive name patterns also swallow the verb that follows the
    name ("Juan Cruz is a resident..."), so trailing connectives are
    dropped before the length check.
    """

    def accept(raw: str) -> str | None:
        raw = _TRAILING_CONNECTIVES.sub("", raw).strip()
        if len(raw) <= min_length:
            return None
        if headers is not None and headers.match(raw):
            return None
        return raw

    return accept


def min_length(length: int) -> Callable[[str], str | None]:
    """Build a filter rejecting captures no longer than ``length``."""

    def accept(raw: str) -> str | None:
        return raw if len(raw) > length else None

    return accept


def extract_student_number(text: str, hyphenless: bool = False) -> str | None:
    patterns = list(STUDENT_NUMBER_PATTERNS)
    if hyphenless:
        patterns.append(HYPHENLESS_STUDENT_NUMBER)
    return first_match(text, patterns, parse_student_number)


def put(fields: ExtractedFields, name: str, value: Any) -> None:
    """Store ``value`` under ``name`` unless nothing was found."""
    if value is not None:
        fields[name] = value
