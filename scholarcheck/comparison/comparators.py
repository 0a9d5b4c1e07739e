"""Field comparators between extracted document facts and the applicant snapshot.

Each comparator returns a ``FieldComparisonResult`` or ``None`` when
either side of the comparison is missing. Severity is a pure function
of the comparison metric; ``match`` is true only for verified results.
"""

import re
from typing import Any

from scholarcheck.utils.logger import get_logger
from scholarcheck.verification.models import (
    ApplicantSnapshot,
    FieldComparisonResult,
    Severity,
)

from .fuzzy import fuzzy_match, normalize
from .institutions import InstitutionDirectory, get_directory

logger = get_logger(__name__)

NAME_VERIFIED = 0.85
NAME_WARNING = 0.60
GWA_VERIFIED = 0.05
GWA_WARNING = 0.25
INCOME_VERIFIED = 0.10
INCOME_WARNING = 0.25
COLLEGE_THRESHOLD = 0.8
COURSE_THRESHOLD = 0.7
ADDRESS_THRESHOLD = 0.6

_NUMBER_SEPARATORS = re.compile(r"[\s\-\u2010-\u2015]")


def _missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _result(
    field: str,
    extracted: Any,
    expected: Any,
    severity: Severity,
    **metrics: float | None,
) -> FieldComparisonResult:
    return FieldComparisonResult(
        field=field,
        extracted=extracted,
        expected=expected,
        match=severity == Severity.VERIFIED,
        severity=severity,
        **metrics,
    )


def _tiered(value: float, verified: float, warning: float) -> Severity:
    if value <= verified:
        return Severity.VERIFIED
    if value <= warning:
        return Severity.WARNING
    return Severity.CRITICAL


def compare_name(
    extracted: Any, snapshot: ApplicantSnapshot
) -> FieldComparisonResult | None:
    """Compare a document name with the profile name.

    Scores the extracted value against "First Last", "Last First" and
    "Last, First" renderings of the profile and keeps the best.
    """
    first = (snapshot.first_name or "").strip()
    last = (snapshot.last_name or "").strip()
    if _missing(extracted) or not (first or last):
        return None

    expected = f"{first} {last}".strip()
    renderings = [expected, f"{last} {first}".strip(), f"{last}, {first}".strip(", ")]
    similarity = max(fuzzy_match(extracted, r) for r in renderings)

    if similarity >= NAME_VERIFIED:
        severity = Severity.VERIFIED
    elif similarity >= NAME_WARNING:
        severity = Severity.WARNING
    else:
        severity = Severity.CRITICAL

    return _result("name", extracted, expected, severity, similarity=round(similarity, 2))


def compare_student_number(
    extracted: Any, snapshot: ApplicantSnapshot
) -> FieldComparisonResult | None:
    """Exact comparison ignoring whitespace and hyphen or dash variants."""
    expected = snapshot.student_number
    if _missing(extracted) or _missing(expected):
        return None

    a = _NUMBER_SEPARATORS.sub("", str(extracted))
    b = _NUMBER_SEPARATORS.sub("", str(expected))
    severity = Severity.VERIFIED if a == b else Severity.CRITICAL
    return _result("student_number", extracted, expected, severity)


def compare_gwa(
    extracted: Any, snapshot: ApplicantSnapshot
) -> FieldComparisonResult | None:
    """Compare GWA by absolute difference, rounded to 4 decimal places."""
    expected = snapshot.gwa
    if _missing(extracted) or expected is None:
        return None

    difference = round(abs(float(extracted) - float(expected)), 4)
    severity = _tiered(difference, GWA_VERIFIED, GWA_WARNING)
    return _result(
        "gwa", extracted, expected, severity, difference=round(difference, 2)
    )


def compare_income(
    extracted: Any, snapshot: ApplicantSnapshot
) -> FieldComparisonResult | None:
    """Compare income by relative difference to the declared amount."""
    expected = snapshot.annual_family_income
    if _missing(extracted) or not expected:
        return None

    ratio = abs(float(extracted) - float(expected)) / float(expected)
    severity = _tiered(ratio, INCOME_VERIFIED, INCOME_WARNING)
    return _result(
        "annual_family_income",
        extracted,
        expected,
        severity,
        percent_difference=round(ratio * 100, 1),
    )


def compare_college(
    extracted: Any,
    snapshot: ApplicantSnapshot,
    directory: InstitutionDirectory | None = None,
) -> FieldComparisonResult | None:
    """Compare college names or codes with abbreviation awareness.

    A direct fuzzy match is tried first. Failing that, both sides are
    resolved through the institution directory and compared by code or
    full name, and finally a resolved full name contained in the other
    side counts as a match. Never critical.

    Args:
        extracted: College as printed on the document.
        snapshot: Applicant snapshot.
        directory: Abbreviation directory. Defaults to the process-wide one.

    Returns:
        Comparison result, or ``None`` when either side is missing.
    """
    expected = snapshot.college
    if _missing(extracted) or _missing(expected):
        return None

    extracted_key = normalize(extracted)
    expected_key = normalize(expected)
    if fuzzy_match(extracted_key, expected_key) >= COLLEGE_THRESHOLD:
        return _result("college", extracted, expected, Severity.VERIFIED)

    if directory is None:
        directory = get_directory()
    resolved_extracted = directory.resolve(extracted)
    resolved_expected = directory.resolve(expected)

    matched = False
    if resolved_extracted and resolved_expected:
        matched = resolved_extracted.code == resolved_expected.code
    elif resolved_extracted:
        matched = (
            fuzzy_match(resolved_extracted.full_name, expected_key) >= COLLEGE_THRESHOLD
            or fuzzy_match(resolved_extracted.code, expected_key) >= COLLEGE_THRESHOLD
        )
    elif resolved_expected:
        matched = (
            fuzzy_match(extracted_key, resolved_expected.full_name) >= COLLEGE_THRESHOLD
            or fuzzy_match(extracted_key, resolved_expected.code) >= COLLEGE_THRESHOLD
        )

    if not matched:
        if resolved_expected and resolved_expected.full_name in extracted_key:
            matched = True
        elif resolved_extracted and resolved_extracted.full_name in expected_key:
            matched = True

    severity = Severity.VERIFIED if matched else Severity.WARNING
    return _result("college", extracted, expected, severity)


def compare_course(
    extracted: Any,
    snapshot: ApplicantSnapshot,
    directory: InstitutionDirectory | None = None,
) -> FieldComparisonResult | None:
    """Compare degree programs by fuzzy similarity, then abbreviation lookup."""
    expected = snapshot.course
    if _missing(extracted) or _missing(expected):
        return None

    similarity = fuzzy_match(extracted, expected)
    matched = similarity >= COURSE_THRESHOLD
    if not matched:
        if directory is None:
            directory = get_directory()
        resolved_extracted = directory.resolve(extracted)
        resolved_expected = directory.resolve(expected)
        if resolved_extracted and resolved_expected:
            matched = resolved_extracted.code == resolved_expected.code
        elif resolved_extracted:
            matched = (
                fuzzy_match(resolved_extracted.full_name, expected) >= COURSE_THRESHOLD
            )
        elif resolved_expected:
            matched = (
                fuzzy_match(extracted, resolved_expected.full_name) >= COURSE_THRESHOLD
            )

    severity = Severity.VERIFIED if matched else Severity.WARNING
    return _result(
        "course", extracted, expected, severity, similarity=round(similarity, 2)
    )


def compare_address(
    extracted: Any, snapshot: ApplicantSnapshot
) -> FieldComparisonResult | None:
    """Compare an address against the full address or its barangay and city."""
    address = snapshot.home_address
    if _missing(extracted) or address is None:
        return None

    expected = address.full_address or ", ".join(
        part
        for part in (address.street, address.barangay, address.city, address.province)
        if part
    )
    if not expected:
        return None

    similarity = fuzzy_match(extracted, expected)
    extracted_key = normalize(extracted)
    contains_part = any(
        part and normalize(part) and normalize(part) in extracted_key
        for part in (address.barangay, address.city)
    )

    matched = similarity >= ADDRESS_THRESHOLD or contains_part
    severity = Severity.VERIFIED if matched else Severity.WARNING
    return _result(
        "address", extracted, expected, severity, similarity=round(similarity, 2)
    )


def compare_fields(
    extracted: dict[str, Any],
    snapshot: ApplicantSnapshot,
    directory: InstitutionDirectory | None = None,
) -> list[FieldComparisonResult]:
    """Compare every comparable extracted field with the snapshot.

    Results follow a fixed order: name, student number, GWA, college,
    course, annual family income, address. Fields missing on either side
    are left out.

    Args:
        extracted: Fields produced by the extractor registry.
        snapshot: Applicant snapshot to compare against.
        directory: Abbreviation directory for college and course lookups.

    Returns:
        Ordered comparison results.
    """
    candidates = [
        compare_name(extracted.get("name"), snapshot),
        compare_student_number(extracted.get("student_number"), snapshot),
        compare_gwa(extracted.get("gwa"), snapshot),
        compare_college(extracted.get("college"), snapshot, directory),
        compare_course(extracted.get("course"), snapshot, directory),
        compare_income(extracted.get("income"), snapshot),
        compare_address(extracted.get("address"), snapshot),
    ]
    results = [r for r in candidates if r is not None]
    logger.debug(
        "Compared %d fields: %s",
        len(results),
        ", ".join(f"{r.field}={r.severity}" for r in results) or "none",
    )
    return results
