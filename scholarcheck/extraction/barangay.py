"""Extractor for barangay certificates of residency."""

import re

from scholarcheck.utils.logger import get_logger

from .rules import (
    GIVEN_NAME_FIRST,
    SURNAME_FIRST_NAME,
    ExtractedFields,
    Pattern,
    first_match,
    name_filter,
    put,
)

logger = get_logger(__name__)

_HEADERS = re.compile(
    r"^(BARANGAY|REPUBLIC|PHILIPPINES|OFFICE|PUNONG|CAPTAIN|CHAIRMAN|KAGAWAD"
    r"|SECRETARY|TREASURER|LUPONG|TANOD|CERTIFICATE|CERTIFICATION|RESIDENCY)",
    re.IGNORECASE,
)

_NAME_PATTERNS: list[Pattern] = [
    (
        r"certify\s*that\s+(?:(?:MR|MS|MRS|MX)[.\s]+)?" + GIVEN_NAME_FIRST % 3,
        re.IGNORECASE,
    ),
    (r"\b(?:mr|ms|mrs|mx)[.\s]+" + GIVEN_NAME_FIRST % 3, re.IGNORECASE),
    (SURNAME_FIRST_NAME, 0),
]

_BARANGAY_PATTERNS: list[Pattern] = [
    (
        r"(?:resident|residing)\s*(?:of|at|in)\s*barangay\s*([A-Za-z \t]+?)(?:,|\n|$)",
        re.IGNORECASE,
    ),
    (
        r"(?:resident|residing)\s*(?:of|at|in)\s*(.+?)"
        r"(?:,\s*(?:city|municipality)|\.|\n|$)",
        re.IGNORECASE,
    ),
    (r"barangay\s+([A-Za-z \t]+?)(?:,|\n|$)", re.IGNORECASE),
]

_CITY_PATTERNS: list[Pattern] = [
    (r"(?:city|municipality)\s*of\s*([A-Za-z \t]+?)(?:,|\.|\n|$)", re.IGNORECASE),
]

_PROVINCE_PATTERNS: list[Pattern] = [
    (r"province\s*of\s*([A-Za-z \t]+?)(?:,|\.|\n|$)", re.IGNORECASE),
]


def _locality(raw: str) -> str | None:
    return raw if len(raw) > 2 else None


def extract_barangay(text: str | None) -> ExtractedFields:
    """Extract the resident's name and address from a barangay certificate.

    The ``address`` field is rebuilt as "barangay, city, province" from
    whichever parts were found; ``city`` and ``province`` are also kept
    on their own.
    """
    fields: ExtractedFields = {}
    if not text:
        return fields

    put(
        fields,
        "name",
        first_match(text, _NAME_PATTERNS, name_filter(headers=_HEADERS)),
    )
    barangay = first_match(text, _BARANGAY_PATTERNS, _locality)
    put(fields, "city", first_match(text, _CITY_PATTERNS))
    put(fields, "province", first_match(text, _PROVINCE_PATTERNS))

    parts = [
        part for part in (barangay, fields.get("city"), fields.get("province")) if part
    ]
    if parts:
        fields["address"] = ", ".join(parts)

    logger.debug("Barangay certificate extraction found %s", sorted(fields))
    return fields
