"""Extractor for income certificates and income tax returns."""

import re

from scholarcheck.utils.logger import get_logger

from .rules import (
    GIVEN_NAME_FIRST,
    SURNAME_FIRST_NAME,
    ExtractedFields,
    Pattern,
    first_match,
    min_length,
    name_filter,
    parse_income,
    put,
)

logger = get_logger(__name__)

PESO = r"(?:PHP?|₱)"
AMOUNT = r"([\d,]+(?:\.\d{2})?)"

_NAME_PATTERNS: list[Pattern] = [
    (
        r"(?:\bname[:\s]|certify\s*that|this\s*is\s*to\s*certify\s*that)\s*"
        + GIVEN_NAME_FIRST % 2,
        re.IGNORECASE,
    ),
    (SURNAME_FIRST_NAME, 0),
]

_INCOME_PATTERNS: list[Pattern] = [
    (rf"annual\s*(?:family\s*)?income[:\s]*{PESO}?\s*{AMOUNT}", re.IGNORECASE),
    (rf"(?:total|gross|net)\s*(?:family\s*)?income[:\s]*{PESO}?\s*{AMOUNT}", re.IGNORECASE),
    (rf"income[:\s]*{PESO}?\s*{AMOUNT}", re.IGNORECASE),
    (rf"{PESO}\s*{AMOUNT}\s*(?:annual|yearly|per\s*(?:year|annum))", re.IGNORECASE),
    (rf"{PESO}\s*{AMOUNT}", re.IGNORECASE),
]

_ADDRESS_PATTERNS: list[Pattern] = [
    (r"(?:residing|residence|address|resident\s*of)[:\s]*(.+?)(?:\n|$)", re.IGNORECASE),
    (r"barangay\s+([A-Za-z \t]+?)(?:,|\n|$)", re.IGNORECASE),
]


def extract_income(text: str | None) -> ExtractedFields:
    """Extract the declared income, its holder, and the address.

    Args:
        text: Preprocessed OCR text.

    Returns:
        Mapping with any of ``name``, ``income`` (pesos, as float) and
        ``address``.
    """
    fields: ExtractedFields = {}
    if not text:
        return fields

    put(fields, "name", first_match(text, _NAME_PATTERNS, name_filter()))
    put(fields, "income", first_match(text, _INCOME_PATTERNS, parse_income))
    put(fields, "address", first_match(text, _ADDRESS_PATTERNS, min_length(5)))

    logger.debug("Income extraction found %s", sorted(fields))
    return fields
