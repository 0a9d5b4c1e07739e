"""OCR text cleanup applied before field extraction.

Normalizes unicode punctuation and whitespace, repairs spacing around
punctuation, rejoins words broken across lines, and canonicalizes a few
labels that OCR renders inconsistently.
"""

import re

from scholarcheck.utils.logger import get_logger

logger = get_logger(__name__)

# (pattern, replacement, flags), applied in order
_UNICODE_RULES: list[tuple[str, str, int]] = [
    (r"[\u2018\u2019\u201A\u201B]", "'", 0),
    (r"[\u201C\u201D\u201E\u201F]", '"', 0),
    (r"[\u2010-\u2015]", "-", 0),
    (r"[\u00A0\u2000-\u200B\u202F\u205F\u3000\uFEFF]", " ", 0),
]

_SPACING_RULES: list[tuple[str, str, int]] = [
    (r"[^\S\n]+", " ", 0),
    (r"\s+([.,;:!?])", r"\1", 0),
    (r"([.,;:!?])([A-Za-z])", r"\1 \2", 0),
]

_WORD_JOIN_RULE: tuple[str, str, int] = (r"([a-z])\n([a-z])", r"\1\2", 0)

_LABEL_RULES: list[tuple[str, str, int]] = [
    (r"\bNo\s*[.:]\s*", "No. ", re.IGNORECASE),
    (r"\bBrgy\b\.?\s*", "Barangay ", re.IGNORECASE),
]


def _apply(text: str, rules: list[tuple[str, str, int]]) -> str:
    for pattern, replacement, flags in rules:
        text = re.sub(pattern, replacement, text, flags=flags)
    return text


def preprocess_ocr_text(raw_text: str | None) -> str:
    """Clean raw OCR text for extraction.

    Args:
        raw_text: Text returned by the OCR provider. May be ``None``.

    Returns:
        Cleaned text, or an empty string for empty input.
    """
    if not raw_text:
        return ""

    text = _apply(str(raw_text), _UNICODE_RULES)
    text = _apply(text, _SPACING_RULES)
    text = _apply(text, [_WORD_JOIN_RULE])
    text = _apply(text, _LABEL_RULES)

    text = "\n".join(line.strip() for line in text.split("\n"))
    text = re.sub(r"\n{3,}", "\n\n", text)

    cleaned = text.strip()
    logger.debug("Preprocessed OCR text: %d -> %d chars", len(raw_text), len(cleaned))
    return cleaned
