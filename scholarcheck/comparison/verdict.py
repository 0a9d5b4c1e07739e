"""Aggregation of field comparisons into a document verdict."""

from collections.abc import Sequence

from scholarcheck.verification.models import (
    FieldComparisonResult,
    OverallMatch,
    Severity,
)


def determine_overall_match(results: Sequence[FieldComparisonResult]) -> OverallMatch:
    """Reduce field severities to a single verdict.

    No comparable fields means the document could not be read; any
    critical field is a mismatch; any warning makes it partial.
    """
    if not results:
        return OverallMatch.UNREADABLE
    severities = {r.severity for r in results}
    if Severity.CRITICAL in severities:
        return OverallMatch.MISMATCH
    if Severity.WARNING in severities:
        return OverallMatch.PARTIAL
    return OverallMatch.VERIFIED


def calculate_confidence(results: Sequence[FieldComparisonResult]) -> float:
    """Fraction of matching fields, rounded to two decimals."""
    if not results:
        return 0.0
    matches = sum(1 for r in results if r.match)
    return round(matches / len(results), 2)
