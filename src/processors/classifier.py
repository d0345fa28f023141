"""Document type classification from billing CSV headers"""

import logging
from collections.abc import Iterable
from enum import Enum

logger = logging.getLogger(__name__)

# Header fragments that mark a file as billing data at all
BILLING_HEADER_HINTS = [
    "patient",
    "name",
    "amount",
    "service",
    "date",
    "balance",
    "total",
    "charge",
    "due",
    "paid",
    "cpt",
]


class DocumentType(Enum):
    STATEMENT = "Statement"
    SUPERBILL = "SuperBill"


class ValidationOutcome(Enum):
    BILLING = "billing"
    UNKNOWN = "unknown"
    EMPTY = "empty"

    @property
    def valid(self) -> bool:
        return self is ValidationOutcome.BILLING


def classify(headers: Iterable[str]) -> DocumentType:
    """Decide statement vs superbill from the header set.

    A "paid" column means payments were already made (superbill) and wins
    over a "due" column. No hint at all defaults to a statement.
    """
    lowered = [h.lower() for h in headers]
    if any("paid" in h for h in lowered):
        return DocumentType.SUPERBILL
    if any("due" in h for h in lowered):
        return DocumentType.STATEMENT
    return DocumentType.STATEMENT


def validate_billing_headers(headers: Iterable[str]) -> ValidationOutcome:
    """Check whether a header row looks like billing data."""
    lowered = [h.lower().strip() for h in headers]
    if not lowered:
        return ValidationOutcome.EMPTY
    if any(hint in h for h in lowered for hint in BILLING_HEADER_HINTS):
        return ValidationOutcome.BILLING
    logger.warning(f"No recognizable billing columns in header: {lowered}")
    return ValidationOutcome.UNKNOWN
