"""
Field Resolver for billing CSV rows
Maps the many header spellings seen in practice-management exports onto
canonical billing fields, and coerces amounts and dates.
"""

import logging
import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")

_NON_NUMERIC_RE = re.compile(r"[^0-9.-]")
# Longest leading number, the way a lenient float parser reads "12.5.3" as 12.5
_NUMBER_PREFIX_RE = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)")

DATE_FORMATS = [
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%m/%d/%y",
    "%m-%d-%Y",
    "%m-%d-%y",
    "%Y/%m/%d",
    "%Y-%m-%dT%H:%M:%S",
    "%b %d, %Y",
    "%B %d, %Y",
]


class CanonicalField(Enum):
    FIRST_NAME = "first_name"
    LAST_NAME = "last_name"
    FULL_NAME = "full_name"
    DIAGNOSIS = "diagnosis"
    LOCATION = "location"
    SERVICE_CODE = "service_code"
    CHARGE = "charge"
    DUE = "due"
    PAID = "paid"
    DATE = "date"
    EMAIL = "email"


# Ordered alias table. Keys are matched case-sensitively, so both spellings
# are listed where exports differ only by case.
FIELD_ALIASES: dict[CanonicalField, tuple[str, ...]] = {
    CanonicalField.FIRST_NAME: ("First Name", "FirstName", "first_name", "First", "first"),
    CanonicalField.LAST_NAME: ("Last Name", "LastName", "last_name", "Last", "last"),
    CanonicalField.FULL_NAME: ("Patient", "patient", "Name", "name", "Patient Name"),
    CanonicalField.DIAGNOSIS: ("Dx", "DX", "Diagnosis", "diagnosis"),
    CanonicalField.LOCATION: ("Location", "location"),
    CanonicalField.SERVICE_CODE: (
        "CPT",
        "cpt",
        "Service",
        "service",
        "Description",
        "description",
    ),
    CanonicalField.CHARGE: ("Charge", "charge", "Amount", "amount", "Total", "total"),
    CanonicalField.DUE: ("Due", "due", "Amount Due", "amount_due", "Balance", "balance"),
    CanonicalField.PAID: (
        "Paid",
        "paid",
        "Amount Paid",
        "amount_paid",
        "Payment",
        "payment",
        "Payments",
        "payments",
    ),
    CanonicalField.DATE: ("Date", "date", "Service Date", "DOS"),
    CanonicalField.EMAIL: ("Email", "email", "Email Address", "E-mail"),
}


def resolve(
    row: dict[str, Any],
    field: CanonicalField,
    aliases: dict[CanonicalField, tuple[str, ...]] | None = None,
) -> str:
    """Return the value of the first alias of `field` present in `row`.

    A present key with an empty value wins over later aliases. Returns ""
    when no alias is present; never raises.
    """
    table = aliases if aliases is not None else FIELD_ALIASES
    for key in table.get(field, ()):
        if key in row and row[key] is not None:
            return str(row[key])
    return ""


def has_field(
    row: dict[str, Any],
    field: CanonicalField,
    aliases: dict[CanonicalField, tuple[str, ...]] | None = None,
) -> bool:
    """True if any alias of `field` is a key of `row`."""
    table = aliases if aliases is not None else FIELD_ALIASES
    return any(key in row for key in table.get(field, ()))


def parse_amount(value: Any) -> Decimal:
    """Coerce a money-ish value to a non-negative two-place Decimal.

    Everything outside [0-9.-] is stripped first ("$1,234.50" -> 1234.50).
    Empty, unparsable or negative input yields 0.00. Rounds half up.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        text = format(value, "f")
    else:
        text = str(value)

    cleaned = _NON_NUMERIC_RE.sub("", text)
    match = _NUMBER_PREFIX_RE.match(cleaned)
    if not match:
        return ZERO

    try:
        amount = Decimal(match.group(0)).quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return ZERO

    if amount < 0:
        logger.debug(f"Negative amount {text!r} coerced to 0.00")
        return ZERO
    # Normalizes -0.00
    return amount + ZERO


def format_amount(amount: Decimal) -> str:
    """Two-decimal display with '.' as separator, no grouping."""
    return f"{amount.quantize(CENTS, rounding=ROUND_HALF_UP):.2f}"


def parse_service_date(value: str, default: date) -> date:
    """Parse a service date in any of DATE_FORMATS, else return `default`."""
    text = (value or "").strip()
    if not text:
        return default
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    logger.debug(f"Unrecognized date {text!r}, using {default.isoformat()}")
    return default


def format_short_date(value: date) -> str:
    """MM-DD-YY"""
    return value.strftime("%m-%d-%y")
