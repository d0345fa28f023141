"""Build one patient document per billing row"""

import logging
import re
from collections.abc import Iterable, Iterator
from dataclasses import asdict, dataclass
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any

from .classifier import DocumentType
from .field_resolver import (
    CanonicalField,
    format_amount,
    format_short_date,
    has_field,
    parse_amount,
    parse_service_date,
    resolve,
)

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_RE = re.compile(r'[\\/:*?"<>|]')


@dataclass
class PatientDocument:
    """A single statement or superbill, built from one billing row."""

    index: int  # 1-based position in the billing file
    first_name: str
    last_name: str
    name: str
    diagnosis: str
    location: str
    service_code: str
    charge: Decimal
    due: Decimal
    paid: Decimal
    service_date: date
    formatted_date: str  # MM-DD-YY
    document_type: DocumentType
    has_balance_field: bool = False
    email: str = ""
    text_content: str = ""
    txt_path: Path | None = None
    pdf_path: Path | None = None
    render_error: str | None = None

    @property
    def base_filename(self) -> str:
        """Stem shared by the text and PDF files: "First Last Type MM-DD-YY"."""
        if self.first_name or self.last_name:
            identity = f"{self.first_name} {self.last_name}"
        else:
            identity = self.name
        identity = _UNSAFE_FILENAME_RE.sub("-", identity)
        return f"{identity} {self.document_type.value} {self.formatted_date}"

    @property
    def text_filename(self) -> str:
        return f"{self.base_filename}.txt"

    @property
    def pdf_filename(self) -> str:
        return f"{self.base_filename}.pdf"

    @property
    def amount_text(self) -> str:
        return format_amount(self.charge)

    @property
    def balance_text(self) -> str:
        return format_amount(self.due)

    def to_dict(self) -> dict[str, Any]:
        result = asdict(self)
        result["document_type"] = self.document_type.value
        result["service_date"] = self.service_date.isoformat()
        for key in ("charge", "due", "paid"):
            result[key] = format_amount(result[key])
        for key in ("txt_path", "pdf_path"):
            result[key] = str(result[key]) if result[key] else None
        result["filename"] = self.text_filename
        return result


def resolve_patient_name(row: dict[str, str], index: int) -> tuple[str, str, str]:
    """Return (first, last, full name) with the Patient_{index} fallback."""
    first = resolve(row, CanonicalField.FIRST_NAME).strip()
    last = resolve(row, CanonicalField.LAST_NAME).strip()
    full = f"{first} {last}".strip()
    if not full:
        full = resolve(row, CanonicalField.FULL_NAME).strip()
    if not full:
        full = f"Patient_{index}"
    return first, last, full


def build_patient_document(
    row: dict[str, str],
    index: int,
    document_type: DocumentType,
    today: date,
) -> PatientDocument:
    """Normalize one raw billing row. `index` is 1-based."""
    first, last, name = resolve_patient_name(row, index)

    charge_raw = resolve(row, CanonicalField.CHARGE).strip()
    due_raw = resolve(row, CanonicalField.DUE).strip()
    # Each amount stands in for the other when only one column exists
    charge = parse_amount(charge_raw or due_raw)
    due = parse_amount(due_raw or charge_raw)
    paid = parse_amount(resolve(row, CanonicalField.PAID))

    service_date = parse_service_date(resolve(row, CanonicalField.DATE), default=today)

    return PatientDocument(
        index=index,
        first_name=first,
        last_name=last,
        name=name,
        diagnosis=resolve(row, CanonicalField.DIAGNOSIS).strip(),
        location=resolve(row, CanonicalField.LOCATION).strip(),
        service_code=resolve(row, CanonicalField.SERVICE_CODE).strip(),
        charge=charge,
        due=due,
        paid=paid,
        service_date=service_date,
        formatted_date=format_short_date(service_date),
        document_type=document_type,
        has_balance_field=has_field(row, CanonicalField.DUE) and bool(due_raw),
    )


def build_patient_documents(
    rows: Iterable[dict[str, str]],
    document_type: DocumentType,
    today: date | None = None,
) -> Iterator[PatientDocument]:
    """Lazily build documents in row order; one document per row."""
    today = today or date.today()
    for i, row in enumerate(rows):
        document = build_patient_document(row, i + 1, document_type, today)
        logger.debug(f"Built document {document.index}: {document.base_filename}")
        yield document
