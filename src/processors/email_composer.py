"""Compose personalized email drafts for patient documents"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import asdict, dataclass, field
from typing import Any

from .record_builder import PatientDocument

logger = logging.getLogger(__name__)

DEFAULT_SUBJECT = "Billing Statement"
DEFAULT_TEMPLATE = """Dear {name},

Please find attached your billing statement for services on {date} ({service}).

Amount: ${amount}
Balance: ${balance}

Thank you."""

DRAFT_SEPARATOR = "=" * 50


@dataclass
class EmailDraft:
    to: str
    subject: str
    body: str
    patient_name: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class DraftBatch:
    """Drafts for matched patients plus everyone who had no email."""

    drafts: list[EmailDraft] = field(default_factory=list)
    without_email: list[PatientDocument] = field(default_factory=list)


def placeholder_values(document: PatientDocument) -> dict[str, str]:
    amount = document.amount_text
    return {
        "{name}": document.name,
        "{amount}": amount,
        "{service}": document.service_code,
        "{date}": document.formatted_date,
        "{balance}": document.balance_text if document.has_balance_field else amount,
    }


def substitute(template: str, values: dict[str, str]) -> str:
    """Literal find-and-replace; unknown placeholders are left as-is."""
    result = template
    for placeholder, value in values.items():
        result = result.replace(placeholder, value)
    return result


def compose(
    document: PatientDocument,
    template: str | None = None,
    subject_template: str | None = None,
) -> EmailDraft | None:
    """Build the draft for one patient, or None if they have no email."""
    if not document.email or not document.email.strip():
        return None

    body_template = template or DEFAULT_TEMPLATE
    subject_template = subject_template or DEFAULT_SUBJECT

    return EmailDraft(
        to=document.email.strip(),
        subject=subject_template.replace("{name}", document.name),
        body=substitute(body_template, placeholder_values(document)),
        patient_name=document.name,
    )


def compose_drafts(
    documents: Iterable[PatientDocument],
    template: str | None = None,
    subject_template: str | None = None,
    on_progress: Callable[[int, str], None] | None = None,
) -> DraftBatch:
    """Partition documents into drafts and patients without email.

    on_progress(i, name) is called before each patient is handled.
    """
    batch = DraftBatch()
    for i, document in enumerate(documents):
        if on_progress:
            on_progress(i, document.name)

        draft = compose(document, template, subject_template)
        if draft is None:
            batch.without_email.append(document)
        else:
            batch.drafts.append(draft)

    logger.info(
        f"Composed {len(batch.drafts)} email drafts, "
        f"{len(batch.without_email)} patients without email"
    )
    return batch


def format_drafts_file(drafts: Iterable[EmailDraft]) -> str:
    """Flat text export, one record per draft."""
    records = [
        f"To: {d.to}\nSubject: {d.subject}\n\n{d.body}\n\n{DRAFT_SEPARATOR}\n" for d in drafts
    ]
    return "\n".join(records)
