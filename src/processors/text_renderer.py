"""
Text Renderer for patient billing documents
Produces the fixed-width plain-text statement/superbill and the minimal HTML
wrapper handed to the page renderer.
"""

import html
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from .classifier import DocumentType
from .field_resolver import format_amount
from .record_builder import PatientDocument

CELL_WIDTH = 12
RULE_WIDTH = CELL_WIDTH * 4


@dataclass
class PracticeInfo:
    """Static practice identity printed at the top of every document."""

    name: str = "Medical Practice"
    address_lines: list[str] = field(default_factory=lambda: ["123 Main Street", "Suite 100"])
    city_line: str = "Anytown, CA 94000"
    phone: str = ""
    fax: str = ""
    tax_id: str = ""
    license: str = ""
    npi: str = ""

    @classmethod
    def from_config(cls, config: dict[str, Any] | None) -> "PracticeInfo":
        if not config:
            return cls()
        known = {k: v for k, v in config.items() if k in cls.__dataclass_fields__}
        return cls(**known)

    def header_block(self) -> str:
        lines = [self.name, *self.address_lines, self.city_line]
        if self.phone:
            lines.append(f"Phone {self.phone}")
        if self.fax:
            lines.append(f"Fax {self.fax}")
        lines.append("")

        ids = []
        if self.tax_id:
            ids.append(f"Tax ID  {self.tax_id}")
        if self.license:
            ids.append(f"License {self.license}")
        if self.npi:
            ids.append(f"NPI {self.npi}")
        if ids:
            lines.extend(ids)
            lines.append("")
        return "\n".join(lines)


def _text_cell(value: str) -> str:
    return value.ljust(CELL_WIDTH)


def _money_cell(value: str) -> str:
    # "$" + amount, left-justified to 11 inside the 12-wide column
    return value.ljust(CELL_WIDTH - 1).rjust(CELL_WIDTH)


def payment_column_title(document_type: DocumentType) -> str:
    return "Paid" if document_type is DocumentType.SUPERBILL else "Payments"


def render_column_header(document_type: DocumentType) -> str:
    return (
        _text_cell("Date")
        + _text_cell("CPT")
        + _money_cell("Charge")
        + _money_cell(payment_column_title(document_type))
    )


def render_billing_line(document: PatientDocument) -> str:
    return (
        _text_cell(document.formatted_date)
        + _text_cell(document.service_code)
        + _money_cell(f"${format_amount(document.charge)}")
        + _money_cell(f"${format_amount(document.paid)}")
    )


def render_text(
    document: PatientDocument,
    today: date,
    practice: PracticeInfo | None = None,
) -> str:
    """Render the plain-text document. Pure: the same inputs give the same text."""
    practice = practice or PracticeInfo()

    lines = [
        practice.header_block(),
        f"Patient: {document.name}",
        f"Diagnosis: {document.diagnosis}",
        f"Location: {document.location}",
        f"Date: {today.month}/{today.day}/{today.year}",
        "",
    ]

    lines.append(render_column_header(document.document_type))
    lines.append("-" * RULE_WIDTH)
    lines.append(render_billing_line(document))
    lines.append("")

    if document.document_type is DocumentType.SUPERBILL:
        lines.append(f"Amount Paid: ${format_amount(document.paid)}")
    else:
        lines.append(f"Balance Due: ${format_amount(document.due)}")

    return "\n".join(lines) + "\n"


PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8" />
  <title>{title}</title>
  <style>
    body {{
      font-family: 'Courier New', monospace;
      background-color: white;
      color: black;
      line-height: 1.4;
    }}
    .content {{
      white-space: pre-wrap;
      font-size: 12px;
    }}
  </style>
</head>
<body>
  <div class="content">{content}</div>
</body>
</html>
"""


def build_page_markup(text: str, title: str) -> str:
    """Wrap rendered text in the minimal HTML container used for PDFs."""
    return PAGE_TEMPLATE.format(title=html.escape(title), content=html.escape(text))
