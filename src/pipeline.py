#!/usr/bin/env python3
"""
Billing Statement Pipeline
Main orchestration for turning a billing CSV into per-patient statements
or superbills, with optional personalized email drafts.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

import click
import yaml
from rich.console import Console
from rich.table import Table

from .errors import FormatError, RenderError
from .extractors.csv_loader import load_rows, open_table
from .processors.classifier import (
    DocumentType,
    ValidationOutcome,
    classify,
    validate_billing_headers,
)
from .processors.email_composer import EmailDraft, compose_drafts
from .processors.identity_matcher import IdentityMatcher
from .processors.record_builder import PatientDocument, build_patient_documents
from .processors.text_renderer import PracticeInfo, build_page_markup, render_text
from .renderers.page_renderer import PageRenderer, get_page_renderer
from .storage.gmail_drafts import DraftResult, GmailDraftClient
from .storage.output_writer import DEFAULT_DRAFTS_FILENAME, OutputWriter
from .storage.preferences import PreferenceStore
from .watchers.progress import DEFAULT_INTERVAL, ProgressChannel

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Outcome of one processing run. Per-patient PDF failures do not fail the run."""

    document_type: DocumentType
    documents: list[PatientDocument] = field(default_factory=list)
    drafts: list[EmailDraft] = field(default_factory=list)
    patients_without_email: list[PatientDocument] = field(default_factory=list)
    render_failures: dict[int, str] = field(default_factory=dict)  # document index -> error
    drafts_path: Path | None = None
    gmail_results: list[DraftResult] = field(default_factory=list)
    drafts_requested: bool = False

    @property
    def message(self) -> str:
        if not self.drafts_requested:
            return "Statements/SuperBills generated successfully!"
        message = "Files processed successfully!"
        if self.patients_without_email:
            message += (
                f" Note: {len(self.patients_without_email)} patient(s) "
                "didn't have email addresses."
            )
        return message

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "message": self.message,
            "document_type": self.document_type.value,
            "total_processed": len(self.documents),
            "documents": [d.to_dict() for d in self.documents],
            "drafts": [d.to_dict() for d in self.drafts],
            "patients_without_email": [d.name for d in self.patients_without_email],
            "render_failures": dict(self.render_failures),
            "drafts_path": str(self.drafts_path) if self.drafts_path else None,
        }


class BillingStatementPipeline:
    """
    Main pipeline for generating patient billing documents.

    Flow:
    1. Load the email roster (if given) fully into memory
    2. Stream the billing CSV; classify statement vs superbill from its header
    3. Build one patient document per row and match its email
    4. Render and write the text document, then the PDF
    5. Compose email drafts and write the drafts file
    """

    def __init__(
        self,
        config_path: str = "config/config.yaml",
        page_renderer: PageRenderer | None = None,
        progress: ProgressChannel | None = None,
    ):
        """Initialize pipeline from config."""
        self.config = self._load_config(config_path)

        self.practice = PracticeInfo.from_config(self.config.get("practice"))

        output = self.config.get("output", {})
        self.output_dir = output.get("directory", "output")
        self.drafts_filename = output.get("drafts_filename", DEFAULT_DRAFTS_FILENAME)

        pdf = self.config.get("pdf", {})
        self.pdf_enabled = pdf.get("enabled", True)

        interval_ms = self.config.get("progress", {}).get("interval_ms")
        interval = interval_ms / 1000 if interval_ms is not None else DEFAULT_INTERVAL
        self.progress = progress or ProgressChannel(interval=interval)

        # Initialize components (lazy)
        self._page_renderer = page_renderer
        self._preferences = None
        self._gmail = None

    def _load_config(self, config_path: str) -> dict:
        """Load configuration from YAML."""
        config_path = Path(config_path)
        if not config_path.exists():
            logger.warning(f"Config not found: {config_path}, using defaults")
            return {}

        with open(config_path) as f:
            return yaml.safe_load(f) or {}

    @property
    def page_renderer(self) -> PageRenderer | None:
        """Lazy-load the PDF renderer (None when PDFs are disabled)."""
        if not self.pdf_enabled:
            return None
        if self._page_renderer is None:
            pdf = self.config.get("pdf", {})
            self._page_renderer = get_page_renderer(
                enabled=True,
                page_format=pdf.get("format", "A4"),
                margin=pdf.get("margin", "20mm"),
                timeout_ms=pdf.get("timeout_ms", 30000),
            )
        return self._page_renderer

    @property
    def preferences(self) -> PreferenceStore:
        """Lazy-load the template/subject preference store."""
        if self._preferences is None:
            email_config = self.config.get("email", {})
            self._preferences = PreferenceStore(email_config.get("preferences_dir"))
        return self._preferences

    @property
    def gmail(self) -> GmailDraftClient:
        """Lazy-load the Gmail drafts client."""
        if self._gmail is None:
            gmail_config = self.config.get("email", {}).get("gmail", {})
            self._gmail = GmailDraftClient(
                credentials_file=gmail_config.get(
                    "credentials_file", "config/credentials/gmail_credentials.json"
                ),
                token_file=gmail_config.get("token_file", "config/credentials/gmail_token.json"),
            )
        return self._gmail

    def analyze(self, billing_path: str) -> dict:
        """Inspect a billing CSV without generating anything."""
        table = open_table(billing_path)
        outcome = validate_billing_headers(table.headers)
        row_count = sum(1 for _ in table.rows)
        if row_count == 0:
            outcome = ValidationOutcome.EMPTY

        return {
            "file": str(billing_path),
            "type": outcome.value,
            "valid": outcome.valid,
            "document_type": classify(table.headers).value,
            "headers": table.headers,
            "rows": row_count,
        }

    def _render_pdf(
        self, document: PatientDocument, writer: OutputWriter, result: RunResult
    ) -> None:
        renderer = self.page_renderer
        if renderer is None:
            return

        title = f"{document.name} {document.document_type.value}"
        try:
            data = renderer.render_to_page(build_page_markup(document.text_content, title))
            writer.write_pdf(document, data)
        except RenderError as e:
            # Text file already exists; record and continue
            logger.error(f"Error creating PDF for {document.name}: {e}")
            document.render_error = str(e)
            result.render_failures[document.index] = str(e)

    def _close_renderer(self) -> None:
        close = getattr(self._page_renderer, "close", None)
        if callable(close):
            close()

    def process(
        self,
        billing_path: str,
        output_dir: str | None = None,
        email_path: str | None = None,
        create_drafts: bool = False,
        template: str | None = None,
        subject: str | None = None,
        today: date | None = None,
        use_gmail: bool = False,
    ) -> RunResult:
        """
        Generate documents for every row of a billing CSV.

        Args:
            billing_path: Billing CSV
            output_dir: Where to write documents (default from config)
            email_path: Optional roster CSV mapping patients to emails
            create_drafts: Compose email drafts for matched patients
            template: Body template (default: saved preference, then built-in)
            subject: Subject template (default: saved preference)
            today: Processing date (default: today)
            use_gmail: Also create the drafts in Gmail

        Returns:
            RunResult. Raises OSError or FormatError if an input file can't be read.
        """
        today = today or date.today()
        writer = OutputWriter(output_dir or self.output_dir)

        self.progress.emit(10, "Parsing CSV files...")

        # Roster must be fully loaded before matching starts
        roster = load_rows(email_path) if email_path else None
        matcher = IdentityMatcher(roster) if roster is not None else None

        table = open_table(billing_path)
        document_type = classify(table.headers)
        logger.info(f"Document type for {table.path.name}: {document_type.value}")

        result = RunResult(document_type=document_type, drafts_requested=create_drafts)

        self.progress.emit(30, "Generating statements...")
        try:
            for document in build_patient_documents(table.rows, document_type, today):
                if matcher is not None:
                    document.email = matcher.match(document.name)

                document.text_content = render_text(document, today, self.practice)
                writer.write_text(document)
                self._render_pdf(document, writer, result)

                result.documents.append(document)
                self.progress.emit(
                    30 + min(39, len(result.documents)),
                    f"Generated {document.base_filename}",
                )
        finally:
            self._close_renderer()

        result.patients_without_email = [d for d in result.documents if not d.email]

        if create_drafts:
            self.progress.emit(70, "Creating email drafts...")
            body_template = template if template is not None else self.preferences.load_template()
            subject_template = subject if subject is not None else self.preferences.load_subject()
            total = max(1, len(result.documents))

            batch = compose_drafts(
                result.documents,
                template=body_template,
                subject_template=subject_template,
                on_progress=lambda i, name: self.progress.emit(
                    70 + int(i / total * 25), f"Creating email draft for {name}..."
                ),
            )
            result.drafts = batch.drafts
            result.patients_without_email = batch.without_email
            result.drafts_path = writer.write_drafts(batch.drafts, self.drafts_filename)

            if use_gmail and batch.drafts:
                result.gmail_results = self.gmail.create_drafts(batch.drafts)

        self.progress.emit(95, "Finalizing...")
        logger.info(
            f"Processed {len(result.documents)} patients "
            f"({len(result.render_failures)} PDF failures, "
            f"{len(result.patients_without_email)} without email)"
        )
        self.progress.emit(100, "Done", force=True)
        return result


# CLI using Click
console = Console()


@click.group()
@click.option("--config", default="config/config.yaml", help="Config file path")
@click.pass_context
def cli(ctx, config):
    """Billing Statement Generator"""
    ctx.ensure_object(dict)
    ctx.obj["pipeline"] = BillingStatementPipeline(config_path=config)


@cli.command()
@click.argument("billing_file")
@click.pass_context
def analyze(ctx, billing_file):
    """Check a billing CSV and show the document type it will produce."""
    pipeline = ctx.obj["pipeline"]
    try:
        info = pipeline.analyze(billing_file)
    except (OSError, FormatError) as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1) from None

    color = "green" if info["valid"] else "yellow"
    console.print(f"[{color}]CSV type: {info['type']}[/{color}]")
    console.print(f"Document type: [bold]{info['document_type']}[/bold]")
    console.print(f"Rows: {info['rows']}")
    console.print(f"Headers: {', '.join(info['headers'])}")


def _print_run_summary(result: RunResult):
    table = Table(title=f"{result.document_type.value}s Generated")
    table.add_column("#", justify="right")
    table.add_column("File")
    table.add_column("Charge", justify="right")
    table.add_column("Email")
    table.add_column("PDF")

    for doc in result.documents:
        pdf_status = "[red]FAILED[/red]" if doc.render_error else (
            "[green]OK[/green]" if doc.pdf_path else "-"
        )
        table.add_row(
            str(doc.index),
            doc.text_filename,
            f"${doc.amount_text}",
            doc.email or "[yellow]none[/yellow]",
            pdf_status,
        )
    console.print(table)

    if result.render_failures:
        console.print(f"\n[bold red]PDF failures ({len(result.render_failures)})[/bold red]")
        by_index = {doc.index: doc for doc in result.documents}
        for index, error in result.render_failures.items():
            console.print(f"  #{index} {by_index[index].pdf_filename}: {error}")

    if result.drafts_requested and result.patients_without_email:
        console.print(
            f"\n[bold yellow]Patients without email ({len(result.patients_without_email)})"
            "[/bold yellow]"
        )
        for doc in result.patients_without_email:
            console.print(f"  - {doc.name}")

    if result.drafts_path:
        console.print(f"\nEmail drafts: {result.drafts_path}")
    failed_gmail = [r for r in result.gmail_results if r.error]
    if result.gmail_results:
        console.print(
            f"Gmail drafts created: {len(result.gmail_results) - len(failed_gmail)}"
            f"/{len(result.gmail_results)}"
        )

    console.print(f"\n[green]{result.message}[/green]")


@cli.command()
@click.option("--billing", "billing_file", required=True, help="Billing CSV file")
@click.option("--emails", "email_file", help="Roster CSV with patient emails")
@click.option("--output", "output_dir", help="Output directory")
@click.option("--drafts/--no-drafts", default=False, help="Compose email drafts")
@click.option("--template", "template_file", help="Email body template file")
@click.option("--subject", help="Email subject template")
@click.option("--no-pdf", is_flag=True, help="Only write text documents")
@click.option("--gmail", is_flag=True, help="Also create drafts in Gmail")
@click.option("--json", "as_json", is_flag=True, help="Print the run result as JSON")
@click.pass_context
def process(
    ctx, billing_file, email_file, output_dir, drafts, template_file, subject, no_pdf, gmail,
    as_json,
):
    """Generate statements/superbills and optional email drafts."""
    import json

    pipeline = ctx.obj["pipeline"]
    if no_pdf:
        pipeline.pdf_enabled = False

    with console.status("[cyan]Processing...[/cyan]") as status:
        pipeline.progress.subscribe(
            lambda event: status.update(f"[cyan]{event.percentage}% {event.label}[/cyan]")
        )
        try:
            template = None
            if template_file:
                template = Path(template_file).read_text(encoding="utf-8")

            result = pipeline.process(
                billing_file,
                output_dir=output_dir,
                email_path=email_file,
                create_drafts=drafts,
                template=template,
                subject=subject,
                use_gmail=gmail,
            )
        except (OSError, FormatError) as e:
            console.print(f"[red]Error processing files: {e}[/red]")
            raise SystemExit(1) from None

    if as_json:
        console.print_json(json.dumps(result.to_dict(), indent=2, default=str))
    else:
        _print_run_summary(result)


@cli.group()
def template():
    """Show or save the email body template."""


@template.command("show")
@click.pass_context
def template_show(ctx):
    pipeline = ctx.obj["pipeline"]
    saved = pipeline.preferences.load_template()
    console.print(saved or "[yellow](no saved template, using built-in default)[/yellow]")


@template.command("set")
@click.argument("template_file")
@click.pass_context
def template_set(ctx, template_file):
    pipeline = ctx.obj["pipeline"]
    text = Path(template_file).read_text(encoding="utf-8")
    path = pipeline.preferences.save_template(text)
    console.print(f"[green]Template saved to {path}[/green]")


@cli.group()
def subject():
    """Show or save the email subject."""


@subject.command("show")
@click.pass_context
def subject_show(ctx):
    console.print(ctx.obj["pipeline"].preferences.load_subject())


@subject.command("set")
@click.argument("text")
@click.pass_context
def subject_set(ctx, text):
    path = ctx.obj["pipeline"].preferences.save_subject(text)
    console.print(f"[green]Subject saved to {path}[/green]")


if __name__ == "__main__":
    cli()
