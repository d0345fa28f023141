"""Write generated statements, PDFs and the email drafts file to disk"""

import logging
from collections.abc import Sequence
from pathlib import Path

from ..processors.email_composer import EmailDraft, format_drafts_file
from ..processors.record_builder import PatientDocument

logger = logging.getLogger(__name__)

# Lets Windows editors detect UTF-8
UTF8_BOM = "\ufeff"
DEFAULT_DRAFTS_FILENAME = "email_drafts.txt"


class OutputWriter:
    """Writes per-patient artifacts into a single output directory."""

    def __init__(self, output_dir: str | Path):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self._written: set[Path] = set()

    def _target(self, filename: str) -> Path:
        """Path for a per-patient file; warns when this writer already wrote it."""
        path = self.output_dir / filename
        if path in self._written:
            logger.warning(f"Overwriting {path.name}: written earlier in this run")
        self._written.add(path)
        return path

    def write_text(self, document: PatientDocument) -> Path:
        path = self._target(document.text_filename)
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(UTF8_BOM + document.text_content)
        document.txt_path = path
        logger.info(f"Created: {path.name}")
        return path

    def write_pdf(self, document: PatientDocument, data: bytes) -> Path:
        path = self._target(document.pdf_filename)
        with open(path, "wb") as f:
            f.write(data)
        document.pdf_path = path
        logger.info(f"Created: {path.name}")
        return path

    def write_drafts(
        self,
        drafts: Sequence[EmailDraft],
        filename: str = DEFAULT_DRAFTS_FILENAME,
    ) -> Path | None:
        """Write the flat drafts file; nothing is written when there are no drafts."""
        if not drafts:
            return None
        path = self.output_dir / filename
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(format_drafts_file(drafts))
        logger.info(f"Wrote {len(drafts)} email drafts to {path.name}")
        return path
