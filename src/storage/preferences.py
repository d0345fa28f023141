"""Persisted email template and subject preferences"""

import logging
from pathlib import Path

from ..processors.email_composer import DEFAULT_SUBJECT

logger = logging.getLogger(__name__)

TEMPLATE_FILENAME = "emailTemplate.txt"
SUBJECT_FILENAME = "emailSubject.txt"
DEFAULT_PREFERENCES_DIR = Path.home() / ".billing-statements"


class PreferenceStore:
    """Two plain UTF-8 files in an application directory. Absent files mean defaults."""

    def __init__(self, directory: str | Path | None = None):
        self.directory = Path(directory).expanduser() if directory else DEFAULT_PREFERENCES_DIR

    def _read(self, filename: str, default: str) -> str:
        path = self.directory / filename
        if not path.exists():
            return default
        return path.read_text(encoding="utf-8")

    def _write(self, filename: str, value: str) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / filename
        path.write_text(value, encoding="utf-8")
        logger.info(f"Saved {path}")
        return path

    def load_template(self) -> str:
        """Saved body template, or "" (use the built-in default)."""
        return self._read(TEMPLATE_FILENAME, "")

    def save_template(self, template: str) -> Path:
        return self._write(TEMPLATE_FILENAME, template)

    def load_subject(self) -> str:
        return self._read(SUBJECT_FILENAME, DEFAULT_SUBJECT)

    def save_subject(self, subject: str) -> Path:
        return self._write(SUBJECT_FILENAME, subject)
