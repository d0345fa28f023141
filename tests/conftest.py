"""Pytest fixtures for billing statement tests."""

import csv
from datetime import date

import pytest

from src.errors import RenderError


class FakePageRenderer:
    """Deterministic stand-in for the headless browser renderer."""

    def __init__(self, fail_for: set[str] | None = None):
        self.fail_for = fail_for or set()
        self.rendered: list[str] = []
        self.closed = False

    def render_to_page(self, markup: str) -> bytes:
        self.rendered.append(markup)
        if any(name in markup for name in self.fail_for):
            raise RenderError("Failed to create PDF: forced failure")
        return b"%PDF-1.4 fake\n" + str(len(self.rendered)).encode()

    def close(self):
        self.closed = True


@pytest.fixture
def today():
    """Fixed processing date."""
    return date(2026, 3, 2)


@pytest.fixture
def fake_renderer():
    return FakePageRenderer()


@pytest.fixture
def write_csv(tmp_path):
    """Write rows to a CSV file under tmp_path and return its path."""

    def _write(name, header, rows):
        path = tmp_path / name
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(header)
            writer.writerows(rows)
        return path

    return _write


@pytest.fixture
def failing_renderer():
    """Renderer that fails for any document mentioning Bob."""
    return FakePageRenderer(fail_for={"Bob"})
