"""Tests for page_renderer.py - Playwright lifecycle with a mocked browser."""

from unittest.mock import MagicMock, patch

import pytest

from src.errors import RenderError
from src.renderers.page_renderer import PlaywrightPageRenderer, get_page_renderer


class TestPlaywrightPageRenderer:
    """Tests for PlaywrightPageRenderer.render_to_page."""

    def test_renders_pdf_and_closes_page(self):
        with patch("playwright.sync_api.sync_playwright") as mock_sync:
            playwright = mock_sync.return_value.start.return_value
            page = playwright.chromium.launch.return_value.new_page.return_value
            page.pdf.return_value = b"%PDF-1.4"

            with PlaywrightPageRenderer() as renderer:
                assert renderer.render_to_page("<p>hi</p>") == b"%PDF-1.4"

            page.close.assert_called_once()
            _, kwargs = page.pdf.call_args
            assert kwargs["format"] == "A4"
            assert kwargs["margin"]["top"] == "20mm"
            playwright.stop.assert_called_once()

    def test_launch_failure_is_not_retried(self):
        with patch("playwright.sync_api.sync_playwright") as mock_sync:
            playwright = mock_sync.return_value.start.return_value
            playwright.chromium.launch.side_effect = Exception("Executable doesn't exist")

            renderer = PlaywrightPageRenderer()
            with pytest.raises(RenderError):
                renderer.render_to_page("<p>one</p>")
            with pytest.raises(RenderError, match="Browser unavailable"):
                renderer.render_to_page("<p>two</p>")

            assert mock_sync.return_value.start.call_count == 1
            assert playwright.chromium.launch.call_count == 1
            playwright.stop.assert_called_once()

    def test_page_error_becomes_render_error(self):
        with patch("playwright.sync_api.sync_playwright") as mock_sync:
            playwright = mock_sync.return_value.start.return_value
            page = playwright.chromium.launch.return_value.new_page.return_value
            page.pdf.side_effect = TimeoutError("timed out")

            renderer = PlaywrightPageRenderer()
            with pytest.raises(RenderError, match="timed out"):
                renderer.render_to_page("<p>hi</p>")
            page.close.assert_called_once()


class TestGetPageRenderer:
    def test_disabled(self):
        assert get_page_renderer(enabled=False) is None

    def test_enabled_is_lazy(self):
        renderer = get_page_renderer(enabled=True, margin="10mm")
        assert isinstance(renderer, PlaywrightPageRenderer)
        assert renderer.margin == "10mm"
        assert renderer._browser is None
