"""Page renderer - turns HTML markup into PDF bytes with headless Chromium"""

import logging
from typing import Protocol

from ..errors import RenderError

logger = logging.getLogger(__name__)

DEFAULT_MARGIN = "20mm"


class PageRenderer(Protocol):
    def render_to_page(self, markup: str) -> bytes:
        """Render HTML markup to a paginated document. Raises RenderError."""
        ...


class PlaywrightPageRenderer:
    """
    Render HTML to PDF through Playwright.

    One browser is launched lazily and reused; each document gets its own
    page, opened and closed in turn, so at most one page is live at a time.

    Usage:
        with PlaywrightPageRenderer() as renderer:
            pdf_bytes = renderer.render_to_page(markup)
    """

    def __init__(
        self,
        page_format: str = "A4",
        margin: str = DEFAULT_MARGIN,
        timeout_ms: int = 30000,
    ):
        self.page_format = page_format
        self.margin = margin
        self.timeout_ms = timeout_ms
        self._playwright = None
        self._browser = None
        self._launch_error: Exception | None = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _get_browser(self):
        if self._browser is not None:
            return self._browser
        if self._launch_error is not None:
            raise RenderError(f"Browser unavailable: {self._launch_error}")

        try:
            from playwright.sync_api import sync_playwright
        except ImportError as err:
            raise ImportError(
                "playwright package not installed. Run: pip install playwright "
                "&& playwright install chromium"
            ) from err

        self._playwright = sync_playwright().start()
        try:
            self._browser = self._playwright.chromium.launch(
                headless=True,
                args=["--no-sandbox", "--disable-setuid-sandbox", "--disable-dev-shm-usage"],
                timeout=self.timeout_ms,
            )
        except Exception as e:
            # Cached; later documents fail fast
            self._launch_error = e
            self._playwright.stop()
            self._playwright = None
            logger.error(f"Could not launch Chromium: {e}")
            raise
        logger.info("Headless Chromium started for PDF rendering")
        return self._browser

    def render_to_page(self, markup: str) -> bytes:
        try:
            browser = self._get_browser()
            page = browser.new_page()
            try:
                page.set_content(markup, wait_until="networkidle", timeout=self.timeout_ms)
                return page.pdf(
                    format=self.page_format,
                    margin={
                        "top": self.margin,
                        "right": self.margin,
                        "bottom": self.margin,
                        "left": self.margin,
                    },
                    print_background=True,
                )
            finally:
                page.close()
        except (ImportError, RenderError):
            raise
        except Exception as e:
            raise RenderError(f"Failed to create PDF: {e}") from e

    def close(self):
        if self._browser:
            self._browser.close()
            self._browser = None
        if self._playwright:
            self._playwright.stop()
            self._playwright = None


def get_page_renderer(
    enabled: bool = True,
    page_format: str = "A4",
    margin: str = DEFAULT_MARGIN,
    timeout_ms: int = 30000,
) -> PlaywrightPageRenderer | None:
    """Factory; returns None when PDF output is turned off."""
    if not enabled:
        return None
    return PlaywrightPageRenderer(page_format=page_format, margin=margin, timeout_ms=timeout_ms)
