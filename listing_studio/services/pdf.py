"""HTML to PDF conversion through a headless Chromium instance."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from functools import lru_cache

from playwright.async_api import async_playwright

from ..core.config import settings
from ..core.errors import DocumentRenderError

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"
DEFAULT_FILENAME = "listing.pdf"
LAUNCH_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]
PDF_MARGIN = {"top": "18mm", "right": "14mm", "bottom": "18mm", "left": "14mm"}
BROWSER_CLOSE_TIMEOUT_SECONDS = 10.0


@dataclass(slots=True)
class RenderedDocument:
    """Finished PDF plus the headers needed to serve it."""

    content: bytes
    filename: str = DEFAULT_FILENAME
    media_type: str = PDF_MEDIA_TYPE


class DocumentRenderer:
    """Render HTML to Letter-size PDFs, one fresh browser per call.

    At most ``max_concurrency`` browsers run at once, and each render is
    cancelled after ``timeout_seconds``. The browser is closed on every exit
    path, including timeouts.
    """

    def __init__(self, *, timeout_seconds: float, max_concurrency: int) -> None:
        self._timeout = timeout_seconds
        self._slots = asyncio.Semaphore(max_concurrency)

    async def render_pdf(self, html: str, filename: str = DEFAULT_FILENAME) -> RenderedDocument:
        async with self._slots:
            try:
                content = await asyncio.wait_for(self._render(html), timeout=self._timeout)
            except asyncio.TimeoutError as exc:
                logger.error("PDF render timed out after %.1fs", self._timeout)
                raise DocumentRenderError(f"PDF render exceeded {self._timeout}s") from exc
            except Exception as exc:  # noqa: BLE001 - every browser failure maps to one error
                logger.exception("PDF render failed")
                raise DocumentRenderError(str(exc)) from exc

        if not content:
            raise DocumentRenderError("Browser returned an empty PDF")

        logger.info("Rendered %s (%d bytes)", filename, len(content))
        return RenderedDocument(content=bytes(content), filename=filename)

    async def _render(self, html: str) -> bytes:
        async with async_playwright() as playwright:
            browser = await playwright.chromium.launch(headless=True, args=LAUNCH_ARGS)
            try:
                page = await browser.new_page()
                await page.set_content(html, wait_until="load")
                return await page.pdf(format="Letter", print_background=True, margin=PDF_MARGIN)
            finally:
                await _close_browser(browser)


async def _close_browser(browser) -> None:
    try:
        await asyncio.wait_for(browser.close(), timeout=BROWSER_CLOSE_TIMEOUT_SECONDS)
    except Exception as exc:  # noqa: BLE001 - must not mask the render outcome
        logger.warning("Failed to close browser cleanly: %s", exc)


@lru_cache
def get_document_renderer() -> DocumentRenderer:
    """FastAPI dependency returning the process-wide renderer."""

    return DocumentRenderer(
        timeout_seconds=settings.pdf_render_timeout_seconds,
        max_concurrency=settings.pdf_max_concurrency,
    )
