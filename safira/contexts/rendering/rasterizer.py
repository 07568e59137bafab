"""
Document Rasterizer

Turns a self-contained HTML document into a fixed-page A4 PDF using a real
layout engine. The engine is a long-lived headless Chromium process; every
capture gets its own browser context and page, which are torn down after the
capture even on failure.
"""

import asyncio
import os
import time
from abc import ABC, abstractmethod
from typing import List, Optional

from dotenv import load_dotenv
from playwright.async_api import Browser, BrowserContext, Playwright, Route, async_playwright
from playwright.async_api import Error as PlaywrightError

from safira.contexts.rendering.logger import (
    _log_debug,
    _log_warning,
    log_engine_closed,
    log_engine_failure,
    log_engine_launched,
)
from safira.exceptions import EngineUnavailableError, RasterizeError

load_dotenv()

DEFAULT_BROWSER_ARGS = "--no-sandbox,--disable-setuid-sandbox,--disable-dev-shm-usage,--disable-gpu"
BROWSER_ARGS = [
    arg.strip() for arg in os.getenv("SAFIRA_BROWSER_ARGS", DEFAULT_BROWSER_ARGS).split(",") if arg.strip()
]
RENDER_TIMEOUT_MS = int(os.getenv("SAFIRA_RENDER_TIMEOUT_MS", "30000"))

PDF_MAGIC = b"%PDF-"
ZERO_MARGIN = {"top": "0", "right": "0", "bottom": "0", "left": "0"}


class DocumentRasterizer(ABC):
    """
    Abstract base for HTML -> PDF engines.

    Contract for implementations:
    - launch() starts the engine; failures raise EngineUnavailableError
    - rasterize() runs in an isolated context, returns a complete PDF buffer,
      raises RasterizeError on transient failure and EngineUnavailableError
      when the engine itself is gone
    - close() is idempotent
    """

    name: str = "engine"

    @abstractmethod
    async def launch(self) -> None:
        """Start the engine process."""

    @abstractmethod
    async def rasterize(self, html: str) -> bytes:
        """Render one HTML document to PDF bytes."""

    @abstractmethod
    async def close(self) -> None:
        """Stop the engine process."""

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Whether the engine is launched and still alive."""


async def _abort_request(route: Route) -> None:
    """Documents are self-contained; any outgoing request is blocked."""
    await route.abort()


class PlaywrightRasterizer(DocumentRasterizer):
    """Headless Chromium driven through the Playwright async API."""

    name = "chromium"

    def __init__(self, browser_args: Optional[List[str]] = None, timeout_ms: int = RENDER_TIMEOUT_MS):
        """
        Args:
            browser_args: Chromium command-line flags. Defaults to SAFIRA_BROWSER_ARGS
            timeout_ms: Upper bound for one capture (content load + PDF export)
        """
        self.browser_args = list(BROWSER_ARGS if browser_args is None else browser_args)
        self.timeout_ms = timeout_ms
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None

    @property
    def is_connected(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    async def launch(self) -> None:
        """
        Launch headless Chromium.

        Raises:
            EngineUnavailableError: If Playwright or the browser cannot start
        """
        if self.is_connected:
            return

        start_time = time.time()
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(headless=True, args=self.browser_args)
        except PlaywrightError as e:
            log_engine_failure(self.name, e)
            await self.close()
            raise EngineUnavailableError(original_error=e) from e

        log_engine_launched(self.name, time.time() - start_time)

    async def rasterize(self, html: str) -> bytes:
        """
        Render HTML to an A4 PDF with zero margins and backgrounds painted.

        Args:
            html: Self-contained HTML document

        Returns:
            PDF bytes, always starting with %PDF-

        Raises:
            RasterizeError: Timeout, page crash or invalid output
            EngineUnavailableError: Browser not launched or disconnected
        """
        if not self.is_connected:
            raise EngineUnavailableError()

        try:
            pdf = await asyncio.wait_for(self._capture(html), timeout=self.timeout_ms / 1000)
        except asyncio.TimeoutError as e:
            raise RasterizeError("PDF export timed out.", original_error=e) from e
        except PlaywrightError as e:
            if not self.is_connected:
                log_engine_failure(self.name, e)
                raise EngineUnavailableError(original_error=e) from e
            raise RasterizeError(original_error=e) from e

        if not pdf or not pdf.startswith(PDF_MAGIC):
            raise RasterizeError("PDF export produced an invalid document.")
        return pdf

    async def _capture(self, html: str) -> bytes:
        context = await self._browser.new_context()
        try:
            page = await context.new_page()
            await page.route("**/*", _abort_request)
            await page.set_content(html, wait_until="networkidle", timeout=self.timeout_ms)
            await page.emulate_media(media="print")
            return await page.pdf(
                format="A4",
                margin=ZERO_MARGIN,
                print_background=True,
                prefer_css_page_size=True,
            )
        finally:
            await self._close_context(context)

    async def _close_context(self, context: BrowserContext) -> None:
        try:
            await context.close()
        except PlaywrightError as e:
            _log_warning(f"Failed to close browser context: {type(e).__name__}")
            _log_debug(f"  {e}")

    async def close(self) -> None:
        """Close the browser and stop Playwright. Safe to call repeatedly."""
        browser, playwright = self._browser, self._playwright
        self._browser, self._playwright = None, None

        if browser is not None:
            try:
                await browser.close()
            except PlaywrightError as e:
                _log_warning(f"Browser close failed: {type(e).__name__}")
        if playwright is not None:
            try:
                await playwright.stop()
            except PlaywrightError as e:
                _log_warning(f"Playwright stop failed: {type(e).__name__}")

        if browser is not None:
            log_engine_closed(self.name)
