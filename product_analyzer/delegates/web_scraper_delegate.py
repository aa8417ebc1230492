# product_analyzer/delegates/web_scraper_delegate.py
import logging
from playwright.async_api import async_playwright, Playwright, Browser, BrowserContext
from typing import Dict, Optional

from ..exceptions import PageLoadError
from ..models import PageDocument

logger = logging.getLogger(__name__)

class WebScraperDelegate:
    """Handles loading a product page in a headless browser and returning its rendered HTML."""
    def __init__(self, user_agent: str, viewport: Dict, headless: bool = True):
        self.user_agent = user_agent
        self.viewport = viewport
        self.headless = headless
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None

    async def __aenter__(self):
        logger.debug("Starting Playwright and launching browser...")
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(headless=self.headless)
        self._context = await self._browser.new_context(
            user_agent=self.user_agent,
            viewport=self.viewport,
            locale="en-IN",
        )
        logger.debug("Playwright browser launched and context created.")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        logger.debug("Closing browser, context, and stopping Playwright...")
        if self._context:
            await self._context.close()
        if self._browser:
            await self._browser.close()
        if self._playwright:
            await self._playwright.stop()
        logger.debug("Playwright resources released.")

    async def get_page(self, url: str, timeout: int) -> PageDocument:
        """
        Navigates to the product page and returns its rendered HTML together with
        the final URL (after any redirects), which is what the extractor checks.
        """
        if not self._context:
            raise PageLoadError("Browser context not initialized. Use WebScraperDelegate with 'async with'.")

        page = await self._context.new_page()
        try:
            logger.info("Navigating to product page: %s", url)
            await page.goto(url, wait_until="domcontentloaded", timeout=timeout)
            try:
                # The title is rendered server-side; waiting for it avoids reading a half-built DOM.
                await page.wait_for_selector("#productTitle", timeout=min(timeout, 10000))
            except Exception as e:
                logger.debug("Product title did not appear (%s); continuing with whatever loaded.", e)
            html_content = await page.content()
            final_url = page.url
            logger.info("Fetched %d characters of HTML from %s.", len(html_content), final_url)
            return PageDocument(url=final_url, html=html_content)
        except Exception as e:
            logger.error("Failed to load page HTML from %s: %s", url, e)
            raise PageLoadError(f"Could not load {url}: {e}") from e
        finally:
            await page.close()
