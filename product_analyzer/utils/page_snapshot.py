# product_analyzer/utils/page_snapshot.py
import logging
from pathlib import Path

from .. import config
from ..delegates import FileManagerDelegate, WebScraperDelegate
from ..exceptions import UnsupportedSiteError
from ..pipeline.extractor import is_supported_url

logger = logging.getLogger(__name__) # Use the existing root logger config from run_analyzer.py

async def capture_snapshot(url: str, file_manager: FileManagerDelegate, timeout_ms: int = config.REQUEST_TIMEOUT) -> Path:
    """
    Loads a product page in the headless browser and saves its rendered HTML,
    so that it can be analyzed later with --html-file (or used as a test fixture).
    """
    if not is_supported_url(url):
        raise UnsupportedSiteError(url, config.SUPPORTED_DOMAIN)

    logger.info(f"Starting snapshot capture for URL: {url}")
    async with WebScraperDelegate(user_agent=config.USER_AGENT, viewport=config.VIEWPORT) as web_scraper:
        document = await web_scraper.get_page(url, timeout_ms)

    output_file = file_manager.save_snapshot(document)
    logger.info(f"Snapshot complete: {output_file}")
    return output_file
