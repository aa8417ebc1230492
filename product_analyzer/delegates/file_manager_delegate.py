# product_analyzer/delegates/file_manager_delegate.py
import json
import re
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from .. import config
from ..models import NormalizedResult, PageDocument, ProductRecord, TelemetryConfig

logger = logging.getLogger(__name__)

SNAPSHOT_URL_MARKER = re.compile(r'<!--\s*saved from url=(\S+?)\s*-->')
ASIN_PATTERN = re.compile(r'/(?:dp|gp/product)/([A-Z0-9]{10})(?:[/?]|$)', re.IGNORECASE)


def product_key(url: str) -> str:
    """The ASIN when the URL has one, otherwise a filesystem-safe slug of the URL path."""
    match = ASIN_PATTERN.search(url or "")
    if match:
        return match.group(1).upper()
    path = urlparse(url or "").path.strip("/") or "page"
    return re.sub(r'[^a-zA-Z0-9_-]', '_', path)[:80]


class FileManagerDelegate:
    """Handles all file system interactions: settings, page snapshots and saved analyses."""
    def __init__(self, base_path: Path):
        self.base_path = base_path
        self.settings_path = base_path / config.SETTINGS_FILE_NAME
        self.snapshots_path = base_path / "snapshots"
        self.analyses_path = base_path / "analyses"

        for p in [self.base_path, self.snapshots_path, self.analyses_path]:
            p.mkdir(parents=True, exist_ok=True)
        logger.debug("File manager initialized. Data will be stored in: %s", base_path)

    def load_settings(self) -> Dict[str, Any]:
        """Loads the stored credentials. A missing or unreadable file means 'nothing configured'."""
        if not self.settings_path.exists():
            logger.info("No settings file at %s; nothing configured yet.", self.settings_path)
            return {}
        try:
            with self.settings_path.open("r", encoding="utf-8") as f:
                settings = json.load(f)
        except json.JSONDecodeError as e:
            logger.error("Error decoding settings file %s: %s", self.settings_path, e)
            return {}
        if not isinstance(settings, dict):
            logger.error("Settings file %s does not hold a JSON object; ignoring it.", self.settings_path)
            return {}
        logger.debug("Loaded settings from: %s", self.settings_path.name)
        return settings

    def save_settings(self, api_key: str, telemetry: TelemetryConfig) -> Path:
        settings = {
            "geminiApiKey": api_key.strip(),
            "langfuseConfig": telemetry.to_dict(),
        }
        try:
            with self.settings_path.open("w", encoding="utf-8") as f:
                json.dump(settings, f, indent=2, ensure_ascii=False)
            logger.info("Saved settings to: %s", self.settings_path)
            return self.settings_path
        except Exception as e:
            logger.error("Failed to save settings to %s: %s", self.settings_path, e, exc_info=True)
            raise

    def save_snapshot(self, document: PageDocument) -> Path:
        """Saves the page HTML, tagged with its URL so it can be analyzed later without a browser."""
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")
        file_path = self.snapshots_path / f"{product_key(document.url)}_{timestamp}.html"
        with file_path.open("w", encoding="utf-8") as f:
            f.write(f"<!-- saved from url={document.url} -->\n")
            f.write(document.html)
        logger.info("Saved page snapshot to: %s", file_path)
        return file_path

    def load_snapshot(self, file_path: Path, url: Optional[str] = None) -> PageDocument:
        """Loads saved HTML. The URL comes from the argument or, failing that, from the snapshot marker."""
        with Path(file_path).open("r", encoding="utf-8") as f:
            html_content = f.read()
        if not url:
            match = SNAPSHOT_URL_MARKER.search(html_content[:2000])
            url = match.group(1) if match else ""
            if not url:
                logger.warning("Snapshot %s carries no URL and none was given.", file_path)
        logger.debug("Loaded %d characters of HTML from %s", len(html_content), file_path)
        return PageDocument(url=url, html=html_content)

    def save_analysis(self, record: ProductRecord, result: NormalizedResult) -> Path:
        """Saves the final analysis next to the product data it was built from."""
        file_path = self.analyses_path / f"{product_key(record.source_url)}.json"
        json_data = {"product": record.to_dict(), "analysis": result.to_json_dict()}
        try:
            with file_path.open("w", encoding="utf-8") as f:
                json.dump(json_data, f, indent=2, ensure_ascii=False)
            logger.info("Saved analysis for %s to %s", record.source_url, file_path.name)
            return file_path
        except TypeError as te:
            logger.error("TypeError during analysis JSON dump (unserializable object?): %s", te)
            raise
