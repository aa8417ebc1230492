# product_analyzer/delegates/__init__.py

# This file makes the delegate classes directly available from the 'delegates' package.
# Instead of: from product_analyzer.delegates.gemini_delegate import GeminiDelegate
# We can now use: from product_analyzer.delegates import GeminiDelegate

from .web_scraper_delegate import WebScraperDelegate
from .gemini_delegate import GeminiDelegate
from .telemetry_delegate import TelemetryDelegate
from .file_manager_delegate import FileManagerDelegate
