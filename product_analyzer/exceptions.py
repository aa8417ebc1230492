# product_analyzer/exceptions.py
from typing import Optional


class ProductAnalyzerError(Exception):
    """Base class for every failure that should be shown to the user as a single message."""


class UnsupportedSiteError(ProductAnalyzerError):
    """The page does not belong to the supported merchant."""

    def __init__(self, domain: str, supported: str):
        self.domain = domain
        super().__init__(f"This tool only works on {supported} product pages (got '{domain or 'unknown host'}').")


class PageLoadError(ProductAnalyzerError):
    """The browser could not load the product page."""


class InvalidCredentialsError(ProductAnalyzerError):
    """No Gemini API key has been configured."""

    def __init__(self, message: str = "A Gemini API key is required. Save one with --save-settings --api-key <KEY>."):
        super().__init__(message)


class UpstreamAPIError(ProductAnalyzerError):
    """The Gemini endpoint answered with a non-success status."""

    def __init__(self, status: int, message: str):
        self.status = status
        self.message = message
        super().__init__(f"API Error ({status}): {message}")


class UpstreamUnavailableError(ProductAnalyzerError):
    """Neither the primary nor the fallback model could be reached."""

    def __init__(self, models, cause: Optional[BaseException] = None):
        self.models = list(models)
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Could not reach the analysis service (tried {', '.join(self.models)}){detail}")


class MalformedUpstreamResponseError(ProductAnalyzerError):
    """A success response did not contain candidates[0].content.parts[0].text."""

    def __init__(self, message: str = "Invalid response from Gemini API"):
        super().__init__(message)
