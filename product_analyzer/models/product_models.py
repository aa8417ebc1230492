# product_analyzer/models/product_models.py

import os
from dataclasses import dataclass, field, fields
from functools import cached_property
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import urlparse

from lxml import html as lxml_html

from .. import config

NOT_AVAILABLE = "N/A"
DEFAULT_RATING = 3.0


@dataclass
class PageDocument:
    """
    A loaded product page: where it came from and its raw HTML.
    The HTML is only parsed the first time something reads `root`.
    """
    url: str
    html: str

    @property
    def domain(self) -> str:
        return (urlparse(self.url).hostname or "").lower()

    @cached_property
    def root(self) -> lxml_html.HtmlElement:
        if not self.html or not self.html.strip():
            return lxml_html.document_fromstring("<html><body></body></html>")
        return lxml_html.document_fromstring(self.html)


@dataclass(frozen=True)
class ProductRecord:
    """
    Everything we scraped from one product page. Fields that could not be
    found keep their empty default, so the record is always complete.
    """
    source_url: str
    domain: str
    extracted_at: str
    title: str = ""
    price_text: str = ""
    description_text: str = ""
    image_urls: Tuple[str, ...] = ()
    brand: str = ""
    rating_value: Optional[float] = None
    review_texts: Tuple[str, ...] = ()
    availability: str = ""
    specifications: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "specifications", MappingProxyType(dict(self.specifications)))

    def to_dict(self) -> Dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["image_urls"] = list(self.image_urls)
        data["review_texts"] = list(self.review_texts)
        data["specifications"] = dict(self.specifications)
        return data


@dataclass(frozen=True)
class PriceQuote:
    site: str
    price: str


@dataclass(frozen=True)
class NormalizedResult:
    """
    The fixed nine-field analysis shown to the user. Every field is always
    populated; unknown values are "N/A" or an empty sequence.
    """
    product_name: str = NOT_AVAILABLE
    description: str = NOT_AVAILABLE
    pros: Tuple[str, ...] = ()
    cons: Tuple[str, ...] = ()
    rating: float = DEFAULT_RATING
    rating_justification: str = NOT_AVAILABLE
    current_price: str = NOT_AVAILABLE
    other_website_prices: Tuple[PriceQuote, ...] = ()
    recommendations: str = NOT_AVAILABLE

    def to_json_dict(self) -> Dict[str, Any]:
        """Returns the result using the exact key names the model is asked to produce."""
        return {
            "Product name": self.product_name,
            "Description": self.description,
            "pros": list(self.pros),
            "cons": list(self.cons),
            "rating": self.rating,
            "ratingJustification": self.rating_justification,
            "Current price": self.current_price,
            "otherWebsitePrices": [{"site": q.site, "price": q.price} for q in self.other_website_prices],
            "recommendations": self.recommendations,
        }


@dataclass(frozen=True)
class TelemetryConfig:
    """Langfuse credentials. Telemetry is only sent when all three are set."""
    secret_key: str = ""
    public_key: str = ""
    host: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.secret_key and self.public_key and self.host)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "TelemetryConfig":
        data = data or {}
        return cls(
            secret_key=str(data.get("secretKey") or "").strip(),
            public_key=str(data.get("publicKey") or "").strip(),
            host=str(data.get("host") or "").strip(),
        )

    def to_dict(self) -> Dict[str, str]:
        return {"secretKey": self.secret_key, "publicKey": self.public_key, "host": self.host}


@dataclass(frozen=True)
class AnalysisSession:
    """
    The credentials for one run. Built once at startup from the settings
    store and handed to each step instead of living in module globals.
    """
    api_key: str = ""
    telemetry: TelemetryConfig = field(default_factory=TelemetryConfig)

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any], environ: Optional[Mapping[str, str]] = None) -> "AnalysisSession":
        environ = os.environ if environ is None else environ
        stored = TelemetryConfig.from_dict(settings.get("langfuseConfig"))
        telemetry = TelemetryConfig(
            secret_key=environ.get(config.ENV_LANGFUSE_SECRET_KEY) or stored.secret_key,
            public_key=environ.get(config.ENV_LANGFUSE_PUBLIC_KEY) or stored.public_key,
            host=environ.get(config.ENV_LANGFUSE_HOST) or stored.host,
        )
        api_key = environ.get(config.ENV_API_KEY) or str(settings.get("geminiApiKey") or "").strip()
        return cls(api_key=api_key, telemetry=telemetry)

    def describe(self) -> List[str]:
        """Non-secret summary lines, safe to log."""
        return [
            f"api key: {'set (%d chars)' % len(self.api_key) if self.api_key else 'missing'}",
            f"telemetry: {'enabled -> ' + self.telemetry.host if self.telemetry.is_complete else 'disabled'}",
        ]
