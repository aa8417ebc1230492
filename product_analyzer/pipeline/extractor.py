# product_analyzer/pipeline/extractor.py
import logging
import re
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from .. import config
from ..exceptions import UnsupportedSiteError
from ..models import PageDocument, ProductRecord

logger = logging.getLogger(__name__)

RATING_PATTERN = re.compile(r'(\d+\.?\d*)\s+out\s+of\s+5')


def _clean_text(text: Optional[str]) -> str:
    """Collapses runs of whitespace the way the page text shows up in the browser."""
    if not text:
        return ""
    return re.sub(r'\s+', ' ', text).strip()


def is_supported_domain(domain: str) -> bool:
    domain = (domain or "").lower()
    return domain == config.SUPPORTED_DOMAIN or domain.endswith("." + config.SUPPORTED_DOMAIN)


def is_supported_url(url: str) -> bool:
    """Cheap check on a URL typed by the user, before any browser is started."""
    return bool(re.match(config.SUPPORTED_URL_PATTERN, url or "", flags=re.IGNORECASE))


def looks_like_product_page(document: PageDocument) -> bool:
    url = document.url.lower()
    if any(indicator in url for indicator in config.PRODUCT_PAGE_INDICATORS):
        return True
    return bool(document.root.cssselect(config.PRODUCT_PAGE_MARKER_SELECTOR))


def first_text(document: PageDocument, selectors: Iterable[str]) -> str:
    """Returns the text of the first selector that matches a non-empty element."""
    for selector in selectors:
        elements = document.root.cssselect(selector)
        if not elements:
            continue
        text = _clean_text(elements[0].text_content())
        if text:
            logger.debug("Matched selector '%s': %s", selector, text[:80])
            return text
    return ""


def collect_image_urls(document: PageDocument) -> List[str]:
    urls = []
    for img in document.root.cssselect(config.IMAGE_SELECTOR):
        src = img.get('src') or img.get('data-src')
        if src:
            urls.append(src)
    return urls


def parse_rating(text: str) -> Optional[float]:
    """Parses "4.3 out of 5 stars" into 4.3. Anything else, or a value outside [0, 5], gives None."""
    match = RATING_PATTERN.search(text or "")
    if not match:
        return None
    try:
        value = float(match.group(1))
    except ValueError:
        return None
    if 0 <= value <= 5:
        return value
    logger.debug("Ignoring out-of-range rating text: %s", text)
    return None


def collect_reviews(document: PageDocument) -> List[str]:
    reviews = []
    for node in document.root.cssselect(config.REVIEW_SELECTOR):
        text = _clean_text(node.text_content())
        if len(text) > config.MIN_REVIEW_LENGTH:
            reviews.append(text)
    return reviews


def collect_specifications(document: PageDocument) -> Dict[str, str]:
    specs: Dict[str, str] = {}
    for row in document.root.cssselect(config.SPECIFICATION_ROW_SELECTOR):
        cells = row.cssselect('th, td')
        if len(cells) < 2:
            continue
        key = _clean_text(cells[0].text_content())
        value = _clean_text(cells[1].text_content())
        if key and value:
            specs[key] = value
    return specs


def extract(document: PageDocument) -> ProductRecord:
    """
    Builds a ProductRecord from a product page.

    Raises UnsupportedSiteError, without parsing the page, when the page is not
    from the supported merchant. Otherwise never fails: fields that no selector
    matches keep their empty default.
    """
    domain = document.domain
    if not is_supported_domain(domain):
        logger.warning("Refusing to extract from unsupported domain: %s", domain or "<none>")
        raise UnsupportedSiteError(domain, config.SUPPORTED_DOMAIN)

    if not looks_like_product_page(document):
        logger.warning("%s does not look like a product page; extraction may be sparse.", document.url)

    rating_text = first_text(document, [config.RATING_SELECTOR])
    record = ProductRecord(
        source_url=document.url,
        domain=domain,
        extracted_at=datetime.now(timezone.utc).isoformat(),
        title=first_text(document, config.TITLE_SELECTORS),
        price_text=first_text(document, config.PRICE_SELECTORS),
        description_text=first_text(document, config.DESCRIPTION_SELECTORS),
        image_urls=tuple(collect_image_urls(document)),
        brand=first_text(document, config.BRAND_SELECTORS),
        rating_value=parse_rating(rating_text),
        review_texts=tuple(collect_reviews(document)),
        availability=first_text(document, config.AVAILABILITY_SELECTORS),
        specifications=collect_specifications(document),
    )

    missing = [name for name in ("title", "price_text", "description_text", "brand") if not getattr(record, name)]
    if missing:
        logger.info("Degraded record for %s, no match for: %s", document.url, ", ".join(missing))
    logger.debug(
        "Extracted %d images, %d reviews, %d specifications, rating=%s",
        len(record.image_urls), len(record.review_texts), len(record.specifications), record.rating_value,
    )
    return record
