# product_analyzer/pipeline/normalizer.py
import json
import logging
import math
import re
from functools import lru_cache
from typing import Any, Dict, List, Optional, Tuple

import json5

from ..models import DEFAULT_RATING, NOT_AVAILABLE, NormalizedResult, PriceQuote

logger = logging.getLogger(__name__)

PRODUCT_NAME_KEYS = ("Product name", "Product_name")
DESCRIPTION_KEYS = ("Description", "description")

CODE_FENCE_PATTERN = re.compile(r'```[a-zA-Z0-9]*[ \t]*\n?(.*?)\n?[ \t]*```', re.DOTALL)
BULLET_PATTERN = re.compile(r'^\s*(?:[-•*–]|\d+[.)])\s*')
PRICE_LINE_PATTERN = re.compile(r'^(?P<site>.+?)\s*(?::|\s[-–]\s)\s*(?P<price>.+)$')
RATING_PATTERNS = [
    re.compile(r'rating[:\s]*(\d+\.?\d*)/5', re.IGNORECASE),
    re.compile(r'(\d+\.?\d*)/5', re.IGNORECASE),
    re.compile(r'(\d+\.?\d*)\s+out\s+of\s+5', re.IGNORECASE),
]
NUMBER_PATTERN = re.compile(r'-?\d+(?:\.\d+)?')
GENERIC_HEADING_PATTERN = re.compile(r'^[*_]*[A-Za-z][\w ]{0,40}[*_]*:(?!//)')

# Headings the free-text heuristics look for, in order of preference per field.
NAME_LABELS = ("Product name", "Product")
DESCRIPTION_LABELS = ("Product Overview", "Description", "Overview")
PROS_LABELS = ("Pros", "Advantages")
CONS_LABELS = ("Cons", "Disadvantages")
JUSTIFICATION_LABELS = ("Justification", "Rating justification")
PRICE_LABELS = ("Current price", "Price")
PRICE_QUOTE_LABELS = ("Other website prices", "Price comparison", "Other prices", "Prices on other sites")
RECOMMENDATION_LABELS = ("Recommendations", "Alternatives")
HEADING_LABELS = (
    NAME_LABELS + DESCRIPTION_LABELS + PROS_LABELS + CONS_LABELS + ("Rating",)
    + JUSTIFICATION_LABELS + PRICE_LABELS + PRICE_QUOTE_LABELS + RECOMMENDATION_LABELS
)


# --- Strict (JSON) phase ---

def _strip_code_fence(text: str) -> str:
    match = CODE_FENCE_PATTERN.search(text)
    return match.group(1) if match else text


def parse_json_object(raw_text: Optional[str]) -> Optional[Dict[str, Any]]:
    """Returns the model output as a dict, or None when it is not a JSON object."""
    candidate = _strip_code_fence(raw_text or "").strip()
    if not candidate:
        return None
    try:
        data = json.loads(candidate)
    except ValueError:
        logger.debug("Strict JSON parse failed, retrying with json5.")
        try:
            data = json5.loads(candidate)
        except Exception as e:  # noqa: BLE001 - json5 reports some malformed input with non-ValueError types
            logger.debug("json5 parse failed as well: %s", e)
            return None
    if not isinstance(data, dict):
        logger.debug("Model output parsed to %s, not an object.", type(data).__name__)
        return None
    return data


def _as_text(value: Any) -> str:
    if value is None or isinstance(value, bool):
        return NOT_AVAILABLE
    if isinstance(value, str):
        return value.strip() or NOT_AVAILABLE
    if isinstance(value, (list, tuple)):
        parts = [_as_text(v) for v in value]
        return ", ".join(p for p in parts if p != NOT_AVAILABLE) or NOT_AVAILABLE
    return str(value)


def _as_text_list(value: Any) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        value = [value]
    items = []
    for item in value:
        text = _as_text(item)
        if text != NOT_AVAILABLE:
            items.append(text)
    return tuple(items)


def clamp_rating(value: float) -> float:
    if math.isnan(value) or math.isinf(value):
        return DEFAULT_RATING
    return min(5.0, max(1.0, value))


def _as_rating(value: Any) -> float:
    if isinstance(value, bool) or value is None:
        return DEFAULT_RATING
    if isinstance(value, (int, float)):
        return clamp_rating(float(value))
    if isinstance(value, str):
        match = NUMBER_PATTERN.search(value)
        if match:
            return clamp_rating(float(match.group(0)))
    return DEFAULT_RATING


def _parse_price_line(line: str) -> Optional[PriceQuote]:
    match = PRICE_LINE_PATTERN.match(BULLET_PATTERN.sub('', line).strip())
    if not match:
        return None
    site = match.group('site').strip(' *_')
    price = match.group('price').strip(' *_')
    if not site or not price:
        return None
    return PriceQuote(site=site, price=price)


def _as_price_quotes(value: Any) -> Tuple[PriceQuote, ...]:
    if isinstance(value, dict):
        # {"Flipkart": "₹999", ...}
        value = [{"site": k, "price": v} for k, v in value.items()]
    if not isinstance(value, (list, tuple)):
        return ()
    quotes = []
    for entry in value:
        if isinstance(entry, dict):
            site, price = entry.get("site"), entry.get("price")
            if site is None and price is None:
                continue
            quotes.append(PriceQuote(site=_as_text(site), price=_as_text(price)))
        elif isinstance(entry, str):
            quote = _parse_price_line(entry)
            if quote:
                quotes.append(quote)
    return tuple(quotes)


def _first_present(data: Dict[str, Any], keys) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def from_json_object(data: Dict[str, Any]) -> NormalizedResult:
    """Maps a parsed model answer onto NormalizedResult, defaulting whatever is missing."""
    absent = [key for key in ("pros", "cons", "rating", "ratingJustification", "Current price",
                              "otherWebsitePrices", "recommendations") if key not in data]
    if _first_present(data, PRODUCT_NAME_KEYS) is None:
        absent.append("Product name")
    if _first_present(data, DESCRIPTION_KEYS) is None:
        absent.append("Description")
    if absent:
        logger.info("Model answer is missing fields, using defaults for: %s", ", ".join(absent))

    return NormalizedResult(
        product_name=_as_text(_first_present(data, PRODUCT_NAME_KEYS)),
        description=_as_text(_first_present(data, DESCRIPTION_KEYS)),
        pros=_as_text_list(data.get("pros")),
        cons=_as_text_list(data.get("cons")),
        rating=_as_rating(data.get("rating")),
        rating_justification=_as_text(data.get("ratingJustification")),
        current_price=_as_text(data.get("Current price")),
        other_website_prices=_as_price_quotes(data.get("otherWebsitePrices")),
        recommendations=_as_text(data.get("recommendations")),
    )


# --- Heuristic (free text) phase ---

@lru_cache(maxsize=None)
def _heading_pattern(label: str) -> re.Pattern:
    word = r'\s+'.join(re.escape(part) for part in label.split())
    return re.compile(
        r'^[ \t>#*_\-\d.)]*' + word + r'\b[ \t*_]*(?:[:\-–][ \t*_]*(?P<rest>[^\n]*)|$)',
        re.IGNORECASE | re.MULTILINE,
    )


def _clean_line(line: str) -> str:
    return BULLET_PATTERN.sub('', line).strip().strip('*_').strip()


def _looks_like_heading(line: str, any_label: bool = True) -> bool:
    """
    Whether a non-bullet line opens a new section: a Markdown heading, a line
    ending in a colon, one of the labels we look for, or (with any_label) any
    short "Label: ..." line.
    """
    if BULLET_PATTERN.match(line) and not line.startswith('**'):
        return False
    if line.startswith('#') or line.rstrip('*_ ').endswith(':'):
        return True
    if any(_heading_pattern(label).match(line) for label in HEADING_LABELS):
        return True
    return any_label and bool(GENERIC_HEADING_PATTERN.match(line))


def _following_lines(text: str, pos: int, any_label: bool = True) -> List[str]:
    """The paragraph after a heading: non-blank lines up to a blank line or the next heading."""
    lines = []
    for line in text[pos:].split('\n')[1:]:
        stripped = line.strip()
        if not stripped:
            if lines:
                break
            continue
        if _looks_like_heading(stripped, any_label):
            break
        cleaned = _clean_line(stripped)
        if cleaned:
            lines.append(cleaned)
    return lines


def extract_section(text: str, *labels: str) -> str:
    """Returns the line of text that follows the first matching heading, or "N/A"."""
    for label in labels:
        match = _heading_pattern(label).search(text or "")
        if not match:
            continue
        rest = _clean_line(match.group('rest') or "")
        if rest:
            return rest
        following = _following_lines(text, match.end())
        if following:
            return following[0]
    return NOT_AVAILABLE


def extract_list(text: str, *labels: str) -> List[str]:
    """Returns the bullet-stripped lines under the first matching heading, or ["N/A"]."""
    for label in labels:
        match = _heading_pattern(label).search(text or "")
        if not match:
            continue
        rest = _clean_line(match.group('rest') or "")
        items = ([rest] if rest else []) + _following_lines(text, match.end())
        if items:
            return items
    return [NOT_AVAILABLE]


def extract_rating(text: str) -> float:
    """Tries "rating: X/5", then "X/5", then "X out of 5"; the first value in [1, 5] wins."""
    for pattern in RATING_PATTERNS:
        match = pattern.search(text or "")
        if not match:
            continue
        try:
            rating = float(match.group(1))
        except ValueError:
            continue
        if 1 <= rating <= 5:
            return rating
    return DEFAULT_RATING


def extract_price_quotes(text: str) -> List[PriceQuote]:
    for label in PRICE_QUOTE_LABELS:
        match = _heading_pattern(label).search(text or "")
        if not match:
            continue
        # "Site: price" lines are the items here, not headings
        lines = _following_lines(text, match.end(), any_label=False)
        quotes = [q for q in (_parse_price_line(line) for line in lines) if q]
        if quotes:
            return quotes
    return []


def from_free_text(text: str) -> NormalizedResult:
    return NormalizedResult(
        product_name=extract_section(text, *NAME_LABELS),
        description=extract_section(text, *DESCRIPTION_LABELS),
        pros=tuple(extract_list(text, *PROS_LABELS)),
        cons=tuple(extract_list(text, *CONS_LABELS)),
        rating=extract_rating(text),
        rating_justification=extract_section(text, *JUSTIFICATION_LABELS),
        current_price=extract_section(text, *PRICE_LABELS),
        other_website_prices=tuple(extract_price_quotes(text)),
        recommendations=extract_section(text, *RECOMMENDATION_LABELS),
    )


def normalize(raw_text: Optional[str]) -> NormalizedResult:
    """
    Turns the model's raw answer into a NormalizedResult. Never raises: a JSON
    object is mapped field by field, anything else goes through the text
    heuristics, and whatever cannot be found gets its default.
    """
    data = parse_json_object(raw_text)
    if data is not None:
        logger.debug("Model answer parsed as JSON with keys: %s", list(data))
        return from_json_object(data)
    logger.warning("Model answer is not a JSON object; falling back to text heuristics.")
    return from_free_text(raw_text or "")
