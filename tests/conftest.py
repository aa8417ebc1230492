import json

import httpx
import pytest

from product_analyzer.models import PageDocument, ProductRecord

PRODUCT_URL = "https://www.amazon.in/Widget-X-Pro/dp/B0ABCDEF12/ref=sr_1_1"

PRODUCT_HTML = """<!DOCTYPE html>
<html>
<head><title>Widget X Pro : Amazon.in</title></head>
<body>
  <div id="centerCol">
    <h1 id="title"><span id="productTitle">
        Widget X Pro
    </span></h1>
    <a id="bylineInfo" href="/stores/Acme">Visit the Acme Store</a>
    <span class="a-price"><span class="a-price-whole">999.</span></span>
    <div id="availability"><span> In stock </span></div>
    <div id="feature-bullets">
      <ul>
        <li>Long battery life</li>
        <li>Weighs only 120 g</li>
      </ul>
    </div>
    <i class="a-icon a-icon-star"><span class="a-icon-alt">4.3 out of 5 stars</span></i>
  </div>
  <div id="imgTagWrapperId">
    <img id="landingImage" src="https://m.media-amazon.com/images/I/one.jpg">
  </div>
  <img class="a-dynamic-image" data-src="https://m.media-amazon.com/images/I/two.jpg">
  <img class="a-dynamic-image">
  <table id="productDetails_techSpec_section_1">
    <tr><th>Brand</th><td>Acme</td></tr>
    <tr><th>Colour</th><td> Black </td></tr>
    <tr><td>lonely cell</td></tr>
  </table>
  <div id="cm-cr-dp-review-list">
    <span class="review-text-content"><span>Great product, works exactly as described.</span></span>
    <span class="review-text-content"><span>Ok</span></span>
    <div class="a-expander-content">Battery easily lasts two days for me.</div>
  </div>
</body>
</html>
"""

SAMPLE_ANSWER = {
    "Product name": "Widget X Pro",
    "Description": "A compact widget with a long battery life.",
    "pros": ["Long battery life", "Lightweight", "Affordable"],
    "cons": ["Average build quality", "No charger in box"],
    "rating": 4.2,
    "ratingJustification": "Good value for the price.",
    "Current price": "₹999",
    "otherWebsitePrices": [
        {"site": "Flipkart", "price": "₹1,049"},
        {"site": "Croma", "price": "₹1,099"},
    ],
    "recommendations": "Consider the Widget Y for better build quality.",
}


def gemini_success(text: str) -> httpx.Response:
    return httpx.Response(
        200,
        json={"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}, "finishReason": "STOP"}]},
    )


@pytest.fixture
def product_document() -> PageDocument:
    return PageDocument(url=PRODUCT_URL, html=PRODUCT_HTML)


@pytest.fixture
def product_record() -> ProductRecord:
    return ProductRecord(
        source_url="https://www.amazon.in/dp/ABC",
        domain="www.amazon.in",
        extracted_at="2026-01-01T00:00:00+00:00",
        title="Widget X",
        price_text="₹999",
        brand="Acme",
        rating_value=4.3,
    )


@pytest.fixture
def sample_answer_text() -> str:
    return json.dumps(SAMPLE_ANSWER, ensure_ascii=False)
