import pytest

from product_analyzer.exceptions import UnsupportedSiteError
from product_analyzer.models import PageDocument
from product_analyzer.pipeline.extractor import extract, is_supported_url, parse_rating

from conftest import PRODUCT_HTML, PRODUCT_URL


def test_extract_reads_every_field(product_document):
    record = extract(product_document)

    assert record.source_url == PRODUCT_URL
    assert record.domain == "www.amazon.in"
    assert record.title == "Widget X Pro"
    assert record.price_text == "999."
    assert record.description_text == "Long battery life Weighs only 120 g"
    assert record.brand == "Visit the Acme Store"
    assert record.availability == "In stock"
    assert record.rating_value == 4.3
    assert record.image_urls == (
        "https://m.media-amazon.com/images/I/one.jpg",
        "https://m.media-amazon.com/images/I/two.jpg",
    )
    assert record.review_texts == (
        "Great product, works exactly as described.",
        "Battery easily lasts two days for me.",
    )
    assert record.specifications == {"Brand": "Acme", "Colour": "Black"}
    assert record.extracted_at.endswith("+00:00")


def test_record_specifications_are_read_only(product_document):
    record = extract(product_document)

    with pytest.raises(TypeError):
        record.specifications["Colour"] = "Red"
    assert record.to_dict()["specifications"] == {"Brand": "Acme", "Colour": "Black"}


def test_title_falls_back_to_later_selectors():
    html = '<html><body><span id="productTitle">   </span><h1 class="a-size-large">Fallback Title</h1></body></html>'
    record = extract(PageDocument(url=PRODUCT_URL, html=html))
    assert record.title == "Fallback Title"


@pytest.mark.parametrize("html", ["", "<html><body><p>nothing here</p></body></html>"])
def test_extraction_on_supported_domain_is_total(html):
    record = extract(PageDocument(url="https://www.amazon.in/dp/B0ABCDEF12", html=html))

    assert record.title == ""
    assert record.price_text == ""
    assert record.description_text == ""
    assert record.brand == ""
    assert record.availability == ""
    assert record.image_urls == ()
    assert record.review_texts == ()
    assert record.rating_value is None
    assert record.specifications == {}


@pytest.mark.parametrize("url", [
    "https://www.flipkart.com/widget/p/itm123",
    "https://notamazon.in.example.com/dp/B0ABCDEF12",
    "https://evilamazon.in/dp/B0ABCDEF12",
    "not a url",
])
def test_unsupported_domain_is_rejected_without_parsing(url):
    document = PageDocument(url=url, html=PRODUCT_HTML)

    with pytest.raises(UnsupportedSiteError):
        extract(document)

    # `root` is a cached property: it only shows up in __dict__ once the HTML was parsed.
    assert "root" not in document.__dict__


def test_subdomains_of_supported_merchant_are_accepted():
    record = extract(PageDocument(url="https://m.amazon.in/dp/B0ABCDEF12", html=PRODUCT_HTML))
    assert record.domain == "m.amazon.in"
    assert record.title == "Widget X Pro"


@pytest.mark.parametrize("text, expected", [
    ("4.3 out of 5 stars", 4.3),
    ("5 out of 5", 5.0),
    ("0 out of 5 stars", 0.0),
    ("7 out of 5", None),
    ("4.3 stars", None),
    ("", None),
])
def test_parse_rating(text, expected):
    assert parse_rating(text) == expected


def test_short_reviews_are_dropped():
    html = (
        '<html><body>'
        '<span class="review-text-content">0123456789</span>'
        '<span class="review-text-content">01234567890</span>'
        '</body></html>'
    )
    record = extract(PageDocument(url=PRODUCT_URL, html=html))
    assert record.review_texts == ("01234567890",)


@pytest.mark.parametrize("url, expected", [
    ("https://www.amazon.in/dp/B0ABCDEF12", True),
    ("http://www.amazon.in/gp/product/B0ABCDEF12", True),
    ("https://www.amazon.com/dp/B0ABCDEF12", False),
    ("https://amazon.in/dp/B0ABCDEF12", False),
    ("", False),
])
def test_is_supported_url(url, expected):
    assert is_supported_url(url) is expected
