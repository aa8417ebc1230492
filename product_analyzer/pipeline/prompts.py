"""
Product Analysis Prompt
=======================

Builds the analyst prompt sent to Gemini and the JSON Schema used to
constrain its answer. Both describe the same nine-field shape that
`NormalizedResult.to_json_dict()` produces.
"""

from ..models import NOT_AVAILABLE, ProductRecord

RESPONSE_FIELDS = [
    "Product name",
    "Description",
    "pros",
    "cons",
    "rating",
    "ratingJustification",
    "Current price",
    "otherWebsitePrices",
    "recommendations",
]

RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        "Product name": {"type": "string"},
        "Description": {"type": "string"},
        "pros": {"type": "array", "items": {"type": "string"}},
        "cons": {"type": "array", "items": {"type": "string"}},
        "rating": {"type": "number"},
        "ratingJustification": {"type": "string"},
        "Current price": {"type": "string"},
        "otherWebsitePrices": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "site": {"type": "string"},
                    "price": {"type": "string"},
                },
                "required": ["site", "price"],
            },
        },
        "recommendations": {"type": "string"},
    },
    "required": RESPONSE_FIELDS,
}

OUTPUT_SHAPE = """{
  "Product name": "Name of the product",
  "Description": "1-2 sentences description",
  "pros": ["short point", "short point", "short point"],
  "cons": ["short point", "short point"],
  "rating": 4.2,
  "ratingJustification": "short reason",
  "Current price": "Price from the current URL",
  "otherWebsitePrices": [
    {"site": "Flipkart", "price": "₹24,999"},
    {"site": "Croma", "price": "₹25,499"}
  ],
  "recommendations": "product recommendations in same range and category"
}"""


def build_prompt(record: ProductRecord) -> str:
    """Generate the product analysis prompt for one scraped product."""
    url = record.source_url or NOT_AVAILABLE
    title = record.title or NOT_AVAILABLE
    price = record.price_text or NOT_AVAILABLE

    return f"""
You are a product analyst. I will provide you with a product URL from amazon.in, a merchant page. Your job is to:
1. Identify the product, price and features, and read the reviews from the page.
2. Compare the product price with other merchant sites in India.
3. Check the product price history and give the lowest, highest and average price.
4. Give a product rating (out of 5) with justification.
5. List the pros and cons.
6. Suggest other options in this category in a similar price range.
7. Provide a short product overview (1-2 sentences) and a short description (1-2 sentences). Be precise.

Product Details:
URL:
    {url}
PRODUCT_DETAILS:
    {title}
    {price}

Output JSON shape (valid JSON only):
{OUTPUT_SHAPE}

Notes:
- If unsure about a price, give N/A.
- Respond with the JSON object only, no other text.
""".strip()
