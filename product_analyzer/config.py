# product_analyzer/config.py

# Import the 'Path' object for handling file paths in a way that works on any OS (Windows, macOS, Linux)
from pathlib import Path

# --- Merchant Settings ---
# The only merchant we know how to scrape. A page is supported when its hostname ends with this value.
SUPPORTED_DOMAIN = "amazon.in"
# Pre-flight check for URLs given on the command line, before a browser is started.
SUPPORTED_URL_PATTERN = r"^https?://www\.amazon\.in/"
# URL fragments that usually mean "this is a single product page".
PRODUCT_PAGE_INDICATORS = [
    '/product/', '/p/', '/item/', '/dp/', '/gp/product/', '/products/',
    'productid=', 'itemid=', 'pid='
]

# --- Field Selectors ---
# Each field is filled from the first selector that yields non-empty text.
TITLE_SELECTORS = [
    '#productTitle',
    'h1[data-automation-id="product-title"]',
    '.product-title',
    'h1.a-size-large',
]
PRICE_SELECTORS = [
    '.a-price-whole',
    '#priceblock_dealprice',
    '#priceblock_ourprice',
    '.a-price-range',
    '.a-offscreen',
]
DESCRIPTION_SELECTORS = [
    '#feature-bullets ul',
    '#productDescription p',
    '#aplus_feature_div',
]
BRAND_SELECTORS = [
    '#bylineInfo',
    '.brand',
    '[data-automation-id="bylineInfo"]',
]
AVAILABILITY_SELECTORS = ['#availability']
IMAGE_SELECTOR = '#landingImage, #imgTagWrapperId img, .a-dynamic-image'
RATING_SELECTOR = '.a-icon-alt'
REVIEW_SELECTOR = '.review-text-content, .a-expander-content'
SPECIFICATION_ROW_SELECTOR = (
    '#productDetails_techSpec_section_1 tr, '
    '#productDetails_detailBullets_sections1 tr, '
    'table.a-keyvalue tr'
)
PRODUCT_PAGE_MARKER_SELECTOR = '#productTitle, [data-testid*="product"], .product-title, .product-name'
# Reviews of this length or shorter are treated as empty/boilerplate nodes.
MIN_REVIEW_LENGTH = 10

# --- Gemini Settings ---
GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
PRIMARY_MODEL = "gemini-2.5-pro"
# Used exactly once, only when the request to the primary model fails at the transport level.
FALLBACK_MODEL = "gemini-2.5-flash"
GENERATION_CONFIG = {
    "temperature": 0.7,
    "topK": 40,
    "topP": 0.95,
    "maxOutputTokens": 2048,
}
# The LLM can be slow on long prompts, so this is much larger than the page download timeout.
GEMINI_TIMEOUT = 120.0  # seconds

# --- Telemetry (Langfuse) Settings ---
TELEMETRY_INGESTION_PATH = "/api/public/ingestion"
TELEMETRY_TRACE_NAME = "product-analysis"
TELEMETRY_TIMEOUT = 10.0  # seconds
# How long the CLI waits for pending trace uploads after the result has been shown.
TELEMETRY_DRAIN_TIMEOUT = 15.0  # seconds
CLIENT_VERSION = "1.0.0"

# --- File Path Settings ---
# This line gets the path to the directory where this config.py file is located (which is 'product_analyzer').
PACKAGE_PATH = Path(__file__).parent
# All our output (settings, snapshots, analyses) is saved in 'data', one level above the package.
DATA_PATH = PACKAGE_PATH.parent / "data"
SETTINGS_FILE_NAME = "settings.json"

# --- Browser/Network Settings ---
# The User-Agent string tells the website what kind of browser we are. We use a common one to avoid being blocked.
USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
# The size of the virtual browser window.
VIEWPORT = {"width": 1920, "height": 1080}
# The maximum time (in milliseconds) to wait for a page to load before giving up.
REQUEST_TIMEOUT = 60000 # 60 seconds

# --- Environment Overrides ---
# These override the stored settings for a single run; they are never written back.
ENV_API_KEY = "GEMINI_API_KEY"
ENV_LANGFUSE_SECRET_KEY = "LANGFUSE_SECRET_KEY"
ENV_LANGFUSE_PUBLIC_KEY = "LANGFUSE_PUBLIC_KEY"
ENV_LANGFUSE_HOST = "LANGFUSE_HOST"
