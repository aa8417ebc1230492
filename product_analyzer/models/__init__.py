# product_analyzer/models/__init__.py

# This file makes the model classes directly available from the 'models' package.
# Instead of: from product_analyzer.models.product_models import ProductRecord
# We can now use: from product_analyzer.models import ProductRecord

from .product_models import (
    DEFAULT_RATING,
    NOT_AVAILABLE,
    AnalysisSession,
    NormalizedResult,
    PageDocument,
    PriceQuote,
    ProductRecord,
    TelemetryConfig,
)
