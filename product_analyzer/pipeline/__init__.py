# product_analyzer/pipeline/__init__.py

# This file makes the pure pipeline functions directly available from the 'pipeline' package.
# The step functions live in .steps and are imported from there, since they depend on the delegates.
from .extractor import extract, is_supported_url
from .prompts import build_prompt, RESPONSE_SCHEMA
from .normalizer import normalize, extract_section, extract_list, extract_rating
