# product_analyzer/utils/__init__.py
