# product_analyzer/__init__.py
