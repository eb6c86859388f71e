# novayra/products/__init__.py
