# novayra/cart/__init__.py
