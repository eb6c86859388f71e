# novayra/orders/__init__.py
