# novayra/auth/__init__.py
