# novayra/samples/__init__.py
