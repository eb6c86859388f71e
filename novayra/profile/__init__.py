# novayra/profile/__init__.py
