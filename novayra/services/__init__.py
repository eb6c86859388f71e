# novayra/services/__init__.py
