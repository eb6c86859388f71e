# novayra/contact/__init__.py
