"""Command-line tools for Content Studio.

- ``python -m src.cli worker`` runs the unified job worker on its own.
- ``python -m src.cli init-db`` creates every table.
- ``python -m src.cli create-user`` adds an account (``--admin`` for admins).
"""
