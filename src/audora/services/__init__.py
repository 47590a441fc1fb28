# src/audora/services/__init__.py
"""Business logic services for the Audora application.

Each module exposes plain functions that take a SQLAlchemy `Session` and
raise `audora.core.errors` exceptions; routers stay free of query logic.
"""
