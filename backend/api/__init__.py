"""
Consult Ledger API package.

Provides the FastAPI application for the consultation billing service.
"""

from .app import app, create_app

__all__ = ["app", "create_app"]
