"""REG trade journal: a single-page Flask app for logging discretionary trades."""

from .app import create_app

__all__ = ["create_app"]
