"""Route modules for FastAPI application."""
from . import scan

__all__ = ["scan"]
