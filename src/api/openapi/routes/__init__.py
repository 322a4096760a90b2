"""API route handlers."""

from src.api.openapi.routes import files, health

__all__ = [
    "files",
    "health",
]
