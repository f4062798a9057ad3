"""Structured extraction errors for the scraping pipeline."""

from typing import Any, Optional


class ScraperError(Exception):
    """Base class for extraction issues."""

    def __init__(self, message: str, *, context: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}


class StructuralPreconditionError(ScraperError):
    """Raised when a required container or table column is absent."""


class FieldParseError(ScraperError):
    """Raised when a field's text cannot be normalized to its type."""
