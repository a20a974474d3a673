"""Exceptions raised by the template registry.

Adapters translate transport and parsing failures into these so the
template manager can decide which ones mean "try the next registry entry".
"""

from __future__ import annotations

from typing import Any


class RegistryError(Exception):
    """Base class for all template registry errors."""

    def __init__(self, message: str, **context: Any) -> None:
        self.message = message
        self.context = context
        super().__init__(message)


class SourceUnavailableError(RegistryError):
    """Raised when a template source cannot be reached or read.

    Covers network and authentication failures and missing local paths.
    The template manager treats this as recoverable and moves on to the
    next registry entry.
    """

    pass


class IntegrityError(RegistryError):
    """Raised when downloaded content does not match its expected checksum."""

    def __init__(self, message: str, expected: str, actual: str, **context: Any) -> None:
        super().__init__(message, expected=expected, actual=actual, **context)
        self.expected = expected
        self.actual = actual


class TemplateNotFoundError(RegistryError):
    """Raised when no source provides the requested template."""

    def __init__(self, key: str, message: str | None = None, **context: Any) -> None:
        super().__init__(message or f"Template not found: {key}", key=key, **context)
        self.key = key


class TemplateProcessingError(RegistryError):
    """Raised when a template descriptor is missing or malformed."""

    pass


class ConfigurationError(RegistryError):
    """Raised when the registry configuration is invalid."""

    pass
