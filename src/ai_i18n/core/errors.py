"""
Custom exceptions for the ai-i18n pipeline.

Every error raised by the pipeline derives from I18nError, which carries a
message and an optional dictionary of details. The subclasses mirror the
failure domains of a run:

    - ConfigurationError: fatal, raised before any work unit is processed
    - ProviderCallError: an external call failed after all retries
    - ParseError: a provider response was not valid structured output
    - CacheError: a cache read/write/persistence problem (never surfaced)
    - ValidationFailure: rewritten content was rejected by the validator
    - WriteError: rewritten content or a locale file could not be written

Author: ai-i18n contributors
License: MIT
"""

from typing import Any, Dict, List, Optional


class I18nError(Exception):
    """Base exception for all pipeline errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message.
            details: Optional dictionary with additional error details.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(I18nError):
    """Invalid or incomplete configuration. Aborts the run."""

    def __init__(self, message: str, errors: Optional[List[str]] = None) -> None:
        """Initialize with the list of individual configuration problems."""
        self.errors = list(errors or [])
        if self.errors:
            message = message + "\n" + "\n".join(f"- {error}" for error in self.errors)
        super().__init__(message)


class ProviderCallError(I18nError):
    """An external provider call failed (network, timeout, rate limit)."""

    def __init__(
        self,
        message: str,
        provider: str = "",
        model: str = "",
        attempts: int = 0,
        status: Optional[int] = None,
    ) -> None:
        """Initialize with provider information."""
        details: Dict[str, Any] = {}
        if provider:
            details["provider"] = provider
        if model:
            details["model"] = model
        if attempts:
            details["attempts"] = attempts
        if status is not None:
            details["status"] = status
        super().__init__(message, details)
        self.provider = provider
        self.model = model
        self.attempts = attempts
        self.status = status


class ParseError(I18nError):
    """A provider response could not be parsed into the expected structure."""

    pass


class CacheError(I18nError):
    """Cache read, write or persistence failure."""

    pass


class ValidationFailure(I18nError):
    """Rewritten content failed syntax validation."""

    def __init__(self, path: str, errors: List[str], warnings: Optional[List[str]] = None) -> None:
        """Initialize with the validator diagnostics."""
        message = f"Validation failed for '{path}': {'; '.join(errors) or 'invalid content'}"
        super().__init__(message, {"path": path, "errors": list(errors)})
        self.path = path
        self.errors = list(errors)
        self.warnings = list(warnings or [])


class WriteError(I18nError):
    """A file could not be written."""

    def __init__(self, path: str, reason: str) -> None:
        """Initialize with the target path."""
        super().__init__(f"Failed to write '{path}': {reason}", {"path": path})
        self.path = path


def is_recoverable(error: BaseException) -> bool:
    """
    Tell whether a run can continue after the given error.

    Configuration errors are fatal; every other failure is confined to the
    work unit or batch that produced it.
    """
    return not isinstance(error, ConfigurationError)
