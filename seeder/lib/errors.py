"""Structured exception hierarchy for fixture loading.

Provides specific exception types for common failure modes,
with rich context for debugging and troubleshooting.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

__all__ = [
    "SeederError",
    "ConfigurationError",
    "SourceNotFoundError",
    "SourceFormatError",
    "BatchWriteError",
    "FixtureLoadError",
]


class SeederError(Exception):
    """Base exception for all fixture loading errors.

    Provides structured error information for debugging.
    """

    def __init__(
        self,
        message: str,
        *,
        table: Optional[str] = None,
        source: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        self.message = message
        self.table = table
        self.source = source
        self.details = details or {}
        self.suggestion = suggestion

        parts = [message]

        if table or source:
            context = f"{table or '?'}:{source or '*'}"
            parts[0] = f"[{context}] {message}"

        if self.details:
            detail_lines = [f"  {k}: {v}" for k, v in self.details.items()]
            parts.append("\nDetails:")
            parts.extend(detail_lines)

        if suggestion:
            parts.append(f"\nSuggestion: {suggestion}")

        super().__init__("\n".join(parts))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "table": self.table,
            "source": self.source,
            "details": self.details,
            "suggestion": self.suggestion,
        }


class ConfigurationError(SeederError):
    """Error in fixture configuration.

    Raised when a fixture definition is invalid or incomplete.
    """

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        value: Any = None,
        **kwargs: Any,
    ) -> None:
        self.field = field
        self.value = value

        details = kwargs.pop("details", {})
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)

        super().__init__(message, details=details, **kwargs)


class SourceNotFoundError(SeederError):
    """Source file not found.

    Raised before any write when a declared source path doesn't exist.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        self.path = path

        suggestion = kwargs.pop("suggestion", None)
        if not suggestion:
            suggestion = (
                "Check the path in the fixture definition. Relative paths "
                "starting with ./ are resolved from the config file directory."
            )

        kwargs.setdefault("source", path)
        super().__init__(message, suggestion=suggestion, **kwargs)


class SourceFormatError(SeederError):
    """Source file could not be decoded into a list of records."""

    def __init__(
        self,
        message: str,
        *,
        path: Optional[str] = None,
        cause: Optional[Exception] = None,
        **kwargs: Any,
    ) -> None:
        self.path = path
        self.cause = cause

        details = kwargs.pop("details", {})
        if cause:
            details["cause"] = str(cause)
            details["cause_type"] = type(cause).__name__

        kwargs.setdefault("source", path)
        super().__init__(message, details=details, **kwargs)


class BatchWriteError(SeederError):
    """A single chunk could not be written.

    Raised when the backend rejects a BatchWriteItem call with a
    non-retryable error, or when the table stays unavailable past the
    retry budget.
    """

    def __init__(
        self,
        message: str,
        *,
        variant: Optional[str] = None,
        chunk_index: Optional[int] = None,
        error_code: Optional[str] = None,
        attempts: int = 1,
        retryable: bool = False,
        cause: Optional[BaseException] = None,
        **kwargs: Any,
    ) -> None:
        self.variant = variant
        self.chunk_index = chunk_index
        self.error_code = error_code
        self.attempts = attempts
        self.retryable = retryable
        self.cause = cause

        details = kwargs.pop("details", {})
        if variant:
            details["variant"] = variant
        if chunk_index is not None:
            details["chunk_index"] = chunk_index
        if error_code:
            details["error_code"] = error_code
        details["attempts"] = attempts
        if cause is not None:
            details["cause"] = str(cause)
            details["cause_type"] = type(cause).__name__

        super().__init__(message, details=details, **kwargs)


class FixtureLoadError(SeederError):
    """One or more fixtures failed to load.

    Raised once every concurrent load has settled, listing each failure.
    """

    def __init__(
        self,
        message: str,
        *,
        errors: Optional[List[BaseException]] = None,
        report: Any = None,
        **kwargs: Any,
    ) -> None:
        self.errors = list(errors or [])
        self.report = report

        details = kwargs.pop("details", {})
        if self.errors:
            details["failure_count"] = len(self.errors)

        if self.errors:
            lines = "\n".join(
                f"  - {_first_line(error)}" for error in self.errors
            )
            message = f"{message}\n\nFailures:\n{lines}"

        super().__init__(message, details=details, **kwargs)


def _first_line(error: BaseException) -> str:
    text = str(error)
    return text.splitlines()[0] if text else type(error).__name__
