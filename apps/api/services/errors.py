"""Error taxonomy for creator generation and persistence."""

from typing import Any, List, Optional


class CreatorError(Exception):
    """Base class for errors raised by the creator core."""


class ValidationError(CreatorError):
    """Caller input is missing or malformed; the operation was never attempted."""


class ProviderError(CreatorError):
    """The LLM provider call failed."""


class ParseError(CreatorError):
    """Model output could not be parsed as JSON."""

    def __init__(self, label: str, message: Optional[str] = None):
        self.label = label
        super().__init__(message or f"Failed to parse {label} JSON response")


class ShapeError(CreatorError):
    """Model output parsed, but does not match the expected shape."""

    def __init__(self, label: str, message: str, errors: Optional[List[Any]] = None):
        self.label = label
        self.errors = errors or []
        super().__init__(message)


class StorageUnavailable(CreatorError):
    """The persistence backend could not be reached."""
