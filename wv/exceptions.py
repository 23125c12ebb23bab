"""Custom exceptions for wv."""

from pathlib import Path


class WvError(Exception):
    """Base exception for wv errors."""
    pass


class DocumentError(WvError):
    """Raised when a document cannot be read or does not match its schema."""

    def __init__(self, message: str, path: Path | None = None):
        self.path = path
        if path is not None:
            message = f"{path}: {message}"
        super().__init__(message)


class InvalidIdError(WvError):
    """Raised when a composition ID is not 8 hexadecimal characters."""
    pass


class ConfigurationError(WvError):
    """Raised when there's an error in configuration."""
    pass
