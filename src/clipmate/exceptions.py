"""Custom exceptions for ClipMate."""


class ClipmateError(Exception):
    """Base exception for all ClipMate errors."""
    pass


class ConfigurationError(ClipmateError):
    """Raised when configuration is invalid."""
    pass


class StorageError(ClipmateError):
    """Raised when the history database cannot be read or written."""
    pass


class ClipboardError(ClipmateError):
    """Base exception for clipboard operations."""
    pass


class ClipboardNotAvailableError(ClipboardError):
    """Raised when clipboard tools are not available."""
    pass


class ClipboardReadError(ClipboardError):
    """Raised when clipboard contents cannot be read."""
    pass


class ImageDecodeError(ClipboardError):
    """Raised when clipboard image data cannot be decoded to PNG."""
    pass
