"""Custom exception hierarchy for tilepyramid."""

from typing import Optional


class TilePyramidError(Exception):
    """Base exception for tilepyramid library."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.cause = cause


class InvalidArgumentError(TilePyramidError, ValueError):
    """A required argument is missing or malformed."""
    pass


class InconsistentDimensionError(TilePyramidError, ValueError):
    """Envelopes with differing dimensionality were combined."""
    pass


class NotFoundError(TilePyramidError, KeyError):
    """A pyramid, mosaic or tile identifier is unknown to the store."""

    def __str__(self) -> str:
        # KeyError would otherwise render the message with quotes
        return str(self.args[0]) if self.args else ""


class ConfigurationError(TilePyramidError):
    """Configuration and setup errors."""
    pass
