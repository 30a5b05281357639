"""Exception hierarchy for poster generation."""

from __future__ import annotations


__all__ = [
    "DataUnavailableError",
    "GeoArtError",
    "GeocodingError",
    "InvalidBoundsError",
    "InvalidInputError",
    "LocationNotFoundError",
    "RenderError",
    "ThemeValidationError",
]


class GeoArtError(Exception):
    """Base exception for all geoart errors."""


class InvalidInputError(GeoArtError, ValueError):
    """Raised when a request carries no usable location or bad parameters."""


class DataUnavailableError(GeoArtError):
    """Raised when every map-data endpoint failed.

    The last underlying failure is kept on ``cause`` so transient provider
    outages can be diagnosed from the message alone.
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class InvalidBoundsError(GeoArtError, ValueError):
    """Raised when projection geometry is degenerate."""


class ThemeValidationError(GeoArtError, ValueError):
    """Raised when a theme is missing, unreadable or lacks a color role."""


class RenderError(GeoArtError):
    """Raised when drawing or encoding the poster fails."""


class GeocodingError(GeoArtError):
    """Raised when the place lookup service fails or finds nothing."""


class LocationNotFoundError(GeocodingError):
    """Raised when the lookup service answered but found no usable place."""
