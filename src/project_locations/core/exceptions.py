"""
Exception hierarchy for the project location subsystem.

Every error carries a short ``user_message`` suitable for the feedback
channel. None of them is fatal to an editing session.
"""

from typing import Optional


class LocationError(Exception):
    """Base class for all location subsystem errors."""

    user_message = "Something went wrong."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.user_message
        super().__init__(self.message)


# --- Geometry ---

class InvalidGeometry(LocationError):
    """Raised when shape data does not form a valid LocationModel."""

    user_message = "Invalid geometry."

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid geometry: {reason}")


# --- File import ---

class GeometryImportError(LocationError):
    """Base class for file import failures."""

    user_message = "Failed to parse KML file."


class ParseError(GeometryImportError):
    """Raised when the uploaded document is not well-formed XML."""

    user_message = "Failed to parse KML file."


class NoFeatures(GeometryImportError):
    """Raised when the uploaded document contains no geometry features."""

    user_message = "No valid features found in KML file."


class UnsupportedGeometry(GeometryImportError):
    """Raised when the first feature's geometry is not Point/LineString/Polygon."""

    def __init__(self, kind: str):
        self.kind = kind
        self.user_message = f'Unsupported geometry type "{kind}" in KML.'
        super().__init__(self.user_message)


# --- Address search ---

class GeocodeError(LocationError):
    """Base class for address search failures."""

    user_message = "Search failed. Please try again."


class EmptyQuery(GeocodeError):
    """Raised when the search query is empty or whitespace only."""

    user_message = "Please enter a place to search for."


class NotFound(GeocodeError):
    """Raised when the geocoding provider returns zero results."""

    user_message = "Location not found."


class ServiceError(GeocodeError):
    """Raised on transport failure or a non-success provider response."""

    user_message = "Search failed. Please try again."


# --- AI summary collaborator ---

class ServiceUnavailable(LocationError):
    """Raised when the AI summary service cannot produce a narrative."""

    user_message = (
        "Failed to generate AI summary. The model may be unavailable "
        "or the request could not be processed."
    )
