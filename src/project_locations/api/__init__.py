"""
API layer for external services.

Provides the geocoding client used for address search and the AI summary client.
"""

from .client import APIClient
from .geocoding import GeocodingAPI, parse_bounding_box
from .summary import SummaryAPI

__all__ = [
    "APIClient",
    "GeocodingAPI",
    "parse_bounding_box",
    "SummaryAPI",
]
