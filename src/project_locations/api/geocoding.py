"""
Address search against a Nominatim-compatible geocoding service.

Resolves a free-text place name to a bounding box used to reposition the map
viewport. The result is never turned into a project location.
"""

import logging
from typing import Any, Optional

import requests  # type: ignore

from .client import APIClient
from ..core import constants
from ..core.exceptions import EmptyQuery, NotFound, ServiceError
from ..models import BoundingBox


def parse_bounding_box(raw: Any) -> BoundingBox:
    """
    Convert a provider bounding box into the internal convention.

    The provider returns four numeric strings ordered
    ``[south, north, west, east]``.

    Raises:
        ServiceError: If the value is not four numbers
    """
    if not isinstance(raw, (list, tuple)) or len(raw) != 4:
        raise ServiceError(f"Unexpected bounding box format: {raw!r}")
    try:
        south, north, west, east = (float(v) for v in raw)
    except (TypeError, ValueError):
        raise ServiceError(f"Non-numeric bounding box: {raw!r}")
    return BoundingBox(south=south, west=west, north=north, east=east)


class GeocodingAPI(APIClient):
    """Client for free-text place search."""

    def __init__(
        self,
        base_url: str = constants.DEFAULT_GEOCODER_URL,
        timeout: float = 10,
        max_retries: int = 0,
        user_agent: Optional[str] = constants.DEFAULT_GEOCODER_USER_AGENT,
        logger: Optional[logging.Logger] = None
    ):
        super().__init__(
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
            user_agent=user_agent,
            logger=logger
        )

    @classmethod
    def from_config(cls, config, logger: Optional[logging.Logger] = None) -> "GeocodingAPI":
        """Create a client from a Config instance."""
        return cls(
            base_url=config.geocoder_base_url,
            timeout=config.geocoder_timeout,
            max_retries=config.geocoder_max_retries,
            user_agent=config.geocoder_user_agent,
            logger=logger
        )

    def search(self, query: str) -> BoundingBox:
        """
        Look up a place and return its bounding box.

        Args:
            query: Free-text place name or address

        Returns:
            Bounding box of the best match

        Raises:
            EmptyQuery: If the query is empty (no request is made)
            NotFound: If the provider has no match
            ServiceError: On transport failure, error status or malformed response
        """
        if query is None or not query.strip():
            raise EmptyQuery()

        query = query.strip()
        self.logger.info(f"Searching location: {query!r}")

        params = {
            "format": "json",
            "q": query,
            "limit": constants.GEOCODER_RESULT_LIMIT,
        }
        try:
            results = self.get("/search", params=params)
        except requests.exceptions.RequestException as e:
            raise ServiceError(f"Failed to connect to the geocoding service: {e}")
        except ValueError as e:
            raise ServiceError(f"Invalid response from the geocoding service: {e}")

        if not isinstance(results, list):
            raise ServiceError(f"Unexpected geocoding response type: {type(results).__name__}")
        if not results:
            self.logger.info(f"No location found for {query!r}")
            raise NotFound(f"No location found for {query!r}")

        first = results[0]
        if not isinstance(first, dict):
            raise ServiceError("Unexpected geocoding result format")
        bbox = parse_bounding_box(first.get("boundingbox"))
        self.logger.debug(f"Resolved {query!r} to {bbox}")
        return bbox
