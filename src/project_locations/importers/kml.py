"""
KML import.

Parses an uploaded place-mark document into a LocationModel. Only the first
feature (Placemark carrying a geometry) is used; any further features are
ignored. KML stores positions as ``lng,lat[,alt]`` tuples, so the geometry is
built in interchange order and converted through ``from_interchange``.
"""

import logging
import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from ..core import constants
from ..core.exceptions import InvalidGeometry, NoFeatures, ParseError, UnsupportedGeometry
from ..models import LocationModel, from_interchange

logger = logging.getLogger(__name__)

# Whitespace around the commas inside one tuple, e.g. "20.4, 44.8"
_TUPLE_SEPARATOR = re.compile(r"\s*,\s*")

# Every element that can hold a Placemark's geometry
GEOMETRY_TAGS = {
    "Point",
    "LineString",
    "LinearRing",
    "Polygon",
    "MultiGeometry",
    "Model",
    "Track",
    "MultiTrack",
}


def _local(tag: str) -> str:
    """Strip the namespace from an element tag."""
    return tag.rsplit("}", 1)[-1]


def _children(element: ET.Element, name: str) -> Iterator[ET.Element]:
    for child in element:
        if _local(child.tag) == name:
            yield child


def _find_child(element: ET.Element, name: str) -> Optional[ET.Element]:
    return next(_children(element, name), None)


def _find_path(element: ET.Element, *names: str) -> Optional[ET.Element]:
    current: Optional[ET.Element] = element
    for name in names:
        if current is None:
            return None
        current = _find_child(current, name)
    return current


def parse_coordinates(text: Optional[str]) -> List[List[float]]:
    """
    Parse a KML ``<coordinates>`` body into ``[lng, lat]`` positions.

    Altitude values are dropped. Tuples are separated by whitespace; spaces
    around the commas inside a tuple are tolerated.

    Raises:
        InvalidGeometry: If a tuple is not numeric or has fewer than two values
    """
    positions = []
    for chunk in _TUPLE_SEPARATOR.sub(",", (text or "").strip()).split():
        values = [v for v in chunk.split(",") if v != ""]
        if len(values) < 2:
            raise InvalidGeometry(f"Malformed KML coordinate tuple {chunk!r}")
        try:
            lng, lat = float(values[0]), float(values[1])
        except ValueError:
            raise InvalidGeometry(f"Non-numeric KML coordinate tuple {chunk!r}")
        positions.append([lng, lat])
    return positions


def _close_ring(ring: List[List[float]]) -> List[List[float]]:
    if ring and ring[0] != ring[-1]:
        return ring + [list(ring[0])]
    return ring


def _geometry_coordinates(element: ET.Element, kind: str) -> Any:
    """Extract interchange-order coordinates from a supported geometry element."""
    if kind == constants.POINT:
        coordinates = _find_child(element, "coordinates")
        positions = parse_coordinates(coordinates.text if coordinates is not None else None)
        if len(positions) != 1:
            raise InvalidGeometry(f"KML Point must have exactly one position, got {len(positions)}")
        return positions[0]

    if kind == constants.LINE_STRING:
        coordinates = _find_child(element, "coordinates")
        return parse_coordinates(coordinates.text if coordinates is not None else None)

    rings = []
    outer = _find_path(element, "outerBoundaryIs", "LinearRing", "coordinates")
    if outer is None:
        raise InvalidGeometry("KML Polygon has no outer boundary")
    rings.append(_close_ring(parse_coordinates(outer.text)))
    for inner in _children(element, "innerBoundaryIs"):
        for ring in _children(inner, "LinearRing"):
            coordinates = _find_child(ring, "coordinates")
            rings.append(_close_ring(parse_coordinates(coordinates.text if coordinates is not None else None)))
    return rings


def _iter_features(root: ET.Element) -> Iterator[ET.Element]:
    """Yield geometry elements of every Placemark, in document order."""
    for element in root.iter():
        if _local(element.tag) != "Placemark":
            continue
        geometry = next((c for c in element if _local(c.tag) in GEOMETRY_TAGS), None)
        if geometry is not None:
            yield geometry


def kml_to_interchange(raw_text: Union[str, bytes]) -> Dict[str, Any]:
    """
    Parse KML text into the first feature's interchange geometry.

    Raises:
        ParseError: If the text is not well-formed XML
        NoFeatures: If no Placemark carries a geometry
        UnsupportedGeometry: If the first geometry is not Point/LineString/Polygon
        InvalidGeometry: If the coordinates are malformed
    """
    try:
        root = ET.fromstring(raw_text)
    except ET.ParseError as e:
        raise ParseError(f"Failed to parse KML file: {e}")

    geometry = next(_iter_features(root), None)
    if geometry is None:
        raise NoFeatures()

    kind = _local(geometry.tag)
    if kind not in constants.GEOMETRY_TYPES:
        raise UnsupportedGeometry(kind)

    return {"type": kind, "coordinates": _geometry_coordinates(geometry, kind)}


def import_kml(raw_text: Union[str, bytes]) -> LocationModel:
    """
    Import a KML document as a LocationModel.

    Args:
        raw_text: KML document text

    Returns:
        Validated LocationModel of the first feature, in ``(lat, lng)`` order

    Raises:
        ParseError, NoFeatures, UnsupportedGeometry, InvalidGeometry
    """
    geometry = kml_to_interchange(raw_text)
    location = from_interchange(geometry)
    logger.debug(f"Imported {location.type} with {location.vertex_count()} vertices from KML")
    return location


def import_kml_file(path: Union[str, Path]) -> LocationModel:
    """Read a KML file from disk and import it."""
    text = Path(path).read_text(encoding="utf-8")
    return import_kml(text)
