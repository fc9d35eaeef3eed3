"""
Location data models.

A project's geographic footprint is one of three geometry variants: Point,
LineString or Polygon. Internally every coordinate is a ``(lat, lng)`` pair.
The interchange format used by KML import and by the drawing toolkit is
GeoJSON-style and ordered ``(lng, lat)``; crossing that boundary always goes
through ``from_interchange`` / ``to_interchange``, which swap the axes.
"""

import math
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Iterator, Optional, Sequence, Tuple, Union

from ..core import constants
from ..core.exceptions import InvalidGeometry

Coordinate = Tuple[float, float]


def swap_axis(pair: Sequence[float]) -> Tuple[Any, Any]:
    """Swap ``(a, b)`` into ``(b, a)``. Applying it twice is the identity."""
    a, b = pair
    return b, a


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _coerce_coordinate(value: Any, where: str) -> Coordinate:
    """Turn a ``[lat, lng]`` sequence into a validated float tuple."""
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise InvalidGeometry(f"{where} must be a [lat, lng] pair, got {value!r}")
    if len(value) != 2 or not all(_is_number(v) for v in value):
        raise InvalidGeometry(f"{where} must be exactly 2 numbers, got {value!r}")

    lat, lng = float(value[0]), float(value[1])
    if not (math.isfinite(lat) and math.isfinite(lng)):
        raise InvalidGeometry(f"{where} contains a non-finite value")
    if not (constants.MIN_LATITUDE <= lat <= constants.MAX_LATITUDE):
        raise InvalidGeometry(f"{where} latitude {lat} out of range")
    if not (constants.MIN_LONGITUDE <= lng <= constants.MAX_LONGITUDE):
        raise InvalidGeometry(f"{where} longitude {lng} out of range")
    return lat, lng


def _coerce_sequence(value: Any, where: str) -> Sequence[Any]:
    if isinstance(value, (str, bytes, dict)) or not isinstance(value, Sequence):
        raise InvalidGeometry(f"{where} must be a sequence, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class BoundingBox:
    """Rectangle used to fit the map viewport."""

    south: float
    west: float
    north: float
    east: float

    @classmethod
    def around(cls, coordinates: Sequence[Coordinate]) -> "BoundingBox":
        """Smallest box containing all ``(lat, lng)`` coordinates."""
        if not coordinates:
            raise ValueError("Cannot compute bounds of an empty coordinate list")
        lats = [lat for lat, _ in coordinates]
        lngs = [lng for _, lng in coordinates]
        return cls(south=min(lats), west=min(lngs), north=max(lats), east=max(lngs))

    def corners(self) -> Tuple[Coordinate, Coordinate]:
        """Return ``((south, west), (north, east))`` ready for viewport fitting."""
        return (self.south, self.west), (self.north, self.east)

    @property
    def center(self) -> Coordinate:
        return (self.south + self.north) / 2.0, (self.west + self.east) / 2.0

    @property
    def is_degenerate(self) -> bool:
        """True when the box collapses to a single position.

        A straight north-south or east-west line has zero area but still spans
        a distance, so it is fitted like any other shape.
        """
        return self.south == self.north and self.west == self.east


class LocationModel:
    """Base class of the three geometry variants."""

    type: ClassVar[str]

    @property
    def coordinates(self) -> Any:
        """Coordinates nested according to type, in ``(lat, lng)`` order."""
        raise NotImplementedError

    def iter_coordinates(self) -> Iterator[Coordinate]:
        """Yield every vertex of the geometry."""
        raise NotImplementedError

    def vertex_count(self) -> int:
        return sum(1 for _ in self.iter_coordinates())

    def bounds(self) -> BoundingBox:
        return BoundingBox.around(list(self.iter_coordinates()))

    def to_dict(self) -> Dict[str, Any]:
        """Serialize in internal ``(lat, lng)`` order."""
        return {"type": self.type, "coordinates": _to_lists(self.coordinates)}

    def to_interchange(self) -> Dict[str, Any]:
        """Serialize as GeoJSON-style geometry in ``(lng, lat)`` order."""
        return to_interchange(self)


def _to_lists(value: Any) -> Any:
    if isinstance(value, tuple):
        return [_to_lists(v) for v in value]
    return value


@dataclass(frozen=True)
class Point(LocationModel):
    """A single position."""

    type: ClassVar[str] = constants.POINT
    coordinate: Coordinate

    def __post_init__(self):
        object.__setattr__(self, "coordinate", _coerce_coordinate(self.coordinate, "Point coordinate"))

    @property
    def coordinates(self) -> Coordinate:
        return self.coordinate

    def iter_coordinates(self) -> Iterator[Coordinate]:
        yield self.coordinate


@dataclass(frozen=True)
class LineString(LocationModel):
    """An ordered path of at least two vertices."""

    type: ClassVar[str] = constants.LINE_STRING
    vertices: Tuple[Coordinate, ...]

    def __post_init__(self):
        raw = _coerce_sequence(self.vertices, "LineString vertices")
        if len(raw) < constants.MIN_LINE_VERTICES:
            raise InvalidGeometry(
                f"LineString needs at least {constants.MIN_LINE_VERTICES} vertices, got {len(raw)}"
            )
        vertices = tuple(
            _coerce_coordinate(v, f"LineString vertex {i}") for i, v in enumerate(raw)
        )
        object.__setattr__(self, "vertices", vertices)

    @property
    def coordinates(self) -> Tuple[Coordinate, ...]:
        return self.vertices

    def iter_coordinates(self) -> Iterator[Coordinate]:
        return iter(self.vertices)


@dataclass(frozen=True)
class Polygon(LocationModel):
    """Closed rings; the first is the outer boundary, the rest are holes."""

    type: ClassVar[str] = constants.POLYGON
    rings: Tuple[Tuple[Coordinate, ...], ...]

    def __post_init__(self):
        raw_rings = _coerce_sequence(self.rings, "Polygon rings")
        if not raw_rings:
            raise InvalidGeometry("Polygon needs at least one ring")

        rings = []
        for r, raw in enumerate(raw_rings):
            raw = _coerce_sequence(raw, f"Polygon ring {r}")
            if len(raw) < constants.MIN_RING_VERTICES:
                raise InvalidGeometry(
                    f"Polygon ring {r} needs at least {constants.MIN_RING_VERTICES} vertices, "
                    f"got {len(raw)}"
                )
            ring = tuple(
                _coerce_coordinate(v, f"Polygon ring {r} vertex {i}") for i, v in enumerate(raw)
            )
            if ring[0] != ring[-1]:
                raise InvalidGeometry(f"Polygon ring {r} is not closed")
            rings.append(ring)

        object.__setattr__(self, "rings", tuple(rings))

    @property
    def coordinates(self) -> Tuple[Tuple[Coordinate, ...], ...]:
        return self.rings

    def iter_coordinates(self) -> Iterator[Coordinate]:
        for ring in self.rings:
            yield from ring


GEOMETRY_CLASSES = {cls.type: cls for cls in (Point, LineString, Polygon)}

LocationLike = Union[LocationModel, Dict[str, Any]]


def from_dict(data: Dict[str, Any]) -> LocationModel:
    """
    Build a LocationModel from ``{"type": ..., "coordinates": ...}`` in ``(lat, lng)`` order.

    Raises:
        InvalidGeometry: If the type tag is unknown or the coordinates do not fit it
    """
    if not isinstance(data, dict):
        raise InvalidGeometry(f"Expected a geometry mapping, got {type(data).__name__}")

    geometry_type = data.get("type")
    cls = GEOMETRY_CLASSES.get(geometry_type)
    if cls is None:
        raise InvalidGeometry(f"Unknown geometry type {geometry_type!r}")
    if "coordinates" not in data:
        raise InvalidGeometry(f"{geometry_type} has no coordinates")

    return cls(data["coordinates"])


def validate(value: Optional[LocationLike]) -> LocationModel:
    """
    Validate a location value and return it as a LocationModel.

    Args:
        value: LocationModel instance or internal-order mapping

    Returns:
        Validated LocationModel

    Raises:
        InvalidGeometry: If the value is missing or malformed
    """
    if value is None:
        raise InvalidGeometry("Location is missing")
    if isinstance(value, LocationModel):
        return value
    return from_dict(value)


def _swap_nested(value: Any, depth: int) -> Any:
    """Swap axes of every position at ``depth`` levels of nesting, dropping altitude."""
    if depth == 0:
        position = _coerce_sequence(value, "Position")
        if len(position) < 2:
            raise InvalidGeometry(f"Position needs at least 2 values, got {value!r}")
        return list(swap_axis(position[:2]))
    return [_swap_nested(v, depth - 1) for v in _coerce_sequence(value, "Coordinates")]


_NESTING = {
    constants.POINT: 0,
    constants.LINE_STRING: 1,
    constants.POLYGON: 2,
}


def from_interchange(geometry: Dict[str, Any]) -> LocationModel:
    """
    Build a LocationModel from GeoJSON-style ``(lng, lat)`` geometry.

    A GeoJSON Feature wrapper is unwrapped. A third (altitude) value per position
    is dropped.

    Raises:
        InvalidGeometry: If the geometry is malformed or not a supported type
    """
    if not isinstance(geometry, dict):
        raise InvalidGeometry(f"Expected a geometry mapping, got {type(geometry).__name__}")
    if geometry.get("type") == "Feature":
        geometry = geometry.get("geometry") or {}

    geometry_type = geometry.get("type")
    if geometry_type not in _NESTING:
        raise InvalidGeometry(f"Unknown geometry type {geometry_type!r}")
    if "coordinates" not in geometry:
        raise InvalidGeometry(f"{geometry_type} has no coordinates")

    coordinates = _swap_nested(geometry["coordinates"], _NESTING[geometry_type])
    return GEOMETRY_CLASSES[geometry_type](coordinates)


def to_interchange(location: LocationModel) -> Dict[str, Any]:
    """Serialize a LocationModel as GeoJSON-style geometry in ``(lng, lat)`` order."""
    depth = _NESTING[location.type]
    return {
        "type": location.type,
        "coordinates": _swap_nested(location.coordinates, depth),
    }
