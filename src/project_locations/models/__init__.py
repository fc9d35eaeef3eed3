"""
Data models for the project location subsystem.

Contains the LocationModel geometry variants, bounding boxes and projects.
"""

from .location import (
    BoundingBox,
    LocationModel,
    Point,
    LineString,
    Polygon,
    swap_axis,
    validate,
    from_dict,
    from_interchange,
    to_interchange,
)
from .project import Project

__all__ = [
    "BoundingBox",
    "LocationModel",
    "Point",
    "LineString",
    "Polygon",
    "swap_axis",
    "validate",
    "from_dict",
    "from_interchange",
    "to_interchange",
    "Project",
]
