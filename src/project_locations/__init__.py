"""
Project Location Mapping

This package provides the geospatial part of the public investment dashboard:
the project location model, KML import, address search, the interactive
geometry editor and the portfolio map.
"""

__version__ = "0.1.0"
__description__ = "Geographic footprints of public investment projects"


def __getattr__(name):
    """Lazy import to avoid importing dependencies when not needed."""
    if name == "ProjectLocationMapper":
        from .mapper import ProjectLocationMapper
        return ProjectLocationMapper
    if name == "LocationsApp":
        from .main import LocationsApp
        return LocationsApp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "ProjectLocationMapper",
    "LocationsApp",
]
