"""
File importers producing project locations.
"""

from .kml import import_kml, import_kml_file, kml_to_interchange, parse_coordinates

__all__ = [
    "import_kml",
    "import_kml_file",
    "kml_to_interchange",
    "parse_coordinates",
]
