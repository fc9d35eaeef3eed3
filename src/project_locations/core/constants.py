"""
Application-wide constants for the project location subsystem.

This module defines default values and constants used throughout the application.
Values that operators may want to tune are also exposed through Config.
"""

# Geometry type tags (interchange and internal model share the same names)
POINT = "Point"
LINE_STRING = "LineString"
POLYGON = "Polygon"
GEOMETRY_TYPES = (POINT, LINE_STRING, POLYGON)

# Minimum vertex counts
MIN_LINE_VERTICES = 2
MIN_RING_VERTICES = 4  # 3 distinct + closing vertex

# WGS 84 coordinate bounds
MIN_LATITUDE = -90.0
MAX_LATITUDE = 90.0
MIN_LONGITUDE = -180.0
MAX_LONGITUDE = 180.0

# Default map view (centered on Serbia)
DEFAULT_CENTER = (44.2, 21.0)
DEFAULT_ZOOM = 7
POINT_FIT_ZOOM = 15  # Zoom used when a shape has zero-area bounds
DETAIL_POINT_ZOOM = 14  # Zoom of a single project's point on its detail map
FIT_PADDING = (50, 50)  # Pixels of padding when fitting the viewport
TILE_URL = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
TILE_ATTRIBUTION = (
    '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a> contributors'
)

# Feedback messages disappear after this many seconds
FEEDBACK_DURATION = 4.0

# Geocoding (Nominatim)
DEFAULT_GEOCODER_URL = "https://nominatim.openstreetmap.org"
DEFAULT_GEOCODER_USER_AGENT = "project-locations/0.1"
GEOCODER_RESULT_LIMIT = 1

# AI summary collaborator (Gemini REST API)
DEFAULT_SUMMARY_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_SUMMARY_MODEL = "gemini-2.5-flash"
SUMMARY_TEMPERATURE = 0.2

# Shape colours on the portfolio and detail maps
LINE_COLOR = "blue"
POLYGON_COLOR = "green"
