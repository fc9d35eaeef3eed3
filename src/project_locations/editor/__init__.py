"""
Interactive location editor.

Provides the map surface, editing sessions, the geometry editor state machine
and the feedback channel.
"""

from .feedback import FeedbackChannel, FeedbackMessage
from .map_surface import MapSurface, Viewport
from .session import EditorSession
from .geometry_editor import GeometryEditor, EditorState

__all__ = [
    "FeedbackChannel",
    "FeedbackMessage",
    "MapSurface",
    "Viewport",
    "EditorSession",
    "GeometryEditor",
    "EditorState",
]
