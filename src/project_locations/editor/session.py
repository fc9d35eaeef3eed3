"""
Editing session for one selected project.

A session exclusively owns the map surface's drawing controls and event
listeners while it is open. Opening a session attaches them; closing it
detaches them, so a later session never receives duplicate events.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from .map_surface import MapSurface, CREATE, EDIT, REMOVE
from ..models import LocationModel

Handler = Callable[[Dict[str, Any]], None]


@dataclass
class EditorSession:
    """Per-selection editing context."""

    project_id: str
    generation: int
    map_handle: MapSurface
    active_geometry: Optional[LocationModel] = None
    active_layer: Optional[int] = None
    handlers: Dict[str, Handler] = field(default_factory=dict)
    attached: bool = False
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))

    def attach(self, on_create: Handler, on_edit: Handler, on_remove: Handler) -> None:
        """Attach drawing controls and listeners to the map."""
        if self.attached:
            return
        self.handlers = {CREATE: on_create, EDIT: on_edit, REMOVE: on_remove}
        self.map_handle.attach_controls()
        for event, handler in self.handlers.items():
            self.map_handle.on(event, handler)
        self.attached = True
        self.logger.debug(f"Session {self.generation} attached for project {self.project_id}")

    def detach(self) -> None:
        """Remove controls and listeners. Safe to call more than once."""
        if not self.attached:
            return
        for event, handler in self.handlers.items():
            self.map_handle.off(event, handler)
        self.map_handle.detach_controls()
        self.handlers = {}
        self.attached = False
        self.logger.debug(f"Session {self.generation} detached for project {self.project_id}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.detach()
        return False
