"""
Geometry editor bound to a map surface.

The editor is an explicit two-state machine:

    EMPTY  --draw-->              SINGLE
    SINGLE --draw-->              SINGLE'  (previous shape removed first)
    SINGLE --edit-->              SINGLE'  (same geometry type)
    SINGLE --remove-->            EMPTY
    ANY    --external_replace-->  SINGLE | EMPTY

Every transition goes through ``_apply``, which is the only place that changes
the active geometry and the map layers, so at most one shape is ever on the
map. Whenever the active geometry changes, ``on_location_change`` is called
with the new value (or None). The editor never persists anything.
"""

import itertools
import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from .feedback import FeedbackChannel
from .map_surface import MapSurface
from .session import EditorSession
from ..core import constants
from ..core.exceptions import InvalidGeometry
from ..models import BoundingBox, LocationModel, from_interchange, validate

LocationCallback = Callable[[Optional[LocationModel]], None]


class EditorState(Enum):
    """Editor states."""

    EMPTY = "empty"
    SINGLE = "single"


class GeometryEditor:
    """Stateful overlay that lets an operator draw, edit or delete one shape."""

    def __init__(
        self,
        surface: MapSurface,
        on_location_change: LocationCallback,
        feedback: Optional[FeedbackChannel] = None,
        point_zoom: int = constants.POINT_FIT_ZOOM,
        fit_padding: Tuple[int, int] = constants.FIT_PADDING,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the editor.

        Args:
            surface: Map surface the editor draws on
            on_location_change: Called with the new location (or None) on every change
            feedback: Channel for user-facing status messages
            point_zoom: Zoom used when centering on a shape with zero-area bounds
            fit_padding: Padding in pixels when fitting the viewport to a shape
            logger: Logger instance
        """
        self.surface = surface
        self.on_location_change = on_location_change
        self.feedback = feedback or FeedbackChannel()
        self.point_zoom = point_zoom
        self.fit_padding = fit_padding
        self.logger = logger or logging.getLogger(__name__)

        self.session: Optional[EditorSession] = None
        self._generations = itertools.count(1)

    # --- Session lifecycle ---

    def open_session(self, project_id: str, location: Optional[LocationModel]) -> EditorSession:
        """
        Start editing a project, replacing whatever the previous session showed.

        The previous session's controls and listeners are detached before the
        new session attaches its own. The location callback fires when the
        new location differs from the one the previous session showed.
        """
        outgoing = self.active_geometry
        self.close_session(clear=False)

        session = EditorSession(
            project_id=project_id,
            generation=next(self._generations),
            map_handle=self.surface,
            logger=self.logger,
        )
        session.attach(self._handle_create, self._handle_edit, self._handle_remove)
        self.session = session
        self.logger.info(f"Editing location of project {project_id} (session {session.generation})")

        geometry = validate(location) if location is not None else None
        self._apply(geometry, "open", previous=outgoing)
        return session

    def close_session(self, clear: bool = True) -> None:
        """Detach the current session from the map."""
        if self.session is None:
            return
        self.session.detach()
        if clear:
            self.surface.clear_layers()
        self.session = None

    def is_current(self, generation: int) -> bool:
        """True if ``generation`` identifies the open session."""
        return self.session is not None and self.session.generation == generation

    @property
    def generation(self) -> Optional[int]:
        return self.session.generation if self.session else None

    @property
    def active_geometry(self) -> Optional[LocationModel]:
        return self.session.active_geometry if self.session else None

    @property
    def state(self) -> EditorState:
        return EditorState.EMPTY if self.active_geometry is None else EditorState.SINGLE

    def _require_session(self) -> EditorSession:
        if self.session is None:
            raise RuntimeError("No project is being edited")
        return self.session

    # --- Operator actions ---

    def draw(self, location: LocationModel) -> None:
        """Draw a new shape through the map's drawing tools."""
        self._require_session()
        self.surface.draw(validate(location).to_interchange())

    def edit(self, location: LocationModel) -> None:
        """Replace the vertices of the active shape through the map's editing tools."""
        session = self._require_session()
        if session.active_layer is None:
            raise RuntimeError("There is no shape to edit")
        self.surface.edit(session.active_layer, validate(location).to_interchange())

    def remove(self) -> None:
        """Delete the active shape through the map's removal tool."""
        session = self._require_session()
        if session.active_layer is not None:
            self.surface.remove(session.active_layer)

    def external_replace(self, location: Optional[LocationModel]) -> None:
        """
        Install a location coming from outside the drawing tools.

        Used when a project is selected and when a file import succeeds. All
        rendered shapes are cleared before the new one is added.

        Raises:
            InvalidGeometry: If the location is malformed
        """
        geometry = validate(location) if location is not None else None
        self._apply(geometry, "replace")

    def navigate_to(self, bounds: BoundingBox) -> None:
        """Move the viewport to a search result without touching the geometry."""
        self._fit_bounds(bounds)

    def commit(self) -> Optional[LocationModel]:
        """Return the active geometry for the caller to store."""
        session = self._require_session()
        self.logger.info(f"Committing location of project {session.project_id}: {session.active_geometry}")
        return session.active_geometry

    # --- Drawing toolkit events ---

    def _handle_create(self, payload: Dict[str, Any]) -> None:
        layer = payload["layer"]
        try:
            geometry = from_interchange(payload["geometry"])
        except InvalidGeometry as e:
            self.surface.remove_layer(layer)
            self.logger.warning(f"Rejected drawn shape: {e}")
            self.feedback.error(f"Shape rejected: {e.reason}")
            return
        self._apply(geometry, "draw", keep_layer=layer)

    def _handle_edit(self, payload: Dict[str, Any]) -> None:
        session = self._require_session()
        layer = payload["layer"]
        if layer != session.active_layer:
            self.logger.debug(f"Ignoring edit of inactive layer {layer}")
            return

        try:
            geometry = from_interchange(payload["geometry"])
            if geometry.type != session.active_geometry.type:
                raise InvalidGeometry(
                    f"cannot change a {session.active_geometry.type} into a {geometry.type}"
                )
        except InvalidGeometry as e:
            self.surface.update_layer(layer, session.active_geometry.to_interchange())
            self.logger.warning(f"Rejected shape edit: {e}")
            self.feedback.error(f"Edit rejected: {e.reason}")
            return
        self._apply(geometry, "edit", keep_layer=layer)

    def _handle_remove(self, payload: Dict[str, Any]) -> None:
        session = self._require_session()
        if payload["layer"] != session.active_layer:
            self.logger.debug(f"Ignoring removal of inactive layer {payload['layer']}")
            return
        self._apply(None, "remove")

    # --- The single mutation entry point ---

    def _apply(
        self,
        geometry: Optional[LocationModel],
        cause: str,
        keep_layer: Optional[int] = None,
        previous: Optional[LocationModel] = None
    ) -> None:
        session = self._require_session()
        if previous is None:
            previous = session.active_geometry

        for layer_id in self.surface.layer_ids():
            if layer_id != keep_layer:
                self.surface.remove_layer(layer_id)

        if geometry is None:
            session.active_layer = None
        else:
            if keep_layer is None:
                keep_layer = self.surface.add_layer(geometry.to_interchange())
            session.active_layer = keep_layer
        session.active_geometry = geometry

        if geometry is not None:
            self._fit_bounds(geometry.bounds())

        self.logger.debug(
            f"{cause}: project {session.project_id} is now "
            f"{geometry.type if geometry else 'unmapped'}"
        )
        if geometry != previous:
            self.on_location_change(geometry)

    def _fit_bounds(self, bounds: BoundingBox) -> None:
        if bounds.is_degenerate:
            self.surface.set_view(bounds.center, self.point_zoom)
        else:
            self.surface.fit_bounds(bounds, self.fit_padding)
