"""
Map rendering surface with drawing controls.

The surface behaves like a browser drawing toolkit: it keeps shape layers in
interchange ``(lng, lat)`` geometry, owns the drawing controls, and notifies
listeners with ``create``, ``edit`` and ``remove`` events when the user acts on
a shape. Events are delivered synchronously in the order they happen.

``to_folium`` renders the current surface (tiles, shapes, drawing controls and
viewport) as a ``folium.Map``.
"""

import copy
import itertools
import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

import folium
from folium.plugins import Draw

from ..core import constants
from ..models import BoundingBox

CREATE = "create"
EDIT = "edit"
REMOVE = "remove"
EVENTS = (CREATE, EDIT, REMOVE)

# Drawing tools offered to the operator
DEFAULT_CONTROLS = {
    "draw_marker": True,
    "draw_polyline": True,
    "draw_polygon": True,
    "draw_rectangle": False,
    "draw_circle": False,
    "draw_circle_marker": False,
    "draw_text": False,
    "cut_polygon": False,
    "edit_mode": True,
    "drag_mode": True,
    "removal_mode": True,
}

Listener = Callable[[Dict[str, Any]], None]


@dataclass
class Viewport:
    """What part of the map is visible."""

    center: Tuple[float, float]
    zoom: int
    bounds: Optional[BoundingBox] = None
    padding: Tuple[int, int] = constants.FIT_PADDING


class MapSurface:
    """In-process map surface with a drawing toolkit."""

    def __init__(
        self,
        center: Tuple[float, float] = constants.DEFAULT_CENTER,
        zoom: int = constants.DEFAULT_ZOOM,
        tile_url: str = constants.TILE_URL,
        tile_attribution: str = constants.TILE_ATTRIBUTION,
        logger: Optional[logging.Logger] = None
    ):
        self.tile_url = tile_url
        self.tile_attribution = tile_attribution
        self.logger = logger or logging.getLogger(__name__)
        self.viewport = Viewport(center=center, zoom=zoom)

        self._layers: "OrderedDict[int, Dict[str, Any]]" = OrderedDict()
        self._layer_ids = itertools.count(1)
        self._listeners: Dict[str, List[Listener]] = {event: [] for event in EVENTS}
        self.controls: Optional[Dict[str, bool]] = None

    @classmethod
    def from_config(cls, config, logger: Optional[logging.Logger] = None) -> "MapSurface":
        return cls(
            center=config.map_center,
            zoom=config.map_zoom,
            tile_url=config.tile_url,
            tile_attribution=config.tile_attribution,
            logger=logger
        )

    # --- Layers ---

    @property
    def layers(self) -> Dict[int, Dict[str, Any]]:
        """Snapshot of the shape layers keyed by layer id."""
        return copy.deepcopy(dict(self._layers))

    def layer_ids(self) -> List[int]:
        return list(self._layers)

    def add_layer(self, geometry: Dict[str, Any]) -> int:
        layer_id = next(self._layer_ids)
        self._layers[layer_id] = copy.deepcopy(geometry)
        return layer_id

    def update_layer(self, layer_id: int, geometry: Dict[str, Any]) -> None:
        if layer_id not in self._layers:
            raise KeyError(f"Unknown layer {layer_id}")
        self._layers[layer_id] = copy.deepcopy(geometry)

    def remove_layer(self, layer_id: int) -> None:
        self._layers.pop(layer_id, None)

    def clear_layers(self) -> None:
        self._layers.clear()

    # --- Viewport ---

    def fit_bounds(self, bounds: BoundingBox, padding: Tuple[int, int] = constants.FIT_PADDING) -> None:
        self.viewport = Viewport(center=bounds.center, zoom=self.viewport.zoom, bounds=bounds, padding=padding)

    def set_view(self, center: Tuple[float, float], zoom: int) -> None:
        self.viewport = Viewport(center=center, zoom=zoom)

    # --- Controls and listeners ---

    @property
    def controls_attached(self) -> bool:
        return self.controls is not None

    def attach_controls(self, options: Optional[Dict[str, bool]] = None) -> None:
        """
        Show the drawing controls.

        Raises:
            RuntimeError: If controls are already attached by another owner
        """
        if self.controls is not None:
            raise RuntimeError("Drawing controls are already attached")
        self.controls = dict(DEFAULT_CONTROLS, **(options or {}))

    def detach_controls(self) -> None:
        self.controls = None

    def on(self, event: str, listener: Listener) -> None:
        if event not in self._listeners:
            raise ValueError(f"Unknown map event {event!r}")
        self._listeners[event].append(listener)

    def off(self, event: str, listener: Optional[Listener] = None) -> None:
        """Remove one listener, or every listener of the event."""
        if listener is None:
            self._listeners[event] = []
        else:
            self._listeners[event] = [l for l in self._listeners[event] if l is not listener]

    def listener_count(self, event: str) -> int:
        return len(self._listeners[event])

    def _emit(self, event: str, payload: Dict[str, Any]) -> None:
        for listener in list(self._listeners[event]):
            listener(payload)

    # --- User actions (what the drawing toolkit reports) ---

    def draw(self, geometry: Dict[str, Any]) -> int:
        """The user finished drawing a shape: add it as a layer and announce it."""
        self._require_controls("draw")
        layer_id = self.add_layer(geometry)
        self._emit(CREATE, {"layer": layer_id, "geometry": copy.deepcopy(geometry)})
        return layer_id

    def edit(self, layer_id: int, geometry: Dict[str, Any]) -> None:
        """The user moved vertices or dragged a shape."""
        self._require_controls("edit")
        self.update_layer(layer_id, geometry)
        self._emit(EDIT, {"layer": layer_id, "geometry": copy.deepcopy(geometry)})

    def remove(self, layer_id: int) -> None:
        """The user deleted a shape with the removal tool."""
        self._require_controls("remove")
        geometry = self._layers.get(layer_id)
        self.remove_layer(layer_id)
        self._emit(REMOVE, {"layer": layer_id, "geometry": geometry})

    def _require_controls(self, action: str) -> None:
        if self.controls is None:
            raise RuntimeError(f"Cannot {action} shapes: drawing controls are not attached")

    # --- Rendering ---

    def to_folium(self) -> folium.Map:
        """Render tiles, shapes, drawing controls and viewport as a folium map."""
        fmap = folium.Map(location=list(self.viewport.center), zoom_start=self.viewport.zoom, tiles=None)
        folium.TileLayer(tiles=self.tile_url, attr=self.tile_attribution).add_to(fmap)

        shapes = folium.FeatureGroup(name="Project location").add_to(fmap)
        for geometry in self._layers.values():
            folium.GeoJson({"type": "Feature", "properties": {}, "geometry": geometry}).add_to(shapes)

        if self.controls is not None:
            Draw(
                export=False,
                position="topleft",
                draw_options={
                    "marker": self.controls["draw_marker"],
                    "polyline": self.controls["draw_polyline"],
                    "polygon": self.controls["draw_polygon"],
                    "rectangle": self.controls["draw_rectangle"],
                    "circle": self.controls["draw_circle"],
                    "circlemarker": self.controls["draw_circle_marker"],
                },
                edit_options={
                    "edit": self.controls["edit_mode"] or self.controls["drag_mode"],
                    "remove": self.controls["removal_mode"],
                },
            ).add_to(fmap)

        if self.viewport.bounds is not None:
            fmap.fit_bounds(
                [list(corner) for corner in self.viewport.bounds.corners()],
                padding=self.viewport.padding,
            )
        return fmap

    def save(self, path: str) -> None:
        """Write the rendered map as a standalone HTML page."""
        self.to_folium().save(path)
