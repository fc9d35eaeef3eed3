"""
Portfolio map rendering.

Draws every mapped project on one folium map: Points as markers and
LineStrings as polylines. Polygons are classified but not drawn. Each shape
carries a popup linking to the project's detail page, and a status panel lists
the counts and the unmapped projects.

The detail page of a single project gets its own map: a Point is centered at a
fixed zoom, anything with extent is fitted to its bounds.
"""

import html
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

import folium

from .classifier import PortfolioClassification, classify
from ..core import constants
from ..models import BoundingBox, LocationModel, Project


def popup_html(project: Project, detail_url: str = "/project/{id}") -> str:
    """Identifying fields plus a link to the detail view."""
    name = html.escape(project.name)
    link = html.escape(detail_url.format(id=project.id), quote=True)
    return (
        f"<div>"
        f"<h3><b>{name}</b></h3>"
        f"<p>ID: {html.escape(project.id)}</p>"
        f"<p>Cost: &euro;{round(project.total_cost_eur / 1_000_000):,}m</p>"
        f'<a href="{link}" target="_top">View Details &rarr;</a>'
        f"</div>"
    )


def status_panel_html(classification: PortfolioClassification) -> str:
    """Mapping-status overlay: counts and the list of unmapped projects."""
    counts = classification.counts()
    rows = [
        ("#3b82f6", "Points", counts["point"]),
        ("#0ea5e9", "Lines", counts["line"]),
        ("#9ca3af", "Not Mapped", counts["unmapped"]),
    ]
    items = "".join(
        f'<div><span style="display:inline-block;width:12px;height:12px;'
        f'border-radius:50%;background:{color};"></span> <b>{label}:</b> {count}</div>'
        for color, label, count in rows
    )

    unmapped = ""
    if classification.unmapped:
        names = "".join(f"<li>- {html.escape(p.name)}</li>" for p in classification.unmapped)
        unmapped = f"<h4>Unmapped Projects:</h4><ul style=\"list-style:none;padding:0\">{names}</ul>"

    return (
        '<div id="mapping-status" style="position:absolute;top:16px;right:16px;z-index:1000;'
        'width:288px;background:rgba(255,255,255,0.9);padding:16px;border-radius:8px;'
        'max-height:calc(100% - 2rem);overflow-y:auto;">'
        f"<h3>Project Mapping Status</h3>{items}{unmapped}</div>"
    )


@dataclass(frozen=True)
class DetailView:
    """Initial viewport of a project's detail map."""

    center: Tuple[float, float]
    zoom: int
    bounds: Optional[BoundingBox] = None


def detail_view(
    location: LocationModel,
    point_zoom: int = constants.DETAIL_POINT_ZOOM,
    default_zoom: int = constants.DEFAULT_ZOOM
) -> DetailView:
    """Center on a single position, fit bounds otherwise."""
    bounds = location.bounds()
    if bounds.is_degenerate:
        return DetailView(center=bounds.center, zoom=point_zoom)
    return DetailView(center=bounds.center, zoom=default_zoom, bounds=bounds)


class PortfolioRenderer:
    """Render all project footprints on a shared map."""

    def __init__(
        self,
        center: Tuple[float, float] = constants.DEFAULT_CENTER,
        zoom: int = constants.DEFAULT_ZOOM,
        tile_url: str = constants.TILE_URL,
        tile_attribution: str = constants.TILE_ATTRIBUTION,
        detail_url: str = "/project/{id}",
        detail_zoom: int = constants.DETAIL_POINT_ZOOM,
        fit_padding: Tuple[int, int] = constants.FIT_PADDING,
        logger: Optional[logging.Logger] = None
    ):
        self.center = center
        self.zoom = zoom
        self.tile_url = tile_url
        self.tile_attribution = tile_attribution
        self.detail_url = detail_url
        self.detail_zoom = detail_zoom
        self.fit_padding = fit_padding
        self.logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config, logger: Optional[logging.Logger] = None) -> "PortfolioRenderer":
        return cls(
            center=config.map_center,
            zoom=config.map_zoom,
            tile_url=config.tile_url,
            tile_attribution=config.tile_attribution,
            detail_url=config.get("map.detail_url", "/project/{id}"),
            detail_zoom=config.detail_zoom,
            fit_padding=config.fit_padding,
            logger=logger
        )

    def _base_map(self, center: Tuple[float, float], zoom: int) -> folium.Map:
        fmap = folium.Map(location=list(center), zoom_start=zoom, tiles=None)
        folium.TileLayer(tiles=self.tile_url, attr=self.tile_attribution).add_to(fmap)
        return fmap

    def shape_for(self, project: Project, with_popup: bool = True) -> folium.MacroElement:
        """Marker, polyline or polygon for a mapped project."""
        location = project.location
        popup = folium.Popup(popup_html(project, self.detail_url), max_width=300) if with_popup else None
        if location.type == constants.POINT:
            return folium.Marker(location=list(location.coordinates), popup=popup, tooltip=project.name)
        if location.type == constants.LINE_STRING:
            return folium.PolyLine(
                locations=[list(v) for v in location.coordinates],
                color=constants.LINE_COLOR,
                popup=popup,
                tooltip=project.name,
            )
        return folium.Polygon(
            locations=[[list(v) for v in ring] for ring in location.coordinates],
            color=constants.POLYGON_COLOR,
            popup=popup,
            tooltip=project.name,
        )

    def build_shapes(self, classification: PortfolioClassification) -> List[folium.MacroElement]:
        """Create a marker or polyline for every drawable project."""
        shapes = [self.shape_for(p) for p in classification.point + classification.line]
        if classification.polygon:
            self.logger.debug(f"Skipping {len(classification.polygon)} polygon project(s)")
        return shapes

    def render(self, projects: Sequence[Project]) -> folium.Map:
        """Build the portfolio map for a list of projects."""
        classification = classify(projects)
        counts = classification.counts()
        self.logger.info(
            f"Rendering {counts['point']} point(s), {counts['line']} line(s), "
            f"{counts['unmapped']} unmapped project(s)"
        )

        fmap = self._base_map(self.center, self.zoom)
        for shape in self.build_shapes(classification):
            shape.add_to(fmap)
        fmap.get_root().html.add_child(folium.Element(status_panel_html(classification)))
        return fmap

    def render_project(self, project: Project) -> Optional[folium.Map]:
        """
        Build the location map shown on a project's detail page.

        Returns None for an unmapped project; the detail page shows no map then.
        """
        if project.location is None:
            self.logger.debug(f"Project {project.id} has no location to render")
            return None

        view = detail_view(project.location, point_zoom=self.detail_zoom, default_zoom=self.zoom)
        fmap = self._base_map(view.center, view.zoom)
        self.shape_for(project, with_popup=False).add_to(fmap)
        if view.bounds is not None:
            fmap.fit_bounds([list(corner) for corner in view.bounds.corners()], padding=self.fit_padding)
        return fmap

    def save(self, projects: Iterable[Project], path: str) -> None:
        """Render and write the portfolio map as HTML."""
        self.render(list(projects)).save(path)
        self.logger.info(f"Portfolio map written to {path}")

    def save_project(self, project: Project, path: str) -> bool:
        """Write a project's detail map as HTML. Returns False if it has no location."""
        fmap = self.render_project(project)
        if fmap is None:
            return False
        fmap.save(path)
        self.logger.info(f"Location map of project {project.id} written to {path}")
        return True
