"""
Tests for portfolio classification and map rendering.
"""

import folium
import pytest

from src.project_locations.models import LineString, Point, Polygon, Project
from src.project_locations.portfolio import (
    PortfolioRenderer,
    classify,
    detail_view,
    popup_html,
    status_panel_html,
)


SQUARE_RING = [(45.0, 19.0), (45.0, 19.1), (45.1, 19.1), (45.0, 19.0)]


def _project(index, kind):
    """A project carrying a location of the given kind, or none."""
    shift = index * 0.01
    locations = {
        "point": Point((44.0 + shift, 20.0)),
        "line": LineString([(44.0 + shift, 20.0), (44.5 + shift, 20.5)]),
        "polygon": Polygon([[(lat + shift, lng) for lat, lng in SQUARE_RING]]),
        None: None,
    }
    return Project(id=str(index), name=f"Project {index}", location=locations[kind])


@pytest.fixture
def polygon_project():
    return Project(id="40", name="Industrijska zona", location=Polygon([SQUARE_RING]))


class TestClassify:
    """Partitioning projects by geometry kind."""

    def test_buckets_partition_the_portfolio(self, sample_projects):
        classification = classify(sample_projects)
        buckets = [classification.point, classification.line, classification.polygon, classification.unmapped]

        ids = [p.id for bucket in buckets for p in bucket]
        assert sorted(ids) == sorted(p.id for p in sample_projects)
        assert len(ids) == len(set(ids))
        assert classification.total == len(sample_projects)

    @pytest.mark.parametrize("kinds", [
        [],
        [None, None, None],
        ["point", "line", "polygon", None],
        ["line", "line", "line", "line"],
        ["polygon", None, "point", "polygon", "point", None, "line"],
        ["point"] * 25 + [None] * 5,
    ])
    def test_partition_over_generated_portfolios(self, kinds):
        projects = [_project(i, kind) for i, kind in enumerate(kinds)]
        classification = classify(projects)
        buckets = {
            "point": classification.point,
            "line": classification.line,
            "polygon": classification.polygon,
            None: classification.unmapped,
        }

        assert classification.total == len(projects)
        assert sum(len(b) for b in buckets.values()) == len(projects)
        for kind, bucket in buckets.items():
            assert bucket == [p for p, k in zip(projects, kinds) if k == kind]

    def test_sample_counts(self, sample_projects):
        counts = classify(sample_projects).counts()
        assert counts == {"point": 4, "line": 3, "polygon": 0, "unmapped": 3}

    def test_input_order_preserved(self, sample_projects):
        classification = classify(sample_projects)
        assert [p.id for p in classification.line] == ["1", "2", "4"]
        assert [p.id for p in classification.unmapped] == ["15", "27", "36"]

    def test_polygon_bucket(self, sample_projects, polygon_project):
        classification = classify(sample_projects + [polygon_project])
        assert classification.polygon == [polygon_project]
        assert polygon_project in classification.mapped

    def test_empty_portfolio(self):
        classification = classify([])
        assert classification.total == 0
        assert classification.mapped == []


class TestRenderer:
    """Folium rendering of the portfolio."""

    def test_points_become_markers(self, sample_projects):
        shapes = PortfolioRenderer().build_shapes(classify(sample_projects))
        markers = [s for s in shapes if isinstance(s, folium.Marker)]

        assert len(markers) == 4
        assert list(markers[0].location) == [44.808, 20.444]

    def test_lines_become_polylines(self, sample_projects):
        shapes = PortfolioRenderer().build_shapes(classify(sample_projects))
        lines = [s for s in shapes if isinstance(s, folium.PolyLine)]

        assert len(lines) == 3
        assert [list(v) for v in lines[0].locations] == [[44.75, 20.4], [44.82, 20.48]]

    def test_polygons_are_not_drawn(self, polygon_project):
        shapes = PortfolioRenderer().build_shapes(classify([polygon_project]))
        assert shapes == []

    def test_render_contains_status_panel(self, sample_projects):
        fmap = PortfolioRenderer().render(sample_projects)
        html = fmap.get_root().render()

        assert "Project Mapping Status" in html
        assert "Nacionalni stadion" in html
        assert "/project/17" in html

    def test_save_writes_html(self, sample_projects, tmp_path):
        output = tmp_path / "portfolio.html"
        PortfolioRenderer().save(sample_projects, str(output))
        assert output.exists()
        assert "Project Mapping Status" in output.read_text(encoding="utf-8")


class TestProjectMap:
    """Location map on a project's detail page."""

    def test_point_view_centers_at_detail_zoom(self):
        view = detail_view(Point((44.808, 20.444)))
        assert view.center == (44.808, 20.444)
        assert view.zoom == 14
        assert view.bounds is None

    def test_line_view_fits_bounds(self, sample_projects):
        line = sample_projects[0].location
        view = detail_view(line)
        assert view.bounds == line.bounds()
        assert view.zoom == 7

    def test_point_project_map(self, sample_projects):
        project = next(p for p in sample_projects if p.id == "17")
        fmap = PortfolioRenderer().render_project(project)

        assert list(fmap.location) == [44.808, 20.444]
        assert any(isinstance(c, folium.Marker) for c in fmap._children.values())
        assert "fitBounds" not in fmap.get_root().render()

    def test_line_project_map(self, sample_projects):
        fmap = PortfolioRenderer().render_project(sample_projects[0])
        html = fmap.get_root().render()

        assert any(isinstance(c, folium.PolyLine) for c in fmap._children.values())
        assert "fitBounds" in html
        assert '"blue"' in html

    def test_polygon_project_map(self, polygon_project):
        fmap = PortfolioRenderer().render_project(polygon_project)
        assert any(isinstance(c, folium.Polygon) for c in fmap._children.values())

    def test_unmapped_project_has_no_map(self, sample_projects, tmp_path):
        project = next(p for p in sample_projects if p.id == "15")
        renderer = PortfolioRenderer()
        output = tmp_path / "project.html"

        assert renderer.render_project(project) is None
        assert not renderer.save_project(project, str(output))
        assert not output.exists()

    def test_save_project(self, sample_projects, tmp_path):
        output = tmp_path / "project.html"
        assert PortfolioRenderer().save_project(sample_projects[0], str(output))
        assert output.exists()


class TestHtml:
    """Popup and status panel markup."""

    def test_popup_fields(self, sample_projects):
        project = sample_projects[0]
        html = popup_html(project)

        assert "Obilaznica oko Beograda, sektor B" in html
        assert "ID: 1" in html
        assert "&euro;200m" in html
        assert 'href="/project/1"' in html

    def test_popup_custom_detail_url(self, sample_projects):
        html = popup_html(sample_projects[0], detail_url="#/project/{id}")
        assert 'href="#/project/1"' in html

    def test_popup_escapes_name(self):
        project = Project(id="99", name="<script>alert(1)</script>")
        assert "<script>" not in popup_html(project)

    def test_status_panel_lists_unmapped(self, sample_projects):
        html = status_panel_html(classify(sample_projects))
        assert "<b>Not Mapped:</b> 3" in html
        assert "Unmapped Projects:" in html
        for name in ("Regionalni centri za upravljanje otpadom", "Nacionalni stadion"):
            assert name in html

    def test_status_panel_all_mapped(self, sample_projects):
        mapped = [p for p in sample_projects if p.location is not None]
        html = status_panel_html(classify(mapped))
        assert "Unmapped Projects:" not in html
