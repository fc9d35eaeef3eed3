"""
Tests for the project location mapper.

Covers the end-to-end editing scenarios: importing a place-mark, replacing a
drawn line, failed searches, removal followed by classification, and stale
background results after switching projects.
"""

from concurrent.futures import Executor, Future
from unittest.mock import Mock

import pytest

from src.project_locations.core.exceptions import NotFound, ServiceError
from src.project_locations.editor import EditorState, MapSurface
from src.project_locations.mapper import KML_LOADED_MESSAGE, ProjectLocationMapper
from src.project_locations.models import BoundingBox, LineString, Point
from src.project_locations.portfolio import classify


class DeferredExecutor(Executor):
    """Executor that runs submitted work only when asked to."""

    def __init__(self):
        self.jobs = []

    def submit(self, fn, *args, **kwargs):
        future = Future()
        self.jobs.append((future, fn, args, kwargs))
        return future

    def run_all(self):
        jobs, self.jobs = self.jobs, []
        for future, fn, args, kwargs in jobs:
            future.set_result(fn(*args, **kwargs))


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture
def host(sample_projects):
    """A host that stores every reported location change per project."""
    return {"projects": {p.id: p for p in sample_projects}, "changes": []}


@pytest.fixture
def executor():
    return DeferredExecutor()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def mapper(sample_projects, host, executor, clock):
    def on_change(location):
        host["changes"].append(location)

    m = ProjectLocationMapper(
        projects=sample_projects,
        surface=MapSurface(),
        geocoder=Mock(),
        on_location_change=on_change,
        executor=executor,
        clock=clock,
        logger=Mock(),
    )
    yield m
    m.close()


class TestSelection:
    """Project selection."""

    def test_select_project_shows_stored_location(self, mapper):
        mapper.select_project("1")
        assert isinstance(mapper.editor.active_geometry, LineString)
        assert len(mapper.surface.layer_ids()) == 1

    def test_select_unmapped_project(self, mapper):
        mapper.select_project("15")
        assert mapper.editor.state is EditorState.EMPTY
        assert mapper.location is None

    def test_select_same_project_twice(self, mapper):
        mapper.select_project("1")
        layers = mapper.surface.layers
        generation = mapper.editor.generation
        mapper.select_project("1")
        assert mapper.surface.layers == layers
        assert mapper.editor.generation == generation

    def test_selecting_clears_feedback(self, mapper):
        mapper.commit()
        assert mapper.feedback.current is not None
        mapper.select_project("1")
        assert mapper.feedback.current is None

    def test_deselect_clears_map(self, mapper):
        mapper.select_project("1")
        mapper.select_project(None)
        assert mapper.surface.layer_ids() == []
        assert not mapper.surface.controls_attached

    def test_switch_to_unmapped_reports_none(self, mapper, host):
        """Moving from a mapped project to an unmapped one tells the host the location is gone."""
        mapper.select_project("1")
        mapper.select_project("15")

        assert host["changes"][-1] is None
        assert mapper.location is None
        assert mapper.surface.layer_ids() == []

    def test_switch_between_unmapped_projects_is_silent(self, mapper, host):
        mapper.select_project("15")
        mapper.select_project("27")
        assert host["changes"] == []

    def test_deselect_reports_none(self, mapper, host):
        mapper.select_project("17")
        mapper.select_project(None)
        assert host["changes"] == [mapper.projects["17"].location, None]

    def test_unknown_project(self, mapper):
        with pytest.raises(KeyError):
            mapper.select_project("999")


class TestImport:
    """KML import through the mapper."""

    def test_import_single_point(self, mapper, point_kml):
        """Importing a single place-mark installs its axis-swapped point."""
        mapper.select_project("15")
        assert mapper.import_kml(point_kml)

        assert mapper.editor.state is EditorState.SINGLE
        assert mapper.editor.active_geometry == Point((44.808, 20.444))
        assert mapper.feedback.text == KML_LOADED_MESSAGE
        assert not mapper.feedback.current.is_error

    def test_import_replaces_existing_geometry(self, mapper, point_kml):
        mapper.select_project("1")
        mapper.import_kml(point_kml)
        assert mapper.surface.layers.popitem()[1]["type"] == "Point"
        assert len(mapper.surface.layer_ids()) == 1

    def test_failed_import_keeps_geometry(self, mapper):
        mapper.select_project("1")
        before = mapper.editor.active_geometry

        assert not mapper.import_kml("<kml><broken")
        assert mapper.editor.active_geometry == before
        assert mapper.feedback.text == "Failed to parse KML file."
        assert mapper.feedback.current.is_error

    def test_unsupported_geometry_message(self, mapper):
        mapper.select_project("1")
        text = "<kml><Placemark><Model><Location/></Model></Placemark></kml>"
        mapper.import_kml(text)
        assert mapper.feedback.text == 'Unsupported geometry type "Model" in KML.'

    def test_no_features_message(self, mapper):
        mapper.select_project("1")
        mapper.import_kml("<kml><Document/></kml>")
        assert mapper.feedback.text == "No valid features found in KML file."

    def test_import_without_project(self, mapper, point_kml):
        assert not mapper.import_kml(point_kml)
        assert mapper.feedback.text == "Please select a project first."

    def test_async_import(self, mapper, executor, point_kml):
        mapper.select_project("15")
        future = mapper.import_kml_async(point_kml)
        assert mapper.editor.state is EditorState.EMPTY

        executor.run_all()
        assert future.done()
        assert mapper.dispatch_pending() == 1
        assert mapper.editor.active_geometry == Point((44.808, 20.444))

    def test_async_import_from_path(self, mapper, executor, fixtures_dir):
        mapper.select_project("15")
        mapper.import_kml_async(fixtures_dir / "two_features.kml")
        executor.run_all()
        mapper.dispatch_pending()
        assert isinstance(mapper.editor.active_geometry, LineString)

    def test_stale_import_is_discarded(self, mapper, executor, two_feature_kml):
        """An import for P1 finishing after switching to P2 is ignored."""
        mapper.select_project("1")
        mapper.import_kml_async(two_feature_kml)
        mapper.select_project("17")
        p2_point = mapper.projects["17"].location

        executor.run_all()
        mapper.dispatch_pending()

        assert mapper.editor.active_geometry == p2_point
        assert list(mapper.surface.layers.values()) == [p2_point.to_interchange()]
        assert mapper.feedback.current is None

    def test_stale_import_ticket(self, mapper, point_kml):
        mapper.select_project("1")
        ticket = mapper.start_import()
        mapper.select_project("17")
        assert not mapper.complete_import(ticket, location=Point((10.0, 10.0)))
        assert mapper.editor.active_geometry == mapper.projects["17"].location


class TestSearch:
    """Address search through the mapper."""

    def test_search_moves_viewport_only(self, mapper):
        bounds = BoundingBox(south=44.81, west=20.44, north=44.83, east=20.46)
        mapper.geocoder.search.return_value = bounds
        mapper.select_project("1")
        before = mapper.editor.active_geometry

        assert mapper.search("Belgrade Fortress")
        assert mapper.surface.viewport.bounds == bounds
        assert mapper.editor.active_geometry == before

    def test_search_not_found_keeps_geometry(self, mapper, host):
        """A search with zero results leaves the geometry alone and shows an error."""
        mapper.geocoder.search.side_effect = NotFound()
        mapper.select_project("1")
        before = mapper.editor.active_geometry
        changes = list(host["changes"])

        assert not mapper.search("Atlantis")
        assert mapper.editor.active_geometry == before
        assert host["changes"] == changes
        assert mapper.feedback.text == "Location not found."
        assert mapper.feedback.current.is_error

    def test_service_error_message(self, mapper):
        mapper.geocoder.search.side_effect = ServiceError("boom")
        mapper.select_project("1")
        mapper.search("Niš")
        assert mapper.feedback.text == "Search failed. Please try again."

    def test_stale_search_is_discarded(self, mapper, executor):
        bounds = BoundingBox(south=10.0, west=10.0, north=11.0, east=11.0)
        mapper.geocoder.search.return_value = bounds
        mapper.select_project("1")
        mapper.search_async("Somewhere")
        mapper.select_project("17")

        executor.run_all()
        assert mapper.dispatch_pending() == 1
        assert mapper.surface.viewport.bounds != bounds

    def test_async_search_error(self, mapper, executor):
        mapper.geocoder.search.side_effect = NotFound()
        mapper.select_project("1")
        mapper.search_async("Atlantis")
        executor.run_all()
        mapper.dispatch_pending()
        assert mapper.feedback.text == "Location not found."


class TestEditing:
    """Drawing and removal through the mapper."""

    def test_second_line_replaces_first(self, mapper):
        mapper.select_project("15")
        first = LineString([(44.75, 20.4), (44.82, 20.48)])
        second = LineString([(43.32, 21.9), (43.15, 22.7)])
        mapper.editor.draw(first)
        mapper.editor.draw(second)

        assert mapper.location == second
        assert list(mapper.surface.layers.values()) == [second.to_interchange()]

    def test_remove_then_classify_unmapped(self, mapper, host):
        """Removing the only geometry reports None; the project then classifies as unmapped."""
        mapper.select_project("17")
        mapper.editor.remove()

        assert host["changes"][-1] is None
        host["projects"]["17"] = host["projects"]["17"].with_location(host["changes"][-1])
        classification = classify(host["projects"].values())
        assert "17" in [p.id for p in classification.unmapped]


class TestCommit:
    """Commit hands the location to the caller."""

    def test_commit_without_project(self, mapper):
        assert mapper.commit() is None
        assert mapper.feedback.text == "Please select a project first."

    def test_commit_calls_handler(self, mapper):
        committed = []
        mapper.on_commit = lambda project, location: committed.append((project.id, location))
        mapper.select_project("15")
        point = Point((43.9, 20.18))
        mapper.editor.draw(point)

        assert mapper.commit() == point
        assert committed == [("15", point)]
        assert mapper.projects["15"].location == point
        assert mapper.feedback.text == 'Location for "Regionalni centri za upravljanje otpadom" updated.'

    def test_commit_removal(self, mapper):
        mapper.select_project("17")
        mapper.editor.remove()
        assert mapper.commit() is None
        assert mapper.projects["17"].location is None
        assert "17" in [p.id for p in classify(mapper.project_list()).unmapped]


class TestFeedback:
    """Feedback messages are transient."""

    def test_message_expires(self, mapper, clock, point_kml):
        mapper.select_project("15")
        mapper.import_kml(point_kml)
        assert mapper.feedback.text == KML_LOADED_MESSAGE

        clock.now += 3.9
        assert mapper.feedback.current is not None
        clock.now += 0.2
        assert mapper.feedback.current is None
        assert mapper.feedback.text == ""

    def test_editor_usable_after_error(self, mapper):
        mapper.select_project("1")
        mapper.import_kml("not xml")
        point = Point((44.0, 20.0))
        mapper.editor.draw(point)
        assert mapper.location == point


class TestClose:
    """Closing the mapper."""

    def test_close_drops_undelivered_results(self, mapper, executor, point_kml, host):
        mapper.select_project("15")
        mapper.import_kml_async(point_kml)
        executor.run_all()

        mapper.close()
        assert mapper.dispatch_pending() == 0
        assert host["changes"] == []

    def test_discard_pending_counts(self, mapper, executor, point_kml):
        mapper.select_project("15")
        mapper.import_kml_async(point_kml)
        mapper.search_async("Novi Sad")
        executor.run_all()
        assert mapper.discard_pending() == 2
        assert mapper.editor.state is EditorState.EMPTY


class TestThreadedExecutor:
    """Background work on a real thread pool."""

    def test_import_on_thread_pool(self, sample_projects, point_kml):
        with ProjectLocationMapper(
            projects=sample_projects,
            surface=MapSurface(),
            geocoder=Mock(),
        ) as mapper:
            mapper.select_project("15")
            future = mapper.import_kml_async(point_kml)
            future.result(timeout=10)
            assert mapper.dispatch_pending() == 1
            assert mapper.editor.active_geometry == Point((44.808, 20.444))
