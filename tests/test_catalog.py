"""
Tests for the project catalog and the command-line interface.
"""

import json
from pathlib import Path

import pytest

from src.project_locations.catalog import load_projects, parse_projects, save_projects
from src.project_locations.main import main
from src.project_locations.models import LineString, Point
from src.project_locations.portfolio import classify

SHIPPED_CATALOG = Path(__file__).parent.parent / "data" / "projects.json"


class TestCatalog:
    """Loading and saving project catalogs."""

    def test_load_fixture(self, fixtures_dir):
        projects = load_projects(fixtures_dir / "projects.json")
        assert len(projects) == 10
        assert projects[0].location == LineString([(44.75, 20.4), (44.82, 20.48)])
        assert projects[0].total_cost_eur == 200000000

    def test_shipped_catalog_covers_every_project(self):
        projects = load_projects(SHIPPED_CATALOG)
        assert [p.id for p in projects] == [str(n) for n in range(1, 57)]
        assert classify(projects).counts() == {"point": 24, "line": 19, "polygon": 0, "unmapped": 13}

    def test_bare_list(self, tmp_path, catalog_records):
        path = tmp_path / "list.json"
        path.write_text(json.dumps(catalog_records), encoding="utf-8")
        assert len(load_projects(path)) == len(catalog_records)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_projects(tmp_path / "missing.json")

    def test_not_a_list(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"projects": {"id": "1"}}), encoding="utf-8")
        with pytest.raises(ValueError):
            load_projects(path)

    def test_invalid_location_treated_as_unmapped(self):
        records = [{"id": "5", "name": "Broken", "location": {"type": "LineString", "coordinates": [[44.0, 20.0]]}}]
        projects = parse_projects(records)
        assert projects[0].location is None

    def test_save_round_trip(self, tmp_path, sample_projects):
        path = tmp_path / "out.json"
        updated = [p.with_location(Point((43.9, 20.18))) if p.id == "15" else p for p in sample_projects]
        save_projects(updated, path)

        reloaded = {p.id: p for p in load_projects(path)}
        assert reloaded["15"].location == Point((43.9, 20.18))
        assert reloaded["1"] == updated[0]


class TestCli:
    """The project-locations command."""

    def test_classify(self, fixtures_dir, tmp_path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("CONFIG_FILE", raising=False)
        main(["classify", "--catalog", str(fixtures_dir / "projects.json")])

        out = capsys.readouterr().out
        assert "Points:     4" in out
        assert "Not Mapped: 3" in out
        assert "- Nacionalni stadion" in out

    def test_import_kml(self, fixtures_dir, tmp_path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("CONFIG_FILE", raising=False)
        main(["import-kml", str(fixtures_dir / "single_point.kml")])

        assert json.loads(capsys.readouterr().out) == {"type": "Point", "coordinates": [44.808, 20.444]}

    def test_bad_kml_exits_with_message(self, tmp_path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("CONFIG_FILE", raising=False)
        path = tmp_path / "broken.kml"
        path.write_text("<kml><Placemark>", encoding="utf-8")

        with pytest.raises(SystemExit) as excinfo:
            main(["import-kml", str(path)])
        assert excinfo.value.code == 1
        assert "Failed to parse KML file." in capsys.readouterr().out

    def test_render_project(self, fixtures_dir, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("CONFIG_FILE", raising=False)
        output = tmp_path / "project_17.html"
        main(["render-project", "17", "--catalog", str(fixtures_dir / "projects.json"), "--output", str(output)])
        assert output.exists()

    def test_render_unknown_project_exits(self, fixtures_dir, tmp_path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("CONFIG_FILE", raising=False)
        with pytest.raises(SystemExit):
            main(["render-project", "999", "--catalog", str(fixtures_dir / "projects.json")])
        assert "Unknown project id: 999" in capsys.readouterr().out
