"""
Pytest configuration and shared fixtures for all tests.
"""

import sys
from pathlib import Path

import pytest
import json

# Add the project root to sys.path so we can import from src
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


@pytest.fixture(scope="session")
def fixtures_dir():
    """Get the fixtures directory path."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture(scope="session")
def catalog_records(fixtures_dir):
    """Load the sample project catalog records."""
    with open(fixtures_dir / "projects.json", encoding="utf-8") as f:
        return json.load(f)["projects"]


@pytest.fixture
def sample_projects(catalog_records):
    """Sample projects built from the catalog fixture."""
    from src.project_locations.catalog import parse_projects
    return parse_projects(catalog_records)


@pytest.fixture(scope="session")
def point_kml(fixtures_dir):
    return (fixtures_dir / "single_point.kml").read_text(encoding="utf-8")


@pytest.fixture(scope="session")
def two_feature_kml(fixtures_dir):
    return (fixtures_dir / "two_features.kml").read_text(encoding="utf-8")


@pytest.fixture(scope="session")
def polygon_kml(fixtures_dir):
    return (fixtures_dir / "site_polygon.kml").read_text(encoding="utf-8")

