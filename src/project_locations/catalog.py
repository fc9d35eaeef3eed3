"""
Project catalog loading.

Reads the project list (identifying fields, costs and stored locations) from a
JSON file. Stored locations are kept in the internal ``(lat, lng)`` order.

Note: the reference dashboard data writes Point/LineString literals as
``[lat, lng]`` while GeoJSON tooling expects ``[lng, lat]``. Catalog files
follow the internal order; anything GeoJSON-shaped must be converted with
``models.from_interchange`` before it is stored here.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .core.exceptions import InvalidGeometry
from .models import Project


def parse_projects(records: List[Dict[str, Any]], logger: Optional[logging.Logger] = None) -> List[Project]:
    """
    Build projects from catalog records.

    A record with a malformed location is kept as unmapped and logged.
    """
    logger = logger or logging.getLogger(__name__)
    projects = []
    for record in records:
        try:
            projects.append(Project.from_dict(record))
        except InvalidGeometry as e:
            logger.warning(f"Project {record.get('id')} has an invalid location, treating as unmapped: {e}")
            projects.append(Project.from_dict(dict(record, location=None)))
    return projects


def load_projects(path: Union[str, Path], logger: Optional[logging.Logger] = None) -> List[Project]:
    """
    Load the project catalog from a JSON file.

    The file holds either a list of records or ``{"projects": [...]}``.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not a valid catalog
    """
    logger = logger or logging.getLogger(__name__)
    catalog_path = Path(path)
    if not catalog_path.exists():
        raise FileNotFoundError(f"Project catalog not found: {path}")

    with open(catalog_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    records = data.get("projects", []) if isinstance(data, dict) else data
    if not isinstance(records, list):
        raise ValueError(f"Project catalog {path} must contain a list of projects")

    projects = parse_projects(records, logger)
    logger.info(f"Loaded {len(projects)} projects from {path}")
    return projects


def save_projects(projects: List[Project], path: Union[str, Path]) -> None:
    """Write projects back to a JSON catalog."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump({"projects": [p.to_dict() for p in projects]}, f, ensure_ascii=False, indent=2)
