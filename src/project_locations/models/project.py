"""
Project data models.

Projects are owned by the financial side of the dashboard; this subsystem only
reads the identifying fields and the optional location.
"""

from dataclasses import dataclass, replace
from typing import Optional, Dict, Any

from .location import LocationModel, from_dict as location_from_dict

EUR_RSD_RATE = 117.2


@dataclass(frozen=True)
class Project:
    """Public investment project with an optional geographic footprint."""

    id: str
    name: str
    name_en: Optional[str] = None
    project_code: Optional[str] = None
    total_cost_rsd: float = 0.0
    total_cost_eur: float = 0.0
    location: Optional[LocationModel] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        """
        Build a project from a catalog record.

        The EUR cost is derived from the RSD cost when it is not given.
        """
        total_cost_rsd = float(data.get("total_cost_rsd") or 0.0)
        total_cost_eur = data.get("total_cost_eur")
        if total_cost_eur is None:
            total_cost_eur = round(total_cost_rsd / EUR_RSD_RATE)

        location = data.get("location")
        return cls(
            id=str(data["id"]),
            name=data["name"],
            name_en=data.get("name_en"),
            project_code=data.get("project_code"),
            total_cost_rsd=total_cost_rsd,
            total_cost_eur=float(total_cost_eur),
            location=location_from_dict(location) if location else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "name_en": self.name_en,
            "project_code": self.project_code,
            "total_cost_rsd": self.total_cost_rsd,
            "total_cost_eur": self.total_cost_eur,
            "location": self.location.to_dict() if self.location else None,
        }

    def with_location(self, location: Optional[LocationModel]) -> "Project":
        """Return a copy of the project with a different location."""
        return replace(self, location=location)
