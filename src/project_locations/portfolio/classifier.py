"""
Portfolio location classification.

Partitions projects by the kind of geometry they carry.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from ..core import constants
from ..models import Project


@dataclass
class PortfolioClassification:
    """Projects bucketed by geometry kind, each bucket in input order."""

    point: List[Project] = field(default_factory=list)
    line: List[Project] = field(default_factory=list)
    polygon: List[Project] = field(default_factory=list)
    unmapped: List[Project] = field(default_factory=list)

    def counts(self) -> Dict[str, int]:
        return {
            "point": len(self.point),
            "line": len(self.line),
            "polygon": len(self.polygon),
            "unmapped": len(self.unmapped),
        }

    @property
    def total(self) -> int:
        return sum(self.counts().values())

    @property
    def mapped(self) -> List[Project]:
        return self.point + self.line + self.polygon


_BUCKETS = {
    constants.POINT: "point",
    constants.LINE_STRING: "line",
    constants.POLYGON: "polygon",
}


def classify(projects: Iterable[Project]) -> PortfolioClassification:
    """
    Partition projects by ``location.type``.

    Projects without a location go to ``unmapped``.
    """
    result = PortfolioClassification()
    for project in projects:
        if project.location is None:
            result.unmapped.append(project)
        else:
            getattr(result, _BUCKETS[project.location.type]).append(project)
    return result
