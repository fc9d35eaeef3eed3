"""
Command-line entry point for the project location subsystem.

Renders the portfolio map and per-project location maps, prints the mapping status, checks KML files and
runs address searches.
"""

import json
import sys
from typing import List, Optional

from .core import Config, setup_logger, LoggerContext
from .core.exceptions import LocationError
from .api import GeocodingAPI
from .catalog import load_projects
from .importers import import_kml_file
from .portfolio import PortfolioRenderer, classify


class LocationsApp:
    """Command-line application around the location subsystem."""

    def __init__(self, config_file: Optional[str] = None, log_level: str = "INFO"):
        """
        Initialize application.

        Args:
            config_file: Path to configuration file
            log_level: Logging level
        """
        self.config = Config(config_file)
        self.logger = setup_logger(log_level=log_level)
        self.logger.debug(f"Configuration: {self.config}")

    def render_portfolio(self, catalog: Optional[str], output: str) -> None:
        """Write the portfolio map to an HTML file."""
        projects = load_projects(catalog or self.config.catalog_path, self.logger)
        renderer = PortfolioRenderer.from_config(self.config, logger=self.logger)
        with LoggerContext(self.logger, "portfolio rendering"):
            renderer.save(projects, output)

    def render_project(self, catalog: Optional[str], project_id: str, output: str) -> None:
        """Write one project's location map to an HTML file."""
        projects = {p.id: p for p in load_projects(catalog or self.config.catalog_path, self.logger)}
        if project_id not in projects:
            raise ValueError(f"Unknown project id: {project_id}")
        renderer = PortfolioRenderer.from_config(self.config, logger=self.logger)
        if not renderer.save_project(projects[project_id], output):
            print(f"Project {project_id} has no location")

    def print_status(self, catalog: Optional[str]) -> None:
        """Print mapping counts and the unmapped projects."""
        projects = load_projects(catalog or self.config.catalog_path, self.logger)
        classification = classify(projects)
        counts = classification.counts()

        print("Project Mapping Status")
        print(f"  Points:     {counts['point']}")
        print(f"  Lines:      {counts['line']}")
        print(f"  Polygons:   {counts['polygon']}")
        print(f"  Not Mapped: {counts['unmapped']}")
        if classification.unmapped:
            print("Unmapped Projects:")
            for project in classification.unmapped:
                print(f"  - {project.name}")

    def check_kml(self, path: str) -> None:
        """Import a KML file and print the resulting location."""
        location = import_kml_file(path)
        print(json.dumps(location.to_dict(), indent=2))

    def search(self, query: str) -> None:
        """Resolve a place name and print its bounding box."""
        with GeocodingAPI.from_config(self.config, logger=self.logger) as geocoder:
            bounds = geocoder.search(query)
        (south, west), (north, east) = bounds.corners()
        print(f"south={south} west={west} north={north} east={east}")


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Public investment project locations"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to configuration file"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    render = subparsers.add_parser("render-portfolio", help="Write the portfolio map as HTML")
    render.add_argument("--catalog", type=str, default=None, help="Project catalog JSON")
    render.add_argument("--output", type=str, default="portfolio_map.html", help="Output HTML file")

    detail = subparsers.add_parser("render-project", help="Write one project's location map as HTML")
    detail.add_argument("project_id", type=str, help="Project id")
    detail.add_argument("--catalog", type=str, default=None, help="Project catalog JSON")
    detail.add_argument("--output", type=str, default="project_map.html", help="Output HTML file")

    status = subparsers.add_parser("classify", help="Print the mapping status")
    status.add_argument("--catalog", type=str, default=None, help="Project catalog JSON")

    kml = subparsers.add_parser("import-kml", help="Validate a KML file and print its location")
    kml.add_argument("path", type=str, help="KML file")

    search = subparsers.add_parser("search", help="Look up a place name")
    search.add_argument("query", type=str, help="Place name or address")

    args = parser.parse_args(argv)

    try:
        app = LocationsApp(config_file=args.config, log_level=args.log_level)
        if args.command == "render-portfolio":
            app.render_portfolio(args.catalog, args.output)
        elif args.command == "render-project":
            app.render_project(args.catalog, args.project_id, args.output)
        elif args.command == "classify":
            app.print_status(args.catalog)
        elif args.command == "import-kml":
            app.check_kml(args.path)
        elif args.command == "search":
            app.search(args.query)
    except LocationError as e:
        print(e.user_message)
        sys.exit(1)
    except (FileNotFoundError, ValueError) as e:
        print(f"Application failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
