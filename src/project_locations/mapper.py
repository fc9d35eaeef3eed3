"""
Project location mapper.

Coordinates project selection, the geometry editor, KML import, address search
and the commit action. Imports and searches run on a background executor; their
results are queued and applied by ``dispatch_pending`` on the caller's thread.
Each background operation remembers the editor session it was started in, and
a result arriving after the operator switched projects is discarded.
"""

import logging
import queue
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from .api import GeocodingAPI
from .core import Config, SessionLogAdapter, constants
from .core.exceptions import LocationError
from .editor import FeedbackChannel, GeometryEditor, MapSurface
from .importers import import_kml
from .models import LocationModel, Project

KML_LOADED_MESSAGE = 'KML loaded. Review on map and click "Update Location" to save.'
SELECT_PROJECT_MESSAGE = "Please select a project first."

IMPORT = "import"
SEARCH = "search"


@dataclass(frozen=True)
class PendingOperation:
    """Ticket for a background import or search."""

    kind: str
    project_id: str
    generation: int


@dataclass
class _Outcome:
    operation: PendingOperation
    result: Any = None
    error: Optional[Exception] = None


class ProjectLocationMapper:
    """Page controller for editing project locations."""

    def __init__(
        self,
        projects: Iterable[Project],
        surface: Optional[MapSurface] = None,
        geocoder: Optional[GeocodingAPI] = None,
        config: Optional[Config] = None,
        on_location_change: Optional[Callable[[Optional[LocationModel]], None]] = None,
        on_commit: Optional[Callable[[Project, Optional[LocationModel]], None]] = None,
        executor: Optional[Executor] = None,
        clock: Optional[Callable[[], float]] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the mapper.

        Args:
            projects: Projects that can be selected
            surface: Map surface (created from config when omitted)
            geocoder: Address search client (created from config when omitted)
            config: Configuration; only used to build missing collaborators
            on_location_change: Called whenever the edited location changes
            on_commit: Called with the project and its new location on commit
            executor: Executor for imports and searches
            clock: Time source for feedback expiry
            logger: Logger instance
        """
        self.logger = logger or logging.getLogger(__name__)
        self.projects: Dict[str, Project] = {p.id: p for p in projects}
        self.on_location_change = on_location_change
        self.on_commit = on_commit

        if config is None and (surface is None or geocoder is None):
            config = Config()

        self.surface = surface or MapSurface.from_config(config, logger=self.logger)
        self.geocoder = geocoder or GeocodingAPI.from_config(config, logger=self.logger)

        feedback_kwargs: Dict[str, Any] = {"logger": self.logger}
        if config is not None:
            feedback_kwargs["duration"] = config.feedback_duration
        if clock is not None:
            feedback_kwargs["clock"] = clock
        self.feedback = FeedbackChannel(**feedback_kwargs)

        self.editor = GeometryEditor(
            surface=self.surface,
            on_location_change=self._handle_location_change,
            feedback=self.feedback,
            point_zoom=config.point_zoom if config else constants.POINT_FIT_ZOOM,
            fit_padding=config.fit_padding if config else constants.FIT_PADDING,
            logger=self.logger,
        )

        self._owns_executor = executor is None
        self.executor = executor or ThreadPoolExecutor(
            max_workers=config.import_workers if config else 2,
            thread_name_prefix="project-locations",
        )
        self._outcomes: "queue.Queue[_Outcome]" = queue.Queue()

        self.selected_project: Optional[Project] = None
        self.location: Optional[LocationModel] = None

    # --- Selection ---

    def select_project(self, project_id: Optional[str]) -> Optional[Project]:
        """
        Select the project to edit, or None to close the editor.

        Selecting the already selected project changes nothing.

        Raises:
            KeyError: If the project id is unknown
        """
        if project_id is not None:
            project_id = str(project_id)
        current_id = self.selected_project.id if self.selected_project else None
        if project_id == current_id:
            self.logger.debug(f"Project {project_id} is already selected")
            return self.selected_project

        self.feedback.clear()
        if project_id is None:
            self.editor.close_session()
            self.selected_project = None
            if self.location is not None:
                self._handle_location_change(None)
            return None

        project = self.projects[project_id]
        self.selected_project = project
        self.editor.open_session(project.id, project.location)
        return project

    def _handle_location_change(self, location: Optional[LocationModel]) -> None:
        self.location = location
        if self.on_location_change is not None:
            self.on_location_change(location)

    # --- Background operations ---

    def _begin(self, kind: str) -> Optional[PendingOperation]:
        if self.selected_project is None or self.editor.generation is None:
            self.feedback.error(SELECT_PROJECT_MESSAGE)
            return None
        return PendingOperation(kind=kind, project_id=self.selected_project.id, generation=self.editor.generation)

    def start_import(self) -> Optional[PendingOperation]:
        """Reserve a ticket for a file import in the current session."""
        return self._begin(IMPORT)

    def start_search(self) -> Optional[PendingOperation]:
        """Reserve a ticket for an address search in the current session."""
        return self._begin(SEARCH)

    def _run(self, operation: PendingOperation, work: Callable[[], Any]) -> None:
        """Worker body: run ``work`` and queue its outcome."""
        log = self._session_log(operation)
        log.debug(f"Running {operation.kind}")
        try:
            outcome = _Outcome(operation, result=work())
        except LocationError as e:
            outcome = _Outcome(operation, error=e)
        except Exception as e:
            log.exception(f"Unexpected {operation.kind} failure")
            outcome = _Outcome(operation, error=e)
        self._outcomes.put(outcome)

    def _submit(self, operation: Optional[PendingOperation], work: Callable[[], Any]) -> Optional[Future]:
        if operation is None:
            return None
        return self.executor.submit(self._run, operation, work)

    def import_kml_async(self, source: Union[str, bytes, Path]) -> Optional[Future]:
        """
        Read and parse a KML upload in the background.

        ``source`` is the document text, or a Path to read it from.
        """
        operation = self.start_import()

        def work():
            text = Path(source).read_text(encoding="utf-8") if isinstance(source, Path) else source
            return import_kml(text)

        return self._submit(operation, work)

    def search_async(self, query: str) -> Optional[Future]:
        """Run an address search in the background."""
        return self._submit(self.start_search(), lambda: self.geocoder.search(query))

    def dispatch_pending(self) -> int:
        """Apply every finished background operation, in completion order."""
        handled = 0
        while True:
            try:
                outcome = self._outcomes.get_nowait()
            except queue.Empty:
                return handled
            self._finish(outcome)
            handled += 1

    def complete_import(
        self,
        operation: PendingOperation,
        location: Optional[LocationModel] = None,
        error: Optional[Exception] = None
    ) -> bool:
        """Apply an import result. Returns True if it changed the session."""
        return self._finish(_Outcome(operation, result=location, error=error))

    def complete_search(
        self,
        operation: PendingOperation,
        bounds: Any = None,
        error: Optional[Exception] = None
    ) -> bool:
        """Apply a search result. Returns True if the viewport moved."""
        return self._finish(_Outcome(operation, result=bounds, error=error))

    def _finish(self, outcome: _Outcome) -> bool:
        operation = outcome.operation
        if not self.editor.is_current(operation.generation):
            self._session_log(operation).debug(f"Discarding stale {operation.kind} result")
            return False

        if outcome.error is not None:
            self._report_error(operation.kind, outcome.error)
            return False

        if operation.kind == IMPORT:
            self.editor.external_replace(outcome.result)
            self.feedback.success(KML_LOADED_MESSAGE)
        else:
            self.editor.navigate_to(outcome.result)
        return True

    def _session_log(self, operation: PendingOperation) -> SessionLogAdapter:
        return SessionLogAdapter(self.logger, operation.project_id, operation.generation)

    def _report_error(self, kind: str, error: Exception) -> None:
        if isinstance(error, LocationError):
            self.feedback.error(error.user_message)
        elif kind == IMPORT:
            self.feedback.error("Failed to parse KML file.")
        else:
            self.feedback.error("Search failed. Please try again.")

    # --- Synchronous conveniences ---

    def import_kml(self, raw_text: Union[str, bytes]) -> bool:
        """Import a KML document on the caller's thread."""
        operation = self.start_import()
        if operation is None:
            return False
        try:
            location = import_kml(raw_text)
        except LocationError as e:
            return self.complete_import(operation, error=e)
        return self.complete_import(operation, location=location)

    def search(self, query: str) -> bool:
        """Run an address search on the caller's thread."""
        operation = self.start_search()
        if operation is None:
            return False
        try:
            bounds = self.geocoder.search(query)
        except LocationError as e:
            return self.complete_search(operation, error=e)
        return self.complete_search(operation, bounds=bounds)

    # --- Commit ---

    def commit(self) -> Optional[LocationModel]:
        """
        Hand the edited location to the caller.

        The project list kept by the mapper is updated in memory; durable
        storage is the ``on_commit`` callback's job.
        """
        if self.selected_project is None:
            self.feedback.error(SELECT_PROJECT_MESSAGE)
            return None

        location = self.editor.commit()
        project = self.selected_project.with_location(location)
        self.projects[project.id] = project
        self.selected_project = project

        self.logger.info("--- MAPPING UPDATE ---")
        self.logger.info(f"Project ID: {project.id}")
        self.logger.info(f"New Location Data: {location.to_dict() if location else None}")

        if self.on_commit is not None:
            self.on_commit(project, location)
        self.feedback.success(f'Location for "{project.name}" updated.')
        return location

    def project_list(self) -> List[Project]:
        return list(self.projects.values())

    def discard_pending(self) -> int:
        """Drop finished background outcomes without applying them."""
        discarded = 0
        while True:
            try:
                self._outcomes.get_nowait()
            except queue.Empty:
                break
            discarded += 1
        if discarded:
            self.logger.debug(f"Discarded {discarded} undelivered background result(s)")
        return discarded

    def close(self) -> None:
        """Tear down the editing session and the executor, dropping undelivered results."""
        self.editor.close_session()
        if self._owns_executor:
            self.executor.shutdown(wait=False, cancel_futures=True)
        self.discard_pending()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
