"""
Configuration module for the project location subsystem.

Loads configuration from JSON file and environment variables.
"""

import copy
import json
import os
from typing import Dict, Any, Optional, Tuple
from pathlib import Path

from . import constants


DEFAULT_CONFIG: Dict[str, Any] = {
    "geocoding": {
        "base_url": constants.DEFAULT_GEOCODER_URL,
        "user_agent": constants.DEFAULT_GEOCODER_USER_AGENT,
        "timeout": 10,
        "max_retries": 0,
    },
    "map": {
        "center": list(constants.DEFAULT_CENTER),
        "zoom": constants.DEFAULT_ZOOM,
        "point_zoom": constants.POINT_FIT_ZOOM,
        "detail_zoom": constants.DETAIL_POINT_ZOOM,
        "fit_padding": list(constants.FIT_PADDING),
        "tile_url": constants.TILE_URL,
        "tile_attribution": constants.TILE_ATTRIBUTION,
    },
    "editor": {
        "feedback_duration": constants.FEEDBACK_DURATION,
        "import_workers": 2,
    },
    "summary": {
        "base_url": constants.DEFAULT_SUMMARY_URL,
        "model": constants.DEFAULT_SUMMARY_MODEL,
        "timeout": 60,
    },
    "catalog": {
        "path": "data/projects.json",
    },
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``override`` into ``base`` (in place)."""
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


class Config:
    """Configuration manager for the application."""

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_file: Path to configuration JSON file. If None, uses CONFIG_FILE env var
                        or defaults to 'config.json'. A missing default file is not an
                        error; built-in defaults are used instead.
        """
        self._explicit_file = config_file is not None or bool(os.getenv("CONFIG_FILE"))
        self.config_file = config_file or os.getenv("CONFIG_FILE", "config.json")
        self.config: Dict[str, Any] = copy.deepcopy(DEFAULT_CONFIG)
        self._load_config()
        self._override_from_env()
        self._validate_config()

    def _load_config(self) -> None:
        """Load configuration from JSON file."""
        config_path = Path(self.config_file)
        if not config_path.exists():
            if self._explicit_file:
                raise FileNotFoundError(f"Configuration file not found: {self.config_file}")
            return

        with open(config_path, "r", encoding="utf-8") as f:
            _merge(self.config, json.load(f))

    def _override_from_env(self) -> None:
        """Override configuration with environment variables."""
        # Geocoding
        if os.getenv("GEOCODER_BASE_URL"):
            self.config["geocoding"]["base_url"] = os.getenv("GEOCODER_BASE_URL")

        if os.getenv("GEOCODER_USER_AGENT"):
            self.config["geocoding"]["user_agent"] = os.getenv("GEOCODER_USER_AGENT")

        # AI summary
        api_key = os.getenv("SUMMARY_API_KEY") or os.getenv("API_KEY")
        if api_key:
            self.config["summary"]["api_key"] = api_key

        if os.getenv("SUMMARY_MODEL"):
            self.config["summary"]["model"] = os.getenv("SUMMARY_MODEL")

        # Catalog
        if os.getenv("PROJECT_CATALOG"):
            self.config["catalog"]["path"] = os.getenv("PROJECT_CATALOG")

        # Environment
        if os.getenv("ENVIRONMENT"):
            self.config["environment"] = os.getenv("ENVIRONMENT")

    def _validate_config(self) -> None:
        """Validate configuration values."""
        errors = []

        for section in ("geocoding", "summary"):
            timeout = self.get(f"{section}.timeout")
            if not isinstance(timeout, (int, float)) or timeout <= 0:
                errors.append(f"{section}.timeout must be a positive number")

        retries = self.get("geocoding.max_retries")
        if not isinstance(retries, int) or retries < 0:
            errors.append("geocoding.max_retries must be a non-negative integer")

        for key in ("map.zoom", "map.point_zoom", "map.detail_zoom"):
            zoom = self.get(key)
            if not isinstance(zoom, int) or not (0 <= zoom <= 22):
                errors.append(f"{key} must be an integer between 0 and 22")

        center = self.get("map.center")
        if not isinstance(center, (list, tuple)) or len(center) != 2:
            errors.append("map.center must be a [lat, lng] pair")

        duration = self.get("editor.feedback_duration")
        if not isinstance(duration, (int, float)) or duration <= 0:
            errors.append("editor.feedback_duration must be a positive number")

        workers = self.get("editor.import_workers")
        if not isinstance(workers, int) or workers < 1:
            errors.append("editor.import_workers must be a positive integer")

        if errors:
            raise ValueError(f"Invalid configuration: {'; '.join(errors)}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key (supports dot notation).

        Args:
            key: Configuration key (e.g., 'geocoding.base_url')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key.split(".")
        value = self.config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    @property
    def geocoder_base_url(self) -> str:
        """Get geocoding provider base URL."""
        return self.get("geocoding.base_url", constants.DEFAULT_GEOCODER_URL)

    @property
    def geocoder_user_agent(self) -> str:
        """Get User-Agent sent to the geocoding provider."""
        return self.get("geocoding.user_agent", constants.DEFAULT_GEOCODER_USER_AGENT)

    @property
    def geocoder_timeout(self) -> float:
        """Get geocoding timeout in seconds."""
        return self.get("geocoding.timeout", 10)

    @property
    def geocoder_max_retries(self) -> int:
        """Get maximum geocoding retry attempts."""
        return self.get("geocoding.max_retries", 0)

    @property
    def map_center(self) -> Tuple[float, float]:
        """Get default map center as (lat, lng)."""
        lat, lng = self.get("map.center", list(constants.DEFAULT_CENTER))
        return float(lat), float(lng)

    @property
    def map_zoom(self) -> int:
        """Get default map zoom."""
        return self.get("map.zoom", constants.DEFAULT_ZOOM)

    @property
    def point_zoom(self) -> int:
        """Get zoom used to center on a single point."""
        return self.get("map.point_zoom", constants.POINT_FIT_ZOOM)

    @property
    def detail_zoom(self) -> int:
        """Get zoom of a point on a project's detail map."""
        return self.get("map.detail_zoom", constants.DETAIL_POINT_ZOOM)

    @property
    def fit_padding(self) -> Tuple[int, int]:
        """Get viewport fit padding in pixels."""
        x, y = self.get("map.fit_padding", list(constants.FIT_PADDING))
        return int(x), int(y)

    @property
    def tile_url(self) -> str:
        """Get map tile URL template."""
        return self.get("map.tile_url", constants.TILE_URL)

    @property
    def tile_attribution(self) -> str:
        """Get map tile attribution."""
        return self.get("map.tile_attribution", constants.TILE_ATTRIBUTION)

    @property
    def feedback_duration(self) -> float:
        """Get feedback message lifetime in seconds."""
        return self.get("editor.feedback_duration", constants.FEEDBACK_DURATION)

    @property
    def import_workers(self) -> int:
        """Get number of background workers for imports and searches."""
        return self.get("editor.import_workers", 2)

    @property
    def summary_base_url(self) -> str:
        """Get AI summary service base URL."""
        return self.get("summary.base_url", constants.DEFAULT_SUMMARY_URL)

    @property
    def summary_model(self) -> str:
        """Get AI summary model name."""
        return self.get("summary.model", constants.DEFAULT_SUMMARY_MODEL)

    @property
    def summary_api_key(self) -> Optional[str]:
        """Get AI summary API key."""
        return self.get("summary.api_key")

    @property
    def summary_timeout(self) -> float:
        """Get AI summary timeout in seconds."""
        return self.get("summary.timeout", 60)

    @property
    def catalog_path(self) -> str:
        """Get project catalog JSON path."""
        return self.get("catalog.path", "data/projects.json")

    def __repr__(self) -> str:
        """String representation of config."""
        return f"Config(file={self.config_file}, env={self.get('environment')})"
