"""
Shared HTTP plumbing for the geocoder and the AI summary service.

Both collaborators are public JSON services that may be slow or rate limited.
Each client owns one ``requests`` session; retries are opt-in because a
geocoder search is a one-shot interactive lookup.
"""

import logging
from typing import Dict, Any, Optional

import requests  # type: ignore
from requests.adapters import HTTPAdapter  # type: ignore
from urllib3.util.retry import Retry  # type: ignore

RETRY_STATUSES = (429, 500, 502, 503, 504)


class APIClient:
    """JSON-over-HTTP client bound to one service base URL."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30,
        max_retries: int = 0,
        user_agent: Optional[str] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Args:
            base_url: Service root, e.g. ``https://nominatim.openstreetmap.org``
            timeout: Per-request timeout in seconds
            max_retries: Retries on connection errors and RETRY_STATUSES (0 disables them)
            user_agent: Identifies the application; public geocoders reject anonymous clients
            logger: Logger instance
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)
        self.session = self._build_session(max_retries, user_agent)

    @staticmethod
    def _build_session(max_retries: int, user_agent: Optional[str]) -> requests.Session:
        session = requests.Session()
        adapter = HTTPAdapter(max_retries=Retry(
            total=max_retries,
            backoff_factor=1,
            status_forcelist=RETRY_STATUSES,
            allowed_methods=["GET", "POST"],
            raise_on_status=False,
        ))
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        session.headers["Accept"] = "application/json"
        if user_agent:
            session.headers["User-Agent"] = user_agent
        return session

    def url_for(self, endpoint: str) -> str:
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    def request_json(self, method: str, endpoint: str, **kwargs) -> Any:
        """
        Send one request and decode the JSON body.

        Raises:
            requests.exceptions.RequestException: Transport failure or non-2xx status
            ValueError: Body is not JSON
        """
        url = self.url_for(endpoint)
        self.logger.debug(f"{method} {url}")

        try:
            response = self.session.request(method=method, url=url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            self.logger.error(f"{method} {url} failed: {e}")
            raise

        try:
            return response.json()
        except ValueError:
            self.logger.error(f"{method} {url} returned a non-JSON body")
            raise

    def get(self, endpoint: str, params: Optional[Dict] = None) -> Any:
        return self.request_json("GET", endpoint, params=params)

    def post(self, endpoint: str, data: Dict[str, Any], params: Optional[Dict] = None) -> Any:
        return self.request_json("POST", endpoint, json=data, params=params)

    def close(self) -> None:
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
