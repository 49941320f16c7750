"""GitHub REST API client wrapper."""
import logging
from typing import Any, Dict, Optional

import requests

from .errors import RemoteError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_TIMEOUT = 30.0
DEFAULT_USER_AGENT = "secrets-action"
API_VERSION = "2022-11-28"


class GitHubClient:
    """Thin wrapper around a requests session for the Actions secrets API.

    The token is optional. Without it the session is unauthenticated, which
    GitHub rejects for every private-scope operation.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        api_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._token = token
        self._user_agent = user_agent
        self._session = None

    @property
    def session(self) -> requests.Session:
        """Lazy-initialize session."""
        if self._session is None:
            session = requests.Session()
            session.headers.update({
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": API_VERSION,
                "User-Agent": self._user_agent,
            })
            if self._token:
                session.headers["Authorization"] = f"Bearer {self._token}"
            self._session = session
        return self._session

    @property
    def authenticated(self) -> bool:
        return bool(self._token)

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> requests.Response:
        """
        Issue a single API request.

        Args:
            method: HTTP method
            path: API path starting with '/', already percent-encoded
            json: Optional JSON body

        Returns:
            The response, always 2xx

        Raises:
            TransportError: On connectivity, TLS or timeout failures
            RemoteError: On any non-2xx response
        """
        url = f"{self.api_url}{path}"
        logger.debug(f"{method} {url}")
        try:
            response = self.session.request(method, url, json=json, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise RemoteError(response.status_code, _error_message(response), url=url)
        return response

    def get(self, path: str) -> Dict[str, Any]:
        """GET a path and decode its JSON body. An empty 2xx body decodes to {}."""
        response = self.request("GET", path)
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise RemoteError(response.status_code, f"invalid JSON in response: {e}", url=response.url) from e

    def put(self, path: str, body: Dict[str, Any]) -> int:
        """PUT a JSON body, returning the response status (201 created, 204 updated)."""
        return self.request("PUT", path, json=body).status_code


def _error_message(response: requests.Response) -> str:
    """Extract GitHub's error message, falling back to the reason phrase."""
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return response.reason or "request failed"
