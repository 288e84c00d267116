"""HTTP client for the tracking backend.

Provides bearer-authenticated access to the object, conjunction-warning
and predicted-path feeds, plus the manual sync trigger.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import requests

from orbwatch.data.records import unpack_warning_payload
from orbwatch.errors import MissingCredentialError, TransportError
from orbwatch.utils.constants import DEFAULT_BASE_URL, PATH_HORIZON_HOURS, REQUEST_TIMEOUT_S

logger = logging.getLogger(__name__)


@dataclass
class FeedClient:
    """Client for the tracking backend REST API.

    Credentials are not stored; every call takes the bearer token issued
    by the auth provider.

    Attributes:
        base_url: Backend root URL.
        timeout_s: Per-request timeout in seconds.

    Example::

        client = FeedClient(base_url="http://localhost:8080")
        objects = client.fetch_objects(token)
    """

    base_url: str = DEFAULT_BASE_URL
    timeout_s: float = REQUEST_TIMEOUT_S
    _session: requests.Session = field(default_factory=requests.Session, repr=False)

    OBJECTS_PATH = "/api/satellites"
    WARNINGS_PATH = "/api/conjunctions"
    PATH_TEMPLATE = "/api/satellites/{object_id}/path"
    SYNC_PATH = "/api/sync"

    def _request(self, path: str, token: str | None, params: dict[str, Any] | None = None) -> requests.Response:
        """Issue an authenticated GET request.

        Raises:
            MissingCredentialError: If ``token`` is empty; nothing is sent.
            TransportError: If the backend is unreachable or answers >= 400.
        """
        if not token:
            raise MissingCredentialError(f"No credential for {path}")

        url = f"{self.base_url.rstrip('/')}{path}"
        try:
            response = self._session.get(
                url,
                params=params,
                headers={"Authorization": f"Bearer {token}", "Content-Type": "application/json"},
                timeout=self.timeout_s,
            )
        except requests.RequestException as e:
            logger.warning("Request to %s failed: %s", url, e)
            raise TransportError(f"Feed unreachable: {e}", url=url) from e

        if response.status_code in (401, 403):
            logger.warning("Authentication rejected by %s (%d)", url, response.status_code)
            raise TransportError(f"Auth failed: {response.status_code}", url=url, status_code=response.status_code)

        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            logger.warning("Feed %s returned %d", url, response.status_code)
            raise TransportError(
                f"Feed error: {response.status_code}", url=url, status_code=response.status_code
            ) from e

        return response

    def _json(self, path: str, token: str | None, params: dict[str, Any] | None = None) -> Any:
        response = self._request(path, token, params)
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"Invalid JSON from {path}", url=path, status_code=response.status_code) from e

    def fetch_objects(self, token: str | None) -> list[dict[str, Any]]:
        """Fetch the current object catalog.

        Args:
            token: Bearer credential.

        Returns:
            Raw object records. An empty list means the backend has no data
            yet and needs a sync.

        Raises:
            MissingCredentialError: If no credential is given.
            TransportError: If the request fails or the payload is not a list.
        """
        payload = self._json(self.OBJECTS_PATH, token)
        if not isinstance(payload, list):
            raise TransportError(f"Expected a list from {self.OBJECTS_PATH}, got {type(payload).__name__}")
        logger.debug("Fetched %d object records", len(payload))
        return payload

    def fetch_warnings(self, token: str | None) -> tuple[int, list[dict[str, Any]]]:
        """Fetch the current conjunction warnings.

        Returns:
            Tuple of (warning_count as reported, conjunction records).

        Raises:
            MissingCredentialError: If no credential is given.
            TransportError: If the request fails or the payload is malformed.
        """
        payload = self._json(self.WARNINGS_PATH, token)
        try:
            count, records = unpack_warning_payload(payload)
        except ValueError as e:
            raise TransportError(f"Malformed warning payload: {e}") from e
        logger.debug("Fetched %d conjunction records (reported %d)", len(records), count)
        return count, records

    def fetch_path(
        self, object_id: str, token: str | None, *, hours: float = PATH_HORIZON_HOURS
    ) -> list[dict[str, Any]]:
        """Fetch the predicted path of one object.

        Args:
            object_id: Identifier of the object.
            token: Bearer credential.
            hours: Prediction horizon in hours.

        Returns:
            Time-ordered ``{latitude, longitude, altitude}`` samples.

        Raises:
            MissingCredentialError: If no credential is given.
            TransportError: If the request fails or the payload is not a list.
        """
        path = self.PATH_TEMPLATE.format(object_id=object_id)
        payload = self._json(path, token, params={"hours": hours})
        if not isinstance(payload, list):
            raise TransportError(f"Expected a list from {path}, got {type(payload).__name__}")
        return payload

    def trigger_sync(self, token: str | None) -> str:
        """Ask the backend to re-download its element sets.

        The backend answers before the new data is available; it shows up
        on a later scheduled refresh.

        Returns:
            The backend's acknowledgement text.
        """
        response = self._request(self.SYNC_PATH, token)
        logger.info("Manual sync triggered")
        return response.text
