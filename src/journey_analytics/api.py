"""HTTP client for the journey backend.

Wraps the three read endpoints used by the analytics:

- ``GET /journeys/scientist-data``: all journey records
- ``GET /journeys/analytics``: server-side analytics, optionally filtered
- ``GET /health``: liveness check

Responses come in a ``{success, data, message?, metadata?}`` envelope.
The base URL is read from ``JOURNEY_API_URL`` (a ``.env`` file is honoured).
"""

import logging
import os
from dataclasses import dataclass
from datetime import date
from typing import Any

import requests
from dotenv import load_dotenv
from pydantic import ValidationError

from journey_canon.models import ApiEnvelope

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:3000/api"


@dataclass
class ApiError(Exception):
    """Failed request to the journey backend.

    Attributes:
        message: Server message, or a description of the failure
        status_code: HTTP status, None when no response was received
        url: Requested URL
    """

    message: str
    status_code: int | None = None
    url: str | None = None

    def __str__(self) -> str:
        """Format error message."""
        parts = [self.message]
        if self.status_code is not None:
            parts.append(f"(status {self.status_code})")
        if self.url:
            parts.append(f"[{self.url}]")
        return " ".join(parts)


class JourneyApiClient:
    """Client for the journey backend endpoints."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: API root, e.g. ``http://localhost:3000/api``
            timeout: Request timeout in seconds (None waits indefinitely)
            session: Optional requests session (a new one by default)
        """
        self.base_url = (base_url or DEFAULT_API_URL).rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_env(
        cls, session: requests.Session | None = None
    ) -> "JourneyApiClient":
        """Create a client from JOURNEY_API_URL and JOURNEY_API_TIMEOUT."""
        load_dotenv()
        base_url = os.getenv("JOURNEY_API_URL", DEFAULT_API_URL)
        timeout = os.getenv("JOURNEY_API_TIMEOUT")
        return cls(
            base_url=base_url,
            timeout=float(timeout) if timeout else None,
            session=session,
        )

    def _get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        failure_message: str = "Request failed",
    ) -> ApiEnvelope:
        """GET an endpoint and unwrap the response envelope.

        Raises:
            ApiError: On transport errors, non-2xx status, undecodable JSON
                or an envelope with ``success: false``
        """
        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(
                url, params=params, timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error("Request to %s failed: %s", url, e)
            raise ApiError(message=str(e), url=url) from e

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if not response.ok:
            message = (
                payload.get("message") if isinstance(payload, dict) else None
            ) or f"HTTP error! status: {response.status_code}"
            logger.error(
                "GET %s returned %d: %s", url, response.status_code, message
            )
            raise ApiError(
                message=message, status_code=response.status_code, url=url
            )

        if not isinstance(payload, dict):
            logger.error("GET %s returned a non-JSON-object body", url)
            raise ApiError(
                message="Invalid JSON response",
                status_code=response.status_code,
                url=url,
            )

        try:
            envelope = ApiEnvelope.model_validate(payload)
        except ValidationError as e:
            raise ApiError(
                message=f"Malformed response envelope: {e}",
                status_code=response.status_code,
                url=url,
            ) from e

        if not envelope.success:
            message = envelope.message or failure_message
            logger.error("GET %s unsuccessful: %s", url, message)
            raise ApiError(
                message=message, status_code=response.status_code, url=url
            )

        return envelope

    def fetch_journey_data(
        self, limit: int | None = None
    ) -> list[dict[str, Any]]:
        """Fetch all journey records.

        Args:
            limit: Optional maximum number of records

        Returns:
            List of raw journey records (dicts)
        """
        params = {"limit": limit} if limit is not None else None
        envelope = self._get(
            "/journeys/scientist-data",
            params=params,
            failure_message="Failed to fetch journey data",
        )
        records = envelope.data or []
        if not isinstance(records, list):
            raise ApiError(
                message="Expected a list of journeys in 'data'",
                url=f"{self.base_url}/journeys/scientist-data",
            )

        logger.info("Fetched %d journey records", len(records))
        if envelope.metadata:
            logger.debug("Journey metadata: %s", envelope.metadata)
        return records

    def fetch_journey_analytics(
        self,
        start_date: date | str | None = None,
        end_date: date | str | None = None,
        user_id: str | None = None,
    ) -> dict[str, Any]:
        """Fetch server-side journey analytics.

        Only the filters that are given are sent as query parameters.
        """
        params: dict[str, str] = {}
        if start_date:
            params["startDate"] = _format_date(start_date)
        if end_date:
            params["endDate"] = _format_date(end_date)
        if user_id:
            params["userId"] = user_id

        envelope = self._get(
            "/journeys/analytics",
            params=params or None,
            failure_message="Failed to fetch analytics data",
        )
        return envelope.data if isinstance(envelope.data, dict) else {}

    def health_check(self) -> bool:
        """Return True when the backend answers /health with a 2xx status."""
        url = f"{self.base_url}/health"
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("Backend health check failed: %s", e)
            return False
        return response.ok


def _format_date(value: date | str) -> str:
    if isinstance(value, date):
        return value.isoformat()
    return value
