"""Read-only client for the dynamic configuration store (Edge Config style)."""

import logging
from typing import Any, Optional

import httpx

from pagerender.core.config import ERROR_BODY_MAX_CHARS
from pagerender.core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


class ConfigServiceClient:
    """Fetches single items via `GET {base_url}/item/{key}`.

    Args:
        client: Shared async HTTP client
        base_url: Config store endpoint
        token: Read token sent as a bearer credential
    """

    def __init__(self, client: httpx.AsyncClient, base_url: str, token: Optional[str] = None):
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.token = token

    async def get(self, key: str) -> Any:
        """
        Return the decoded JSON value stored under `key` (None if absent).

        Raises:
            ExternalServiceError: Store unreachable or answered with an error
        """
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = await self.client.get(f"{self.base_url}/item/{key}", headers=headers)
        except httpx.HTTPError as e:
            raise ExternalServiceError(
                service_name="CONFIG",
                error_type="unavailable",
                details={"detail": str(e), "key": key},
            ) from e

        if response.status_code == 404:
            return None
        if not response.is_success:
            raise ExternalServiceError(
                service_name="CONFIG",
                error_type="error",
                details={
                    "http_code": response.status_code,
                    "detail": response.text[:ERROR_BODY_MAX_CHARS],
                    "key": key,
                },
            )

        try:
            return response.json()
        except ValueError as e:
            raise ExternalServiceError(
                service_name="CONFIG",
                error_type="invalid_response",
                details={"detail": str(e), "key": key},
            ) from e
