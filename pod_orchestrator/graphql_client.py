"""
GraphQL transport for the RunPod API.
One POST per execute() call; no retries at this layer.
"""
import json
import logging
from typing import Any, Dict, Optional

import httpx

from .config import Settings
from .errors import ApplicationError, TransportError

logger = logging.getLogger(__name__)


class GraphQLClient:
    """Authenticated request/response client for a single GraphQL endpoint.

    Safe to share between concurrent coroutines: the only state is the
    endpoint, the key and the underlying httpx connection pool.
    """

    def __init__(self, url: str, api_key: str, timeout: float = 30.0,
                 http_client: Optional[httpx.AsyncClient] = None):
        self.url = url
        self._api_key = api_key
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> "GraphQLClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def execute(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Any:
        """Run a query or mutation and return the response's ``data`` member."""
        body: Dict[str, Any] = {"query": query}
        if variables is not None:
            body["variables"] = variables

        try:
            resp = await self._http.post(
                self.url,
                params={"api_key": self._api_key},
                headers={"Content-Type": "application/json"},
                json=body,
            )
        except httpx.TimeoutException as e:
            raise TransportError(f"Request to {self.url} timed out: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Request to {self.url} failed: {e}") from e

        try:
            payload = resp.json()
        except ValueError:
            payload = None

        # A GraphQL error envelope wins over the HTTP status, which may be 4xx for the same errors
        errors = payload.get("errors") if isinstance(payload, dict) else None
        if errors:
            if not isinstance(errors, list):
                errors = [errors]
            raise ApplicationError(
                f"Request failed with status {resp.status_code}: {json.dumps(errors, indent=2)}",
                errors=errors,
                status_code=resp.status_code,
            )

        if not resp.is_success:
            detail = json.dumps(payload, indent=2) if payload is not None else resp.text[:500]
            logger.debug(f"GraphQL HTTP {resp.status_code}: {detail}")
            raise TransportError(
                f"Request failed with status {resp.status_code}: {detail}",
                status_code=resp.status_code,
            )

        if not isinstance(payload, dict):
            raise TransportError(
                f"Response from {self.url} was not a JSON object (status {resp.status_code})",
                status_code=resp.status_code,
            )

        return payload.get("data")


def create_graphql_client(settings: Settings) -> GraphQLClient:
    """Create a GraphQL client using environment configuration."""
    return GraphQLClient(
        settings.graphql_url,
        settings.require_api_key(),
        timeout=settings.request_timeout,
    )
