# Cortex: graph API client
#
# Thin HTTP client used by GraphStore to fetch, replace, and reset the
# canonical graph. No retries, no caching: GraphStore is the cache.

import logging
from typing import Any, Dict, Optional, Union

import requests

from .exceptions import SyncError
from .schema import KnowledgeGraph

logger = logging.getLogger(__name__)


class SyncClient:
    """HTTP client for the Cortex graph API."""

    def __init__(self, base_url: str = "http://127.0.0.1:8787", timeout: float = 5,
                 api_key: str = "", tenant: str = "default"):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.api_key = api_key
        self.tenant = tenant

    @classmethod
    def from_config(cls, config) -> "SyncClient":
        return cls(
            base_url=config.api_base_url,
            timeout=config.timeout,
            api_key=config.api_secret,
            tenant=config.tenant,
        )

    def _headers(self) -> Dict[str, str]:
        headers = {"X-Tenant-Id": self.tenant}
        if self.api_key:
            headers["X-API-Key"] = self.api_key
        return headers

    def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        """
        Send one request and return the decoded JSON body.

        Any 2xx is a success; a 2xx without a JSON body (e.g. 204) returns None.
        Transport errors and non-2xx replies raise SyncError.
        """
        url = f"{self.base_url}{path}"
        try:
            r = requests.request(
                method,
                url,
                json=payload,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise SyncError(f"{method} {path} failed: {e}") from e

        if not r.ok:
            message = f"{method} {path} returned HTTP {r.status_code}"
            try:
                detail = r.json().get("error")
                if detail:
                    message = f"{message}: {detail}"
            except (ValueError, AttributeError):
                pass
            raise SyncError(message)

        try:
            return r.json()
        except ValueError:
            return None

    def _graph_from(self, method: str, path: str, body: Any) -> KnowledgeGraph:
        if body is None:
            raise SyncError(f"{method} {path} returned a non-JSON body")
        if not isinstance(body, dict) or not body.get("success") or body.get("data") is None:
            error = body.get("error") if isinstance(body, dict) else None
            raise SyncError(error or f"{method} {path}: unknown API error")
        try:
            return KnowledgeGraph.from_dict(body["data"])
        except ValueError as e:
            raise SyncError(f"{method} {path}: {e}") from e

    def fetch_graph(self) -> KnowledgeGraph:
        """GET the canonical graph."""
        body = self._request("GET", "/api/graph")
        return self._graph_from("GET", "/api/graph", body)

    def replace_graph(self, graph: Union[KnowledgeGraph, Dict[str, Any]]) -> None:
        """POST a full graph, replacing the server copy."""
        payload = graph.to_dict() if isinstance(graph, KnowledgeGraph) else graph
        self._request("POST", "/api/graph", payload)
        logger.debug(f"Pushed graph: {len(payload.get('nodes', []))} nodes")

    def reset_graph(self) -> KnowledgeGraph:
        """Ask the server to reseed and return the fresh graph."""
        body = self._request("POST", "/api/graph/reset")
        return self._graph_from("POST", "/api/graph/reset", body)

    def health(self) -> bool:
        """Check if the server is reachable."""
        try:
            r = requests.get(f"{self.base_url}/health", timeout=2)
            return r.ok
        except requests.RequestException:
            return False
