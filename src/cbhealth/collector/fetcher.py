"""HTTP fetcher for Couchbase node metrics.

Two endpoints are used per cluster::

    GET {cluster.url}/pools/nodes       -> {"nodes": [{"hostname": "h:8091"}, ...]}
    GET http://{hostname}/nodes/self    -> per-node detail

Every request is a single attempt with basic auth, a 5s connect timeout
and a 10s overall timeout (both configurable).  A transport failure, a
non-2xx status, an empty body and an unparsable body are all reported as
:class:`FetchError`.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from cbhealth.config import ClusterConfig

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Base exception for metric fetch errors."""

    pass


class ClusterFetchError(FetchError):
    """Raised when the node list of a cluster cannot be fetched."""

    pass


class NodeFetchError(FetchError):
    """Raised when the detail of a single node cannot be fetched."""

    pass


class NodeFetcher:
    """Fetches node lists and node details from Couchbase REST endpoints.

    Args:
        connect_timeout: Seconds allowed to establish a connection.
        timeout: Seconds allowed for the whole request.
        client: Optional pre-built ``httpx.Client`` (mainly for tests).
    """

    def __init__(
        self,
        connect_timeout: float = 5.0,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ):
        self.timeout = httpx.Timeout(timeout, connect=connect_timeout)
        self._client = client if client is not None else httpx.Client(timeout=self.timeout)
        self._owns_client = client is None

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> NodeFetcher:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def fetch_node_list(self, cluster: ClusterConfig) -> list[str]:
        """Return the ``host:port`` strings of every node in *cluster*.

        Raises:
            ClusterFetchError: If the request fails, the body is empty or
                no hostname can be read from it.
        """
        url = f"{cluster.url}/pools/nodes"
        try:
            data = self._get_json(url, cluster)
        except FetchError as e:
            raise ClusterFetchError(str(e)) from e

        nodes = data.get("nodes") if isinstance(data, dict) else None
        if not isinstance(nodes, list):
            raise ClusterFetchError(f"No 'nodes' list in response from {url}")

        hosts = [
            n["hostname"]
            for n in nodes
            if isinstance(n, dict) and isinstance(n.get("hostname"), str) and n["hostname"]
        ]
        if not hosts:
            raise ClusterFetchError(f"No hostname found in pools/nodes for {cluster.url}")
        return hosts

    def fetch_node_detail(self, cluster: ClusterConfig, hostname: str) -> dict[str, Any]:
        """Return the ``/nodes/self`` document of one node.

        Raises:
            NodeFetchError: If the request fails, the body is empty or the
                body is not a JSON object.
        """
        url = f"http://{hostname}/nodes/self"
        try:
            data = self._get_json(url, cluster)
        except FetchError as e:
            raise NodeFetchError(str(e)) from e

        if not isinstance(data, dict):
            raise NodeFetchError(f"Unexpected payload from {url}: {type(data).__name__}")
        return data

    def _get_json(self, url: str, cluster: ClusterConfig) -> Any:
        """Issue one authenticated GET and decode the JSON body."""
        try:
            resp = self._client.get(
                url,
                auth=(cluster.username, cluster.password),
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise FetchError(f"Request to {url} failed: {e}") from e

        if not resp.content.strip():
            raise FetchError(f"Empty response from {url}")

        try:
            return resp.json()
        except ValueError as e:
            raise FetchError(f"Invalid JSON from {url}: {e}") from e
