"""Shared fixtures for the cbhealth test suite."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from cbhealth.collector import NodeFetcher
from cbhealth.config import MonitorConfig

PROD_URL = "http://cb-prod-01.example.com:8091"
COB_URL = "http://cb-cob-01.example.com:8091"


def make_config(**overrides) -> MonitorConfig:
    """Create a MonitorConfig with sensible defaults for testing.

    This is the canonical config factory for tests. Prefer this over
    hand-building dicts so that new required fields are handled in one place.
    """
    base: dict = {
        "clusters": [
            {
                "name": "PROD",
                "url": PROD_URL,
                "username": "monitor",
                "password": "secret",
            }
        ],
        "mail": {
            "recipients": {
                "ist_morning": [{"name": "primary", "to": ["ops@example.com"]}],
                "est_morning": [
                    {"name": "leaders", "to": ["leaders@example.com"], "cc": ["vp@example.com"]},
                    {"name": "support", "to": ["l2@example.com"]},
                ],
            }
        },
    }
    base.update(overrides)
    return MonitorConfig(**base)


def make_node_detail(
    status: str = "healthy",
    services: list[str] | None = None,
    disk: Any = 40,
    mount_point: str = "/opt/appdata",
    mem_total: Any = 1000,
    mem_free: Any = 500,
    swap_total: Any = 1000,
    swap_used: Any = 0,
    uptime_days: int = 3,
) -> dict[str, Any]:
    """Build a ``/nodes/self`` document shaped like the Couchbase API."""
    hdd = [{"path": "/", "usagePercent": 12}]
    if disk is not None:
        hdd.append({"path": mount_point, "usagePercent": disk})
    return {
        "status": status,
        "services": services if services is not None else ["kv", "n1ql"],
        "memoryTotal": mem_total,
        "memoryFree": mem_free,
        "uptime": str(uptime_days * 86400),
        "systemStats": {
            "mem_total": mem_total,
            "mem_free": mem_free,
            "swap_total": swap_total,
            "swap_used": swap_used,
        },
        "availableStorage": {"hdd": hdd},
    }


def nodes_payload(*hosts: str) -> dict[str, Any]:
    return {"nodes": [{"hostname": h} for h in hosts]}


def make_fetcher(routes: dict[str, Any]) -> NodeFetcher:
    """NodeFetcher backed by ``httpx.MockTransport``.

    ``routes`` maps full URLs to a dict/list (JSON body), a str (raw body),
    an int (status code with empty body) or an exception instance (raised).
    Unknown URLs raise ``httpx.ConnectError``.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if url not in routes:
            raise httpx.ConnectError(f"unreachable: {url}", request=request)
        value = routes[url]
        if isinstance(value, Exception):
            raise value
        if isinstance(value, int):
            return httpx.Response(value, content=b"")
        if isinstance(value, str):
            return httpx.Response(200, content=value.encode())
        return httpx.Response(200, content=json.dumps(value).encode())

    client = httpx.Client(transport=httpx.MockTransport(handler))
    return NodeFetcher(client=client)


@pytest.fixture
def default_config() -> MonitorConfig:
    """A default MonitorConfig for tests that don't care about specifics."""
    return make_config()


@pytest.fixture
def two_cluster_config(tmp_path) -> MonitorConfig:
    """PROD (reachable in the scenario fixtures) then COB (unreachable)."""
    return make_config(
        clusters=[
            {"name": "PROD", "url": PROD_URL, "username": "monitor", "password": "secret"},
            {"name": "COB", "url": COB_URL, "username": "monitor", "password": "secret"},
        ],
        paths={"work_dir": str(tmp_path)},
    )


@pytest.fixture
def scenario_routes() -> dict[str, Any]:
    """PROD has two reachable nodes; COB has no routes at all."""
    return {
        f"{PROD_URL}/pools/nodes": nodes_payload(
            "cb-prod-01.example.com:8091",
            "cb-prod-02.example.com:8091",
        ),
        "http://cb-prod-01.example.com:8091/nodes/self": make_node_detail(
            services=["kv", "n1ql"],
            disk=80,
            mem_total=1000,
            mem_free=500,
            swap_used=0,
            uptime_days=40,
        ),
        "http://cb-prod-02.example.com:8091/nodes/self": make_node_detail(
            services=["index"],
            disk=10,
            mem_total=1000,
            mem_free=100,
            swap_used=50,
            uptime_days=5,
        ),
    }


@pytest.fixture
def fetcher_factory():
    """Factory fixture returning :func:`make_fetcher`."""
    return make_fetcher
