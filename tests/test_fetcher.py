"""Tests for NodeFetcher."""

from __future__ import annotations

import base64

import httpx
import pytest

from cbhealth.collector.fetcher import ClusterFetchError, FetchError, NodeFetcher, NodeFetchError
from tests.conftest import PROD_URL, make_config, make_fetcher, make_node_detail, nodes_payload

NODES_URL = f"{PROD_URL}/pools/nodes"
SELF_URL = "http://cb-prod-01.example.com:8091/nodes/self"


@pytest.fixture
def cluster():
    return make_config().clusters[0]


class TestFetchNodeList:
    def test_returns_hostnames_in_order(self, cluster):
        fetcher = make_fetcher({NODES_URL: nodes_payload("b.example.com:8091", "a.example.com:8091")})
        assert fetcher.fetch_node_list(cluster) == ["b.example.com:8091", "a.example.com:8091"]

    def test_connection_error(self, cluster):
        fetcher = make_fetcher({})
        with pytest.raises(ClusterFetchError, match="failed"):
            fetcher.fetch_node_list(cluster)

    def test_timeout(self, cluster):
        request = httpx.Request("GET", NODES_URL)
        fetcher = make_fetcher({NODES_URL: httpx.ReadTimeout("timed out", request=request)})
        with pytest.raises(ClusterFetchError):
            fetcher.fetch_node_list(cluster)

    def test_empty_body(self, cluster):
        fetcher = make_fetcher({NODES_URL: "  \n"})
        with pytest.raises(ClusterFetchError, match="Empty response"):
            fetcher.fetch_node_list(cluster)

    def test_unauthorized(self, cluster):
        fetcher = make_fetcher({NODES_URL: 401})
        with pytest.raises(ClusterFetchError):
            fetcher.fetch_node_list(cluster)

    def test_invalid_json(self, cluster):
        fetcher = make_fetcher({NODES_URL: "<html>not json</html>"})
        with pytest.raises(ClusterFetchError, match="Invalid JSON"):
            fetcher.fetch_node_list(cluster)

    def test_no_hostnames(self, cluster):
        fetcher = make_fetcher({NODES_URL: {"nodes": [{"otpNode": "ns_1@x"}]}})
        with pytest.raises(ClusterFetchError, match="No hostname"):
            fetcher.fetch_node_list(cluster)

    def test_missing_nodes_key(self, cluster):
        fetcher = make_fetcher({NODES_URL: {"name": "default"}})
        with pytest.raises(ClusterFetchError):
            fetcher.fetch_node_list(cluster)

    def test_is_a_fetch_error(self, cluster):
        fetcher = make_fetcher({})
        with pytest.raises(FetchError):
            fetcher.fetch_node_list(cluster)


class TestFetchNodeDetail:
    def test_returns_document(self, cluster):
        detail = make_node_detail(status="healthy")
        fetcher = make_fetcher({SELF_URL: detail})
        assert fetcher.fetch_node_detail(cluster, "cb-prod-01.example.com:8091") == detail

    def test_connection_error(self, cluster):
        fetcher = make_fetcher({})
        with pytest.raises(NodeFetchError):
            fetcher.fetch_node_detail(cluster, "cb-prod-01.example.com:8091")

    def test_empty_body(self, cluster):
        fetcher = make_fetcher({SELF_URL: ""})
        with pytest.raises(NodeFetchError):
            fetcher.fetch_node_detail(cluster, "cb-prod-01.example.com:8091")

    def test_non_object_payload(self, cluster):
        fetcher = make_fetcher({SELF_URL: [1, 2, 3]})
        with pytest.raises(NodeFetchError, match="Unexpected payload"):
            fetcher.fetch_node_detail(cluster, "cb-prod-01.example.com:8091")


class TestRequestShape:
    def test_basic_auth_and_timeouts(self, cluster):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=nodes_payload("h:8091"))

        client = httpx.Client(transport=httpx.MockTransport(handler))
        fetcher = NodeFetcher(connect_timeout=5.0, timeout=10.0, client=client)
        fetcher.fetch_node_list(cluster)

        assert len(seen) == 1
        request = seen[0]
        assert request.headers["authorization"] == "Basic " + base64.b64encode(b"monitor:secret").decode()
        assert request.extensions["timeout"] == {
            "connect": 5.0,
            "read": 10.0,
            "write": 10.0,
            "pool": 10.0,
        }

    def test_single_attempt(self, cluster):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            raise httpx.ConnectError("refused", request=request)

        client = httpx.Client(transport=httpx.MockTransport(handler))
        fetcher = NodeFetcher(client=client)
        with pytest.raises(ClusterFetchError):
            fetcher.fetch_node_list(cluster)
        assert len(calls) == 1

    def test_context_manager_closes_own_client(self):
        with NodeFetcher() as fetcher:
            client = fetcher._client
        assert client.is_closed

    def test_injected_client_left_open(self):
        client = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        with NodeFetcher(client=client):
            pass
        assert not client.is_closed
