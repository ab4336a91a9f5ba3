"""Metric collection for cbhealth.

Fetches node lists and node details over HTTP and normalizes them into
dataset rows.
"""

from .collector import ClusterCollector
from .extractor import (
    SERVICE_NAMES,
    NodeMetrics,
    disk_percent,
    extract_node_metrics,
    map_services,
    memory_percent,
    short_hostname,
    swap_percent,
    uptime_days,
)
from .fetcher import ClusterFetchError, FetchError, NodeFetcher, NodeFetchError

__all__ = [
    "ClusterCollector",
    "NodeFetcher",
    "NodeMetrics",
    "SERVICE_NAMES",
    "extract_node_metrics",
    "map_services",
    "short_hostname",
    "memory_percent",
    "swap_percent",
    "disk_percent",
    "uptime_days",
    # Errors
    "FetchError",
    "ClusterFetchError",
    "NodeFetchError",
]
