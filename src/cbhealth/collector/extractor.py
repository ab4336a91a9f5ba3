"""Metric extraction from Couchbase ``/nodes/self`` documents.

Turns one raw node document into a :class:`NodeMetrics`.  Extraction never
raises for missing or malformed fields: a percentage degrades to 0, the
disk usage to ``None`` and uptime to 0 days.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any

from cbhealth._constants import DEFAULT_MOUNT_POINT

logger = logging.getLogger(__name__)

# Couchbase service codes -> names shown in the report
SERVICE_NAMES = {
    "kv": "Data",
    "index": "Index",
    "n1ql": "Query",
    "fts": "Search",
    "cbas": "Analytics",
    "eventing": "Eventing",
}

SERVICE_SEPARATOR = "+"

# Kept as-is: archived datasets and downstream filters match on this text.
UPTIME_SUFFIX = "days(s)"

SECONDS_PER_DAY = 86400


@dataclass(frozen=True)
class NodeMetrics:
    """Normalized metrics of one node."""

    status: str
    services: list[str] = field(default_factory=list)
    disk_percent: int | float | None = None
    memory_percent: int = 0
    swap_percent: int = 0
    uptime_days: int = 0

    @property
    def services_display(self) -> str:
        return SERVICE_SEPARATOR.join(self.services)

    @property
    def uptime_display(self) -> str:
        return f"{self.uptime_days} {UPTIME_SUFFIX}"


def short_hostname(host: str) -> str:
    """Strip the port and domain from a ``host.domain:port`` string.

    >>> short_hostname("cb01.prod.example.com:8091")
    'cb01'
    """
    return host.split(":", 1)[0].split(".", 1)[0]


def map_services(codes: Any) -> list[str]:
    """Map service codes to display names, keeping source order.

    Unknown codes pass through unchanged.
    """
    if not isinstance(codes, list):
        return []
    return [SERVICE_NAMES.get(c, c) if isinstance(c, str) else str(c) for c in codes]


def _to_number(value: Any) -> int | float | None:
    """Coerce a JSON scalar to a number; ``None`` when not numeric."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def _floor_percent(part: int | float, total: int | float) -> int:
    """``floor(part * 100 / total)`` clamped to [0, 100]; 0 when total <= 0."""
    if total <= 0:
        return 0
    if isinstance(part, int) and isinstance(total, int):
        pct = part * 100 // total
    else:
        pct = math.floor(part * 100 / total)
    return max(0, min(100, pct))


def _first_present(*values: Any) -> Any:
    for v in values:
        if v is not None:
            return v
    return None


def _system_stats(detail: dict[str, Any]) -> dict[str, Any]:
    stats = detail.get("systemStats")
    return stats if isinstance(stats, dict) else {}


def memory_percent(detail: dict[str, Any]) -> int:
    """Used memory as a whole percentage.

    ``systemStats.mem_total``/``mem_free`` are preferred; the top-level
    ``memoryTotal``/``memoryFree`` fields are the fallback for each value.
    """
    stats = _system_stats(detail)
    total = _to_number(_first_present(stats.get("mem_total"), detail.get("memoryTotal")))
    free = _to_number(_first_present(stats.get("mem_free"), detail.get("memoryFree")))
    if total is None or free is None:
        logger.debug("Memory totals missing or malformed; reporting 0%%")
        return 0
    return _floor_percent(total - free, total)


def swap_percent(detail: dict[str, Any]) -> int:
    """Used swap as a whole percentage, from ``systemStats`` only."""
    stats = _system_stats(detail)
    total = _to_number(stats.get("swap_total"))
    used = _to_number(stats.get("swap_used"))
    if total is None or used is None:
        logger.debug("Swap totals missing or malformed; reporting 0%%")
        return 0
    return _floor_percent(used, total)


def disk_percent(
    detail: dict[str, Any],
    mount_point: str = DEFAULT_MOUNT_POINT,
) -> int | float | None:
    """API-reported usage of the storage entry mounted at *mount_point*.

    Returns ``None`` when no entry matches, which is distinct from 0%.
    """
    storage = detail.get("availableStorage")
    hdd = storage.get("hdd") if isinstance(storage, dict) else None
    if not isinstance(hdd, list):
        return None

    for entry in hdd:
        if isinstance(entry, dict) and entry.get("path") == mount_point:
            value = _to_number(entry.get("usagePercent"))
            if isinstance(value, float) and value.is_integer():
                return int(value)
            return value
    return None


def uptime_days(detail: dict[str, Any]) -> int:
    """Whole days of uptime; the API reports seconds, often as a string."""
    seconds = _to_number(detail.get("uptime"))
    if seconds is None or seconds < 0:
        logger.debug("Uptime missing or malformed: %r", detail.get("uptime"))
        return 0
    return int(seconds // SECONDS_PER_DAY)


def extract_node_metrics(
    detail: dict[str, Any],
    mount_point: str = DEFAULT_MOUNT_POINT,
) -> NodeMetrics:
    """Build :class:`NodeMetrics` from a ``/nodes/self`` document."""
    status = detail.get("status")
    return NodeMetrics(
        status=str(status) if status is not None else "",
        services=map_services(detail.get("services")),
        disk_percent=disk_percent(detail, mount_point),
        memory_percent=memory_percent(detail),
        swap_percent=swap_percent(detail),
        uptime_days=uptime_days(detail),
    )
