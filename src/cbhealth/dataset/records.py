"""Dataset rows for cbhealth."""

from __future__ import annotations

from dataclasses import astuple, dataclass, fields
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cbhealth.collector.extractor import NodeMetrics

HEALTH_CLUSTER_ERROR = "Error"
HEALTH_NODE_FAILURE = "Failure"
NODE_FAILURE_PLACEHOLDER = "-"


def _format_number(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


@dataclass(frozen=True)
class MetricRecord:
    """One dataset row, already formatted for display.

    Field order matches ``DATASET_HEADER``.
    """

    date: str
    period: str
    cluster: str
    hostname: str
    health: str
    disk_util: str = ""
    mem_util: str = ""
    swap_util: str = ""
    uptime: str = ""
    services: str = ""

    @classmethod
    def from_metrics(
        cls,
        date: str,
        period: str,
        cluster: str,
        hostname: str,
        metrics: NodeMetrics,
    ) -> MetricRecord:
        """Row for a node whose detail was fetched.

        A missing disk entry stays empty rather than rendering as ``0%``.
        """
        disk = "" if metrics.disk_percent is None else f"{_format_number(metrics.disk_percent)}%"
        return cls(
            date=date,
            period=period,
            cluster=cluster,
            hostname=hostname,
            health=metrics.status,
            disk_util=disk,
            mem_util=f"{metrics.memory_percent}%",
            swap_util=f"{metrics.swap_percent}%",
            uptime=metrics.uptime_display,
            services=metrics.services_display,
        )

    @classmethod
    def cluster_error(cls, date: str, period: str, cluster: str) -> MetricRecord:
        """Placeholder row for a cluster whose node list could not be fetched."""
        return cls(date=date, period=period, cluster=cluster, hostname="", health=HEALTH_CLUSTER_ERROR)

    @classmethod
    def node_failure(cls, date: str, period: str, cluster: str, hostname: str) -> MetricRecord:
        """Placeholder row for a node whose detail could not be fetched."""
        p = NODE_FAILURE_PLACEHOLDER
        return cls(
            date=date,
            period=period,
            cluster=cluster,
            hostname=hostname,
            health=HEALTH_NODE_FAILURE,
            disk_util=p,
            mem_util=p,
            swap_util=p,
            uptime=p,
            services=p,
        )

    @classmethod
    def from_row(cls, row: list[str]) -> MetricRecord:
        """Rebuild a record from a CSV row, padding short rows with blanks."""
        width = len(fields(cls))
        values = list(row[:width]) + [""] * max(0, width - len(row))
        return cls(*values)

    @property
    def is_placeholder(self) -> bool:
        return self.health in (HEALTH_CLUSTER_ERROR, HEALTH_NODE_FAILURE)

    def to_row(self) -> list[str]:
        return list(astuple(self))
