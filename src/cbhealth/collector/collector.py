"""Sequential metric collection across all configured clusters.

Clusters are visited in configuration order and nodes in the order the
cluster reports them.  Nothing raised while fetching escapes
:meth:`ClusterCollector.collect`: an unreachable cluster becomes one
``Error`` row and an unreachable node one ``Failure`` row.
"""

from __future__ import annotations

import logging

from cbhealth.config import ClusterConfig
from cbhealth.dataset.dataset import Dataset
from cbhealth.dataset.records import MetricRecord

from .extractor import extract_node_metrics, short_hostname
from .fetcher import ClusterFetchError, NodeFetcher, NodeFetchError

logger = logging.getLogger(__name__)


class ClusterCollector:
    """Builds a :class:`Dataset` by polling every cluster in turn.

    Args:
        fetcher: HTTP fetcher used for both endpoints.
        mount_point: Storage path whose usage is reported as disk usage.
    """

    def __init__(self, fetcher: NodeFetcher, mount_point: str):
        self.fetcher = fetcher
        self.mount_point = mount_point

    def collect(self, clusters: list[ClusterConfig], date: str, period: str) -> Dataset:
        dataset = Dataset()
        for cluster in clusters:
            dataset.start_group(cluster.name)
            self._collect_cluster(dataset, cluster, date, period)
        logger.info(
            "Collected %d rows from %d clusters",
            len(dataset),
            len(clusters),
        )
        return dataset

    def _collect_cluster(
        self,
        dataset: Dataset,
        cluster: ClusterConfig,
        date: str,
        period: str,
    ) -> None:
        logger.info("Finding all hosts for %s cluster at %s", cluster.name, cluster.url)
        try:
            hosts = self.fetcher.fetch_node_list(cluster)
        except ClusterFetchError as e:
            logger.warning("Cluster %s unavailable: %s", cluster.name, e)
            dataset.append(MetricRecord.cluster_error(date, period, cluster.name))
            return

        for host in hosts:
            dataset.append(self._collect_node(cluster, host, date, period))

    def _collect_node(
        self,
        cluster: ClusterConfig,
        host: str,
        date: str,
        period: str,
    ) -> MetricRecord:
        hostname = short_hostname(host)
        logger.info("Finding health metrics for %s in %s cluster", host, cluster.name)
        try:
            detail = self.fetcher.fetch_node_detail(cluster, host)
        except NodeFetchError as e:
            logger.warning("Node %s in %s unavailable: %s", host, cluster.name, e)
            return MetricRecord.node_failure(date, period, cluster.name, hostname)

        metrics = extract_node_metrics(detail, self.mount_point)
        return MetricRecord.from_metrics(date, period, cluster.name, hostname, metrics)
