"""One complete collection-and-reporting run.

Stages run strictly in sequence::

    classify period -> collect dataset -> archive CSV -> render HTML -> deliver

Fetch problems only show up as placeholder rows in the report.  The run
fails (exit code 3) only when a delivery fails.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from cbhealth._constants import EXIT_DELIVERY_FAILED, EXIT_OK
from cbhealth.collector import ClusterCollector, NodeFetcher
from cbhealth.config import MonitorConfig, Period
from cbhealth.dataset import Dataset, DatasetStorage
from cbhealth.dispatch import (
    DeliveryResult,
    Dispatcher,
    classify_period,
    current_period,
    select_recipients,
)
from cbhealth.reports import ReportGenerator

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Outcome of :meth:`ReportRunner.run`."""

    date: str
    period: Period
    dataset: Dataset
    csv_path: Path | None = None
    html_path: Path | None = None
    deliveries: list[DeliveryResult] = field(default_factory=list)
    dry_run: bool = False

    @property
    def failed_deliveries(self) -> list[DeliveryResult]:
        return [d for d in self.deliveries if not d.success]

    @property
    def success(self) -> bool:
        return not self.failed_deliveries

    @property
    def exit_code(self) -> int:
        return EXIT_OK if self.success else EXIT_DELIVERY_FAILED


class ReportRunner:
    """Runs the pipeline for one configuration.

    Args:
        config: Validated configuration.
        fetcher: HTTP fetcher (built from ``config.collector`` if omitted).
        dispatcher: Mail dispatcher (built from ``config.mail`` if omitted).
        clock: Returns the current local time; ``datetime.now`` by default.
    """

    def __init__(
        self,
        config: MonitorConfig,
        fetcher: NodeFetcher | None = None,
        dispatcher: Dispatcher | None = None,
        clock=datetime.now,
    ):
        self.config = config
        self._fetcher = fetcher
        self.dispatcher = dispatcher or Dispatcher.from_config(config.mail)
        self.clock = clock
        self.storage = DatasetStorage(config.paths.resolve_data_dir())
        self.generator = ReportGenerator(config.thresholds, config.report)

    def collect(self, date: str, period: Period) -> Dataset:
        """Poll every configured cluster and return the dataset."""
        collector_cfg = self.config.collector
        fetcher = self._fetcher or NodeFetcher(
            connect_timeout=collector_cfg.connect_timeout,
            timeout=collector_cfg.timeout,
        )
        try:
            return ClusterCollector(fetcher, collector_cfg.mount_point).collect(
                self.config.clusters, date, period.value
            )
        finally:
            if self._fetcher is None:
                fetcher.close()

    def run(
        self,
        dry_run: bool = False,
        hour: int | None = None,
        html_path: Path | None = None,
        archive: bool = True,
    ) -> RunResult:
        """Execute one run.

        Args:
            dry_run: Render but skip delivery.
            hour: Local hour used for period classification (default: now).
            html_path: Also write the rendered document to this file.
            archive: Write the dataset CSV into the archive tree.
        """
        now = self.clock()
        date = now.strftime("%Y-%m-%d")
        period = current_period(now) if hour is None else classify_period(hour)
        logger.info(
            "Starting %s run for %s (clusters: %s)",
            period.value,
            date,
            ", ".join(self.config.cluster_names()),
        )

        dataset = self.collect(date, period)
        result = RunResult(date=date, period=period, dataset=dataset, dry_run=dry_run)

        if archive:
            result.csv_path = self.storage.save(dataset, date, period.value)

        document = self.generator.render_dataset(dataset)
        if html_path is not None:
            result.html_path = self.generator.write(document, html_path)

        if dry_run:
            logger.info("Dry run: skipping delivery")
            return result

        recipient_sets = select_recipients(period, self.config.mail)
        if not recipient_sets:
            logger.warning("No recipient sets configured for %s", period.value)
        result.deliveries = self.dispatcher.dispatch(document, recipient_sets, date)

        if result.success:
            logger.info("Run complete: %d deliveries succeeded", len(result.deliveries))
        else:
            logger.error(
                "Run complete: %d of %d deliveries failed",
                len(result.failed_deliveries),
                len(result.deliveries),
            )
        return result
