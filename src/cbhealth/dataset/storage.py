"""Dataset archive for cbhealth.

Each run writes its dataset into a per-day directory::

    DailyClusterData/
      2026-10-16/
        ist_morning_cluster_data.csv
        est_morning_cluster_data.csv
      2026-10-17/
        ist_morning_cluster_data.csv

A second run for the same day and period replaces the earlier file.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

from .dataset import Dataset, read_rows

logger = logging.getLogger(__name__)

_DAY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DIR_MODE = 0o755
_FILE_MODE = 0o755


def dataset_filename(period: str) -> str:
    return f"{period}_cluster_data.csv"


class DatasetStorage:
    """Stores datasets as CSV files under date-stamped directories."""

    def __init__(self, data_dir: Path | str):
        self.data_dir = Path(data_dir)

    def day_dir(self, date: str) -> Path:
        """Return the directory for *date*, creating it if needed."""
        self.data_dir.mkdir(mode=_DIR_MODE, parents=True, exist_ok=True)
        os.chmod(self.data_dir, _DIR_MODE)
        d = self.data_dir / date
        d.mkdir(mode=_DIR_MODE, exist_ok=True)
        os.chmod(d, _DIR_MODE)
        return d

    def path_for(self, date: str, period: str) -> Path:
        return self.data_dir / date / dataset_filename(period)

    def save(self, dataset: Dataset, date: str, period: str) -> Path:
        """Write *dataset* for the given day and period.

        Returns:
            Path to the written CSV file
        """
        filepath = self.day_dir(date) / dataset_filename(period)
        dataset.write_csv(filepath)
        os.chmod(filepath, _FILE_MODE)
        logger.info("Saved dataset to %s (%d rows)", filepath, len(dataset))
        return filepath

    def load(self, date: str, period: str) -> tuple[list[str], list[list[str]]] | None:
        """Read an archived dataset back as ``(header, rows)``."""
        filepath = self.path_for(date, period)
        if not filepath.exists():
            return None
        return read_rows(filepath)

    def list_days(self) -> list[str]:
        """Archived days, newest first."""
        if not self.data_dir.exists():
            return []
        days = [p.name for p in self.data_dir.iterdir() if p.is_dir() and _DAY_RE.match(p.name)]
        return sorted(days, reverse=True)

    def list_files(self, date: str) -> list[Path]:
        d = self.data_dir / date
        if not d.exists():
            return []
        return sorted(d.glob("*_cluster_data.csv"))
