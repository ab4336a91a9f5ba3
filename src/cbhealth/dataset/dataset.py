"""In-memory dataset of node metric rows.

Rows are grouped per cluster in configuration order.  In the delimited
text form every group is followed by an empty row, so a dataset of N
clusters carries N group markers::

    date,period,cluster,HOSTNAME,HEALTH,DISK_UTIL,MEM_UTIL,SWAP_UTIL,CB_UPTIME,CB_SERVICE
    2026-10-17,est_morning,PROD,cb01,healthy,80%,50%,0%,40 days(s),Data+Query
    2026-10-17,est_morning,PROD,cb02,healthy,10%,90%,5%,5 days(s),Index
    <empty>
    2026-10-17,est_morning,COB,,Error,,,,,
    <empty>
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field
from pathlib import Path

from cbhealth._constants import DATASET_HEADER

from .records import MetricRecord


@dataclass
class ClusterGroup:
    """Rows of one cluster, in node discovery order."""

    cluster: str
    records: list[MetricRecord] = field(default_factory=list)


class Dataset:
    """Append-only, cluster-grouped collection of :class:`MetricRecord`."""

    def __init__(self) -> None:
        self._groups: list[ClusterGroup] = []

    def start_group(self, cluster: str) -> None:
        """Open the group for *cluster*; later appends go into it."""
        self._groups.append(ClusterGroup(cluster=cluster))

    def append(self, record: MetricRecord) -> None:
        if not self._groups:
            raise ValueError("start_group() must be called before append()")
        self._groups[-1].records.append(record)

    @property
    def groups(self) -> list[ClusterGroup]:
        return list(self._groups)

    @property
    def records(self) -> list[MetricRecord]:
        return [r for g in self._groups for r in g.records]

    def __len__(self) -> int:
        return sum(len(g.records) for g in self._groups)

    def rows(self) -> list[list[str]]:
        """Data rows with an empty marker row after every group (no header)."""
        out: list[list[str]] = []
        for group in self._groups:
            out.extend(r.to_row() for r in group.records)
            out.append([])
        return out

    def to_csv(self) -> str:
        buf = io.StringIO()
        writer = csv.writer(buf, lineterminator="\n")
        writer.writerow(DATASET_HEADER)
        writer.writerows(self.rows())
        return buf.getvalue()

    def write_csv(self, path: Path) -> Path:
        path.write_text(self.to_csv(), encoding="utf-8")
        return path


def is_group_marker(row: list[str]) -> bool:
    """True for the empty row that closes a cluster group."""
    return all(not cell.strip() for cell in row)


def read_rows(path: Path) -> tuple[list[str], list[list[str]]]:
    """Read a dataset file back as ``(header, rows)``; markers are kept."""
    with open(path, encoding="utf-8", newline="") as f:
        reader = csv.reader(f)
        header = next(reader, [])
        rows = [row for row in reader]
    return header, rows


def split_groups(rows: list[list[str]]) -> list[list[list[str]]]:
    """Split data rows into per-cluster groups at the empty marker rows.

    The group index starts at 0 and advances after each marker; groups
    that end up with no rows are dropped.
    """
    groups: dict[int, list[list[str]]] = {}
    index = 0
    for row in rows:
        if is_group_marker(row):
            index += 1
            continue
        groups.setdefault(index, []).append(row)
    return [groups[i] for i in sorted(groups)]
