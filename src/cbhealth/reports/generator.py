"""HTML report generation for cbhealth.

Turns dataset rows into a self-contained HTML document: a header block,
one table per cluster group and a closing block.  Cells whose value
crosses a threshold get a yellow background.  Everything is inline so the
document can be used directly as an email body.
"""

from __future__ import annotations

import html
import logging
import re
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

from cbhealth._constants import DATASET_HEADER
from cbhealth.config import ReportConfig, ThresholdsConfig
from cbhealth.dataset import Dataset, split_groups

logger = logging.getLogger(__name__)

# Zero-based positions in a dataset row
CLUSTER_COL = 2
FIRST_DISPLAY_COL = 3  # HOSTNAME; date/period/cluster are implied by the caption
DISK_COL = 5
MEM_COL = 6
SWAP_COL = 7
UPTIME_COL = 8

HIGHLIGHT_COLOR = "#ffff00"
DATE_PLACEHOLDER = "<!--DATE-->"

_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")

_HEADER_TEMPLATE = """<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8"/>
<style>
body{{font-family: Arial,Helvetica,sans-serif; font-size:13px; color:#222;}}
table{{border-collapse:collapse; width:100%; max-width:1000px;}}
th,td{{border:1px solid #ddd; padding:8px; text-align:left; vertical-align:top;}}
th{{background:#004080; color:#fff; padding-top:10px; padding-bottom:10px;}}
tr:nth-child(even) {{background:#f9f9f9;}}
tr:hover{{background:#f1f1f1;}}
small{{color:#555;}}
caption{{
font-family: Arial,Helvetica,sans-serif;
font-size:14px;
font-weight:bold;
background:#004080;
color:#fff;
text-align:left;
vertical-align:center;
}}
</style>
</head>
<body>
<p>Auto-Generated Report. Please do not reply.</p>
<p>Generated At: {date_placeholder}</p>
<br>
<p>Hi Team,<br><br>Please find the latest health metrics of all {title}.</p>
"""

_FOOTER = "</body></html>\n"


def leading_number(text: str) -> float:
    """First numeric token in *text* (``"40 days(s)"`` -> 40.0); 0 if none."""
    match = _NUMBER_RE.search(text.replace("\r", ""))
    return float(match.group()) if match else 0.0


class ReportGenerator:
    """Renders dataset rows as a threshold-annotated HTML report.

    Args:
        thresholds: Highlighting thresholds.
        report: Static report text and timestamp settings.
    """

    def __init__(
        self,
        thresholds: ThresholdsConfig | None = None,
        report: ReportConfig | None = None,
    ):
        self.thresholds = thresholds or ThresholdsConfig()
        self.report = report or ReportConfig()

    def is_breach(self, column: int, value: str) -> bool:
        """Whether the cell at *column* should be highlighted.

        Empty or non-numeric cells compare as 0, so a missing disk value
        is never highlighted.
        """
        t = self.thresholds
        if column == DISK_COL:
            return leading_number(value) >= t.disk_percent
        if column == MEM_COL:
            return leading_number(value) >= t.memory_percent
        if column == SWAP_COL:
            return leading_number(value) > t.swap_percent
        if column == UPTIME_COL:
            return leading_number(value) >= t.uptime_days
        return False

    def format_timestamp(self, generated_at: datetime | None = None) -> str:
        tz = ZoneInfo(self.report.timezone)
        moment = generated_at.astimezone(tz) if generated_at else datetime.now(tz)
        return moment.strftime(self.report.timestamp_format)

    def render(
        self,
        rows: list[list[str]],
        header: list[str] | tuple[str, ...] = DATASET_HEADER,
        cluster_names: list[str] | None = None,
        generated_at: datetime | None = None,
    ) -> str:
        """Render data rows (with group marker rows, without header).

        The caption of each table is the cluster column of the group's
        first row; ``cluster_names`` is used by group index when that
        column is blank.
        """
        groups = split_groups(rows)
        tables = []
        for index, group in enumerate(groups):
            name = self._group_name(group, index, cluster_names)
            tables.append(self._generate_table(f"{name} Cluster", header, group))

        document = (
            self._generate_header().replace(DATE_PLACEHOLDER, self.format_timestamp(generated_at))
            + "".join(tables)
            + _FOOTER
        )
        logger.debug("Rendered report with %d tables", len(tables))
        return document

    def render_dataset(self, dataset: Dataset, generated_at: datetime | None = None) -> str:
        return self.render(
            dataset.rows(),
            cluster_names=[g.cluster for g in dataset.groups],
            generated_at=generated_at,
        )

    def write(self, document: str, path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(document, encoding="utf-8")
        logger.info("Wrote report: %s", path)
        return path

    @staticmethod
    def _group_name(group: list[list[str]], index: int, cluster_names: list[str] | None) -> str:
        first = group[0]
        if len(first) > CLUSTER_COL and first[CLUSTER_COL].strip():
            return first[CLUSTER_COL]
        if cluster_names and index < len(cluster_names):
            return cluster_names[index]
        return ""

    def _generate_header(self) -> str:
        return _HEADER_TEMPLATE.format(
            date_placeholder=DATE_PLACEHOLDER,
            title=html.escape(self.report.title),
        )

    def _generate_table(
        self,
        caption: str,
        header: list[str] | tuple[str, ...],
        rows: list[list[str]],
    ) -> str:
        head_cells = "".join(f"<th>{html.escape(h.strip())}</th>" for h in header[FIRST_DISPLAY_COL:])

        body = []
        for row in rows:
            cells = []
            for col in range(FIRST_DISPLAY_COL, len(row)):
                value = row[col]
                if self.is_breach(col, value):
                    cells.append(f'<td style="background:{HIGHLIGHT_COLOR}">{html.escape(value)}</td>')
                else:
                    cells.append(f"<td>{html.escape(value)}</td>")
            body.append(f"<tr>{''.join(cells)}</tr>\n")

        return f"""<table>
<caption>{html.escape(caption)}</caption>
<thead>
<tr>{head_cells}</tr>
</thead>
<tbody>
{"".join(body)}</tbody>
</table>
<br>
"""
