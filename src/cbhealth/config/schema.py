"""Pydantic models for cbhealth configuration.

A single YAML (or JSON) document describes the monitored clusters, the
collector's HTTP limits, the highlighting thresholds, the archive paths
and who receives the report in each period.
"""

from __future__ import annotations

import shlex
from enum import Enum
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from cbhealth._constants import DATA_DIR_NAME, DEFAULT_MOUNT_POINT, DEFAULT_WORK_DIR

# =============================================================================
# Enums
# =============================================================================


class Period(str, Enum):
    """Time-of-day classification of a run.

    The value is also the prefix of the archived dataset file name.
    """

    IST_MORNING = "ist_morning"
    EST_MORNING = "est_morning"


class MailTransportType(str, Enum):
    """Supported mail transports."""

    SENDMAIL = "sendmail"
    SMTP = "smtp"


# =============================================================================
# Clusters
# =============================================================================


class ClusterConfig(BaseModel):
    """Connection details for one monitored cluster.

    The legacy ``cluster-config.json`` keys (``clusterusername``,
    ``clusterpassword``, ``clusterurl``, ``clustername``) are accepted as
    aliases so existing files load unchanged.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    username: str = Field(alias="clusterusername")
    password: str = Field(alias="clusterpassword", repr=False)
    url: str = Field(alias="clusterurl", description="Base URL, e.g. http://cb01.example.com:8091")
    name: str = Field(alias="clustername", description="Display name used in the report caption")

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("cluster url must not be empty")
        return v.rstrip("/")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("cluster name must not be empty")
        return v


# =============================================================================
# Collection and thresholds
# =============================================================================


class CollectorConfig(BaseModel):
    """HTTP limits and extraction settings for the metric fetcher."""

    connect_timeout: float = Field(default=5.0, gt=0)
    timeout: float = Field(default=10.0, gt=0)
    mount_point: str = DEFAULT_MOUNT_POINT

    @model_validator(mode="after")
    def validate_timeouts(self) -> CollectorConfig:
        if self.connect_timeout > self.timeout:
            raise ValueError("connect_timeout must not exceed timeout")
        return self


class ThresholdsConfig(BaseModel):
    """Cell highlighting thresholds.

    Disk, memory and uptime highlight at or above their threshold; swap
    highlights strictly above it.
    """

    disk_percent: float = 75
    memory_percent: float = 80
    swap_percent: float = 0
    uptime_days: float = 30


# =============================================================================
# Paths and report
# =============================================================================


class PathsConfig(BaseModel):
    """Filesystem locations used by a run."""

    work_dir: str = DEFAULT_WORK_DIR
    data_dir: str = ""  # Empty = <work_dir>/DailyClusterData

    def resolve_data_dir(self) -> Path:
        if self.data_dir:
            return Path(self.data_dir)
        return Path(self.work_dir) / DATA_DIR_NAME


class ReportConfig(BaseModel):
    """Static parts of the rendered HTML report."""

    title: str = "Couchbase Platform PROD & COB clusters"
    timezone: str = "America/Toronto"
    timestamp_format: str = "%Y-%m-%d %I:%M %p %Z"

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown timezone '{v}'") from e
        return v


# =============================================================================
# Mail
# =============================================================================


def _check_address(address: str) -> str:
    """Strip *address* and reject values that cannot go into a mail header."""
    address = address.strip()
    if not address:
        raise ValueError("address must not be empty")
    if any(ch in address for ch in "\r\n\0"):
        raise ValueError(f"address contains a line break or NUL: {address!r}")
    return address


class RecipientSet(BaseModel):
    """One distribution list; each set is delivered as a separate message."""

    name: str
    to: list[str] = Field(default_factory=list)
    cc: list[str] = Field(default_factory=list)

    @field_validator("to", "cc")
    @classmethod
    def validate_addresses(cls, v: list[str]) -> list[str]:
        return [_check_address(a) for a in v]


def _default_recipients() -> dict[Period, list[RecipientSet]]:
    return {
        Period.IST_MORNING: [RecipientSet(name="primary")],
        Period.EST_MORNING: [
            RecipientSet(name="leaders"),
            RecipientSet(name="support"),
        ],
    }


class MailConfig(BaseModel):
    """Report delivery configuration."""

    sender: str = "report@couchbase"
    subject: str = "Couchbase Platform PROD & COB Cluster Health Report : {date}"
    transport: MailTransportType = MailTransportType.SENDMAIL

    # sendmail transport
    sendmail_command: str = "sendmail"

    # smtp transport
    smtp_host: str = "localhost"
    smtp_port: int = 25
    smtp_timeout: float = 30.0
    smtp_username: str = ""
    smtp_password: str = Field(default="", repr=False)
    smtp_starttls: bool = False

    recipients: dict[Period, list[RecipientSet]] = Field(default_factory=_default_recipients)

    @field_validator("sender")
    @classmethod
    def validate_sender(cls, v: str) -> str:
        return _check_address(v)

    @field_validator("sendmail_command")
    @classmethod
    def validate_sendmail_command(cls, v: str) -> str:
        try:
            argv = shlex.split(v)
        except ValueError as e:
            raise ValueError(f"sendmail_command cannot be parsed: {e}") from e
        if not argv:
            raise ValueError("sendmail_command must not be empty")
        return v

    @field_validator("subject")
    @classmethod
    def validate_subject(cls, v: str) -> str:
        try:
            v.format(date="")
        except (KeyError, IndexError, ValueError) as e:
            raise ValueError(f"subject may only use the {{date}} placeholder: {e}") from e
        return v

    @model_validator(mode="after")
    def fill_missing_periods(self) -> MailConfig:
        """Periods absent from ``recipients`` get an empty list."""
        for period in Period:
            self.recipients.setdefault(period, [])
        return self


# =============================================================================
# Root Configuration
# =============================================================================


class MonitorConfig(BaseModel):
    """Root configuration for cbhealth."""

    clusters: list[ClusterConfig] = Field(default_factory=list)
    collector: CollectorConfig = Field(default_factory=CollectorConfig)
    thresholds: ThresholdsConfig = Field(default_factory=ThresholdsConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
    mail: MailConfig = Field(default_factory=MailConfig)

    @model_validator(mode="after")
    def validate_required_fields(self) -> MonitorConfig:
        """Validate required fields are present."""
        if not self.clusters:
            raise ValueError("'clusters' must contain at least one entry")
        return self

    def cluster_names(self) -> list[str]:
        """Display names in configuration order."""
        return [c.name for c in self.clusters]
