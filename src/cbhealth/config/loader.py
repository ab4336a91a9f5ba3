"""Configuration loader for cbhealth."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .schema import MonitorConfig


class ConfigError(Exception):
    """Base exception for configuration errors."""

    pass


class ConfigFileNotFoundError(ConfigError):
    """Raised when configuration file is not found."""

    pass


class ConfigParseError(ConfigError):
    """Raised when configuration file cannot be parsed."""

    pass


class ConfigValidationError(ConfigError):
    """Raised when configuration validation fails."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.errors = errors or []


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML or JSON file and return it as a dictionary.

    Args:
        path: Path to the configuration file

    Returns:
        Dictionary containing the parsed document

    Raises:
        ConfigFileNotFoundError: If file doesn't exist
        ConfigParseError: If parsing fails or the document is not a mapping
    """
    if not path.exists():
        raise ConfigFileNotFoundError(f"Configuration file not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigParseError(f"Failed to parse {path}: {e}")  # noqa: B904

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigParseError(f"Expected a mapping at the top of {path}, got {type(content).__name__}")
    return content


def load_config(path: str | Path) -> MonitorConfig:
    """Load and validate cbhealth configuration from file.

    Args:
        path: Path to configuration YAML/JSON file

    Returns:
        Validated MonitorConfig object

    Raises:
        ConfigFileNotFoundError: If file doesn't exist
        ConfigParseError: If parsing fails
        ConfigValidationError: If validation fails
    """
    path = Path(path)
    data = load_yaml(path)

    try:
        return MonitorConfig.model_validate(data)
    except ValidationError as e:
        errors = e.errors()
        error_messages = []
        for err in errors:
            loc = ".".join(str(x) for x in err["loc"])
            msg = err["msg"]
            error_messages.append(f"  - {loc}: {msg}")

        raise ConfigValidationError(  # noqa: B904
            "Configuration validation failed:\n" + "\n".join(error_messages),
            errors=[dict(e) for e in errors],  # type: ignore[call-overload]
        )


def save_config(config: MonitorConfig, path: str | Path) -> None:
    """Save configuration to a YAML file.

    Args:
        config: MonitorConfig object
        path: Path to save YAML file
    """
    path = Path(path)
    data = config.model_dump(mode="json", exclude_defaults=False)

    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False, indent=2)


def generate_example_config_yaml() -> str:
    """Generate example configuration YAML with comments.

    Only the cluster list must be filled in; every other option is shown
    commented-out with its default.

    Returns:
        String containing commented YAML configuration
    """
    return """# cbhealth Configuration
# ======================
# Clusters polled on every run.  Report tables appear in this order.
# The legacy cluster-config.json keys (clusterusername, clusterpassword,
# clusterurl, clustername) are accepted as well.
clusters:
  - name: PROD-EAST
    url: http://cb-prod-east-01.example.com:8091
    username: monitor
    password: change-me

## HTTP limits (one attempt per request, no retries)
# collector:
#   connect_timeout: 5.0
#   timeout: 10.0
#   mount_point: /opt/appdata

## Cell highlighting
# thresholds:
#   disk_percent: 75      # highlight at or above
#   memory_percent: 80    # highlight at or above
#   swap_percent: 0       # highlight above
#   uptime_days: 30       # highlight at or above

## Archive locations
# paths:
#   work_dir: /opt/scripts/DailyReport
#   data_dir: ""          # default: <work_dir>/DailyClusterData

## Report text
# report:
#   title: Couchbase Platform PROD & COB clusters
#   timezone: America/Toronto

## Delivery
mail:
  sender: report@couchbase
  # subject: "Couchbase Platform PROD & COB Cluster Health Report : {date}"
  # transport: sendmail   # or smtp
  # sendmail_command: sendmail
  # smtp_host: localhost
  # smtp_port: 25
  recipients:
    # Runs outside 07:00-16:00 local time
    ist_morning:
      - name: primary
        to: []
    # Runs between 07:00 and 16:00 local time
    est_morning:
      - name: leaders
        to: [leaders@example.com]
        cc: []
      - name: support
        to: [support@example.com]
        cc: []
"""
