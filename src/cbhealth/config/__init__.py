"""cbhealth configuration module."""

from .loader import (
    ConfigError,
    ConfigFileNotFoundError,
    ConfigParseError,
    ConfigValidationError,
    generate_example_config_yaml,
    load_config,
    save_config,
)
from .schema import (
    ClusterConfig,
    CollectorConfig,
    MailConfig,
    MailTransportType,
    MonitorConfig,
    PathsConfig,
    Period,
    RecipientSet,
    ReportConfig,
    ThresholdsConfig,
)

__all__ = [
    # Config classes
    "MonitorConfig",
    "ClusterConfig",
    "CollectorConfig",
    "ThresholdsConfig",
    "PathsConfig",
    "ReportConfig",
    "MailConfig",
    "RecipientSet",
    # Enums
    "Period",
    "MailTransportType",
    # Loader functions
    "load_config",
    "save_config",
    "generate_example_config_yaml",
    # Exceptions
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConfigParseError",
    "ConfigValidationError",
]
