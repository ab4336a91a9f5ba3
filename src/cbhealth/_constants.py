"""Shared constants for cbhealth."""

# Working directory of the scheduled job.  Holds the config file and the
# dataset archive tree:
#   DailyClusterData/<YYYY-MM-DD>/<period>_cluster_data.csv
DEFAULT_WORK_DIR = "/opt/scripts/DailyReport"
DATA_DIR_NAME = "DailyClusterData"

# Storage entry whose usage is reported as DISK_UTIL
DEFAULT_MOUNT_POINT = "/opt/appdata"

DATASET_HEADER = (
    "date",
    "period",
    "cluster",
    "HOSTNAME",
    "HEALTH",
    "DISK_UTIL",
    "MEM_UTIL",
    "SWAP_UTIL",
    "CB_UPTIME",
    "CB_SERVICE",
)

# Exit codes for the `run` command
EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_DELIVERY_FAILED = 3
