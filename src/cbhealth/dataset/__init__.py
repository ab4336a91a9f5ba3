"""Dataset module for cbhealth.

Holds collected metric rows and archives them as CSV.
"""

from .dataset import ClusterGroup, Dataset, is_group_marker, read_rows, split_groups
from .records import (
    HEALTH_CLUSTER_ERROR,
    HEALTH_NODE_FAILURE,
    MetricRecord,
)
from .storage import DatasetStorage, dataset_filename

__all__ = [
    "ClusterGroup",
    "Dataset",
    "DatasetStorage",
    "MetricRecord",
    "HEALTH_CLUSTER_ERROR",
    "HEALTH_NODE_FAILURE",
    "dataset_filename",
    "is_group_marker",
    "read_rows",
    "split_groups",
]
