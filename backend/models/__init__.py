"""SQLAlchemy models for the postcode layer cache.

Importing this package registers every table with ``Base.metadata``.
"""

from .base import Base
from .dataset_version import DatasetVersion
from .metric_layer import MetricLayerRow
from .snapshot import SnapshotRow
from .sync_run import DatasetSyncRun

__all__ = [
    "Base",
    "DatasetSyncRun",
    "DatasetVersion",
    "MetricLayerRow",
    "SnapshotRow",
]
