"""Repository layer for DB access only (CRUD + upserts + simple queries).

Repositories accept an AsyncSession explicitly and never commit; the cache
store and the sync runner own transaction boundaries.
"""

from .base import BaseRepository
from .dataset_version_repo import DatasetVersionRepository
from .metric_layer_repo import MetricLayerRepository
from .snapshot_repo import SnapshotRepository
from .sync_run_repo import SyncRunRepository

__all__ = [
    "BaseRepository",
    "DatasetVersionRepository",
    "MetricLayerRepository",
    "SnapshotRepository",
    "SyncRunRepository",
]
