"""Background workers driving staging ingestion and order linking."""

from .base import PeriodicWorker
from .guard import RunGuard
from .ingestion import StagingIngestionWorker
from .linking import StagingLinkingWorker

__all__ = [
    "PeriodicWorker",
    "RunGuard",
    "StagingIngestionWorker",
    "StagingLinkingWorker",
]
