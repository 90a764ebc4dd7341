"""Scheduling utilities for the reconciliation workers.

The APScheduler runtime lives in :mod:`carrier_recon.scheduling.runner`; it is
not re-exported here because the workers import the interval policies.
"""

from .config import ScheduleConfig, WorkerDefinition, load_worker_definitions
from .policies import BusinessHoursInterval, FixedInterval, IntervalPolicy

__all__ = [
    "BusinessHoursInterval",
    "FixedInterval",
    "IntervalPolicy",
    "ScheduleConfig",
    "WorkerDefinition",
    "load_worker_definitions",
]
