"""Concurrent git synchronization engine."""

from .engine import SyncEngine
from .executor import SyncExecutor
from .job import (
    JobOutcome,
    JobResult,
    SyncAction,
    SyncJob,
    git_arguments,
    plan_action,
)
from .pool import MAX_EXIT_STATUS, PoolResult, WorkerPool, WorkerReport, exit_status
from .queue import DispatchQueue
from .resolver import closest_existing_directory
from .source import JobSource, organization_jobs, syncpoint_jobs

__all__ = [
    "SyncEngine",
    "SyncExecutor",
    "SyncJob",
    "SyncAction",
    "JobOutcome",
    "JobResult",
    "git_arguments",
    "plan_action",
    "DispatchQueue",
    "WorkerPool",
    "WorkerReport",
    "PoolResult",
    "MAX_EXIT_STATUS",
    "exit_status",
    "closest_existing_directory",
    "JobSource",
    "organization_jobs",
    "syncpoint_jobs",
]
