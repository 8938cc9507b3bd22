"""
Sync operations module.

SyncOrchestrator is the public entry point; run_sync_job wraps it for schedulers.
"""

from .observable import Observable
from .orchestrator import SyncOrchestrator
from .worker import JobOutcome, run_sync_job

__all__ = [
    "Observable",
    "SyncOrchestrator",
    "JobOutcome",
    "run_sync_job",
]
