"""
Unit of work for background schedulers.

The scheduler decides when to run and how to back off; this only reports
whether the run should be retried.
"""

import logging
from enum import Enum

logger = logging.getLogger(__name__)


class JobOutcome(Enum):
    SUCCESS = "success"
    RETRY = "retry"
    FAILURE = "failure"


def run_sync_job(orchestrator) -> JobOutcome:
    """Sync every tracked folder once."""
    logger.debug("Sync job starting")
    if not orchestrator.is_logged_in:
        logger.debug("Not signed in, skipping sync job")
        return JobOutcome.SUCCESS

    try:
        result = orchestrator.sync_all_tracked_folders()
    except Exception:
        logger.exception("Sync job failed unexpectedly")
        return JobOutcome.FAILURE

    if not result.ok:
        logger.error("Sync job failed: %s", result.error)
        return JobOutcome.RETRY

    bulk = result.value
    if bulk.failed_folder_count:
        logger.warning(
            "Sync job finished with %d/%d folders failing", bulk.failed_folder_count, bulk.folder_count
        )
        return JobOutcome.RETRY

    logger.info("Sync job complete: %d folders, %d songs", bulk.folder_count, bulk.synced_song_count)
    return JobOutcome.SUCCESS
