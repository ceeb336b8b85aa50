"""
services/cleanup_service.py
---------------------------
Housekeeping tasks run by the `cleanup` command.

Tasks are plain descriptors built by `default_cleanup_tasks()` and handed
to `run_cleanup()`; there is no module-level registry, so each task can be
tested on its own and callers can pass any list they like.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from config import JOB_RUN_RETENTION_DAYS
from models.job import CleanupReport, CleanupTaskResult
from repositories.job_run_repo import JobRunRepository
from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class CleanupTask:
    """A named, described unit of cleanup work."""
    name: str
    description: str
    execute: Callable[[], CleanupTaskResult]


def cleanup_job_runs(repo: JobRunRepository, retention_days: int = JOB_RUN_RETENTION_DAYS) -> CleanupTaskResult:
    """
    Delete job run history older than `retention_days`.

    Failures are reported in the result rather than raised.
    """
    try:
        deleted = repo.delete_older_than(retention_days)
        return CleanupTaskResult(
            success=True,
            message=f"Cleaned up {deleted} job runs older than {retention_days} days",
            records_deleted=deleted,
        )
    except Exception as e:
        logger.error(f"Error cleaning up job runs: {e}")
        return CleanupTaskResult(success=False, message="Failed to clean up job runs", error=str(e))


def default_cleanup_tasks(job_runs: Optional[JobRunRepository] = None) -> list[CleanupTask]:
    """Build the tasks the `cleanup` command runs by default."""
    job_runs = job_runs or JobRunRepository()
    return [
        CleanupTask(
            name="job-run-history",
            description=f"Delete job run history older than {JOB_RUN_RETENTION_DAYS} days",
            execute=lambda: cleanup_job_runs(job_runs),
        ),
    ]


def run_cleanup(tasks: list[CleanupTask], task_names: Optional[list[str]] = None) -> CleanupReport:
    """
    Run cleanup tasks one after another.

    Args:
        tasks: Candidate tasks.
        task_names: If given, only tasks with these names run; unknown
            names are logged and ignored.

    Returns:
        CleanupReport with one result per task that ran.
    """
    if task_names:
        known = {t.name for t in tasks}
        for name in task_names:
            if name not in known:
                logger.warning(f"Unknown cleanup task '{name}', ignoring")
        tasks = [t for t in tasks if t.name in task_names]

    report = CleanupReport(total=len(tasks))
    logger.info(f"Starting database cleanup with {len(tasks)} tasks...")

    for task in tasks:
        logger.info(f"Running cleanup task: {task.name} ({task.description})")
        try:
            result = task.execute()
        except Exception as e:
            result = CleanupTaskResult(success=False, message="Task execution failed", error=str(e))

        report.results.append((task.name, result))
        if result.success:
            report.successful += 1
            logger.info(f"✓ {task.name}: {result.message}")
        else:
            report.failed += 1
            logger.error(f"✗ {task.name}: {result.message}" + (f" ({result.error})" if result.error else ""))

    logger.info(f"Database cleanup completed. {report.successful}/{report.total} tasks successful.")
    return report
