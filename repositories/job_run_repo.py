"""
repositories/job_run_repo.py
-----------------------------
Data access layer for the job run history.
"""

from datetime import datetime, timedelta, timezone

from db.connection import transaction
from models.job import JobRun
from utils.logger import get_logger

logger = get_logger(__name__)


class JobRunRepository:
    """Repository for the job_runs table."""

    def add(self, run: JobRun) -> JobRun:
        """Persist one finished job run and populate its `id`."""
        sql = """
            INSERT INTO job_runs
                (job_name, started_at, finished_at, processed, succeeded, errors, interrupted)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            RETURNING id;
        """
        with transaction() as cur:
            cur.execute(sql, (
                run.job_name, run.started_at, run.finished_at,
                run.processed, run.succeeded, run.errors, run.interrupted,
            ))
            run.id = cur.fetchone()[0]
        return run

    def delete_older_than(self, days: int) -> int:
        """
        Delete runs that started more than `days` days ago.

        Returns:
            Number of rows deleted.
        """
        cutoff = datetime.now(timezone.utc) - timedelta(days=days)
        with transaction() as cur:
            cur.execute("DELETE FROM job_runs WHERE started_at < %s;", (cutoff,))
            deleted = cur.rowcount
        logger.info(f"Deleted {deleted} job run(s) older than {days} days")
        return deleted
