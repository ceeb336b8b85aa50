"""
main.py
-------
Entry point for the renewal scheduler. Meant to be invoked by cron:

    python main.py renewals            # backfill renewal events
    python main.py reminders           # send due renewal reminders
    python main.py cleanup [task ...]  # housekeeping (all tasks by default)
    python main.py tasks               # list cleanup tasks
    python main.py init-db             # create tables

Exit code is 0 only when every subscription/task succeeded and the run
was not interrupted.
"""

import argparse
import asyncio
import sys
from datetime import datetime, timezone
from typing import Optional

from db.connection import close_pool, init_pool
from db.init_db import create_tables
from models.job import JobResult, JobRun
from repositories.job_run_repo import JobRunRepository
from services.cleanup_service import default_cleanup_tasks, run_cleanup
from services.notifier import TelegramNotifier
from services.reminder_service import ReminderJob
from services.renewal_service import RenewalBackfillJob
from utils.logger import get_logger
from utils.shutdown import ShutdownFlag

logger = get_logger(__name__)


def run_renewals(shutdown: ShutdownFlag) -> JobResult:
    """Backfill renewal events for all active subscriptions."""
    return RenewalBackfillJob(shutdown=shutdown).run()


async def run_reminders(shutdown: ShutdownFlag) -> JobResult:
    """Send due reminders through Telegram."""
    async with TelegramNotifier() as notifier:
        return await ReminderJob(notifier, shutdown=shutdown).run()


def record_run(result: JobResult, started_at: datetime, repo: Optional[JobRunRepository] = None) -> None:
    """Store the run in job_runs. A failure here never changes the exit code."""
    repo = repo or JobRunRepository()
    try:
        repo.add(JobRun.from_result(result, started_at, datetime.now(timezone.utc)))
    except Exception as e:
        logger.error(f"Failed to record {result.job_name} run: {e}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="renewal-scheduler", description="Subscription renewal scheduler jobs")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("renewals", help="Backfill renewal events for active subscriptions")
    sub.add_parser("reminders", help="Send due renewal reminders")
    cleanup = sub.add_parser("cleanup", help="Run housekeeping tasks")
    cleanup.add_argument("tasks", nargs="*", help="Task names to run (default: all)")
    sub.add_parser("tasks", help="List available cleanup tasks")
    sub.add_parser("init-db", help="Create database tables")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Parse arguments, run one command, and return the process exit code."""
    args = build_parser().parse_args(argv)

    if args.command == "tasks":
        for task in default_cleanup_tasks():
            print(f"  - {task.name}: {task.description}")
        return 0

    shutdown = ShutdownFlag()
    shutdown.install()

    # ── 1. Database setup ─────────────────────────────────
    try:
        init_pool()
    except Exception as e:
        logger.error(f"Cannot connect to the database: {e}")
        return 1

    try:
        # ── 2. Run the requested command ──────────────────
        if args.command == "init-db":
            create_tables()
            return 0

        if args.command == "cleanup":
            report = run_cleanup(default_cleanup_tasks(), args.tasks or None)
            logger.info(
                f"Cleanup summary: {report.successful}/{report.total} tasks successful, "
                f"{report.records_deleted} record(s) deleted"
            )
            return 0 if report.failed == 0 else 1

        started_at = datetime.now(timezone.utc)
        if args.command == "renewals":
            result = run_renewals(shutdown)
        else:
            result = asyncio.run(run_reminders(shutdown))

        # ── 3. Report ─────────────────────────────────────
        record_run(result, started_at)
        logger.info(f"Summary: {result.summary()}")
        return 0 if result.ok else 1

    except Exception as e:
        logger.error(f"{args.command} job failed: {e}")
        return 1
    finally:
        # ── 4. Cleanup on shutdown ────────────────────────
        close_pool()


if __name__ == "__main__":
    sys.exit(main())
