"""
models/job.py
-------------
Result types shared by the batch jobs.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class JobResult:
    """
    Counters reported by one job invocation.

    Attributes:
        job_name: 'renewals' or 'reminders'.
        processed: Subscriptions looked at.
        succeeded: Renewal events created, or reminders sent.
        errors: Subscriptions whose processing failed.
        interrupted: True if a stop signal cut the run short.
    """
    job_name: str
    processed: int = 0
    succeeded: int = 0
    errors: int = 0
    interrupted: bool = False

    @property
    def ok(self) -> bool:
        return self.errors == 0 and not self.interrupted

    def summary(self) -> dict:
        """The job's counters under the names its callers expect."""
        key = "renewed" if self.job_name == "renewals" else "sent"
        return {"processed": self.processed, key: self.succeeded, "errors": self.errors}

    def __str__(self) -> str:
        key, value = list(self.summary().items())[1]
        text = f"Processed: {self.processed}, {key.capitalize()}: {value}, Errors: {self.errors}"
        return text + (" (interrupted)" if self.interrupted else "")


@dataclass
class JobRun:
    """A stored JobResult with its timing, as kept in job_runs."""
    job_name: str
    started_at: datetime
    finished_at: datetime
    processed: int
    succeeded: int
    errors: int
    interrupted: bool = False
    id: Optional[int] = None

    @classmethod
    def from_result(cls, result: JobResult, started_at: datetime, finished_at: datetime) -> "JobRun":
        return cls(
            job_name=result.job_name,
            started_at=started_at,
            finished_at=finished_at,
            processed=result.processed,
            succeeded=result.succeeded,
            errors=result.errors,
            interrupted=result.interrupted,
        )


@dataclass
class CleanupTaskResult:
    """Outcome of a single cleanup task."""
    success: bool
    message: str
    records_deleted: int = 0
    error: Optional[str] = None


@dataclass
class CleanupReport:
    """Outcome of a cleanup run, one entry per task that was attempted."""
    total: int = 0
    successful: int = 0
    failed: int = 0
    results: list[tuple[str, CleanupTaskResult]] = field(default_factory=list)

    @property
    def records_deleted(self) -> int:
        return sum(r.records_deleted for _, r in self.results if r.success)
