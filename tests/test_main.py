"""
Tests for the command-line entry point and its exit codes.
"""
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

import main
from main import record_run
from models.job import CleanupTaskResult, JobResult
from services.cleanup_service import CleanupTask
from utils.shutdown import ShutdownFlag


@pytest.fixture(autouse=True)
def no_database(monkeypatch):
    monkeypatch.setattr(main, "init_pool", MagicMock())
    monkeypatch.setattr(main, "close_pool", MagicMock())
    monkeypatch.setattr(main, "record_run", MagicMock())
    monkeypatch.setattr(ShutdownFlag, "install", lambda self: None)


class TestJobCommands:
    def test_renewals_success(self, monkeypatch):
        monkeypatch.setattr(main, "run_renewals", lambda shutdown: JobResult("renewals", processed=3, succeeded=2))
        assert main.main(["renewals"]) == 0
        main.record_run.assert_called_once()
        main.close_pool.assert_called_once()

    def test_partial_failure_exits_non_zero(self, monkeypatch):
        monkeypatch.setattr(main, "run_renewals", lambda shutdown: JobResult("renewals", processed=3, errors=1))
        assert main.main(["renewals"]) == 1

    def test_interrupted_run_exits_non_zero(self, monkeypatch):
        monkeypatch.setattr(main, "run_renewals", lambda shutdown: JobResult("renewals", interrupted=True))
        assert main.main(["renewals"]) == 1

    def test_fatal_error_exits_non_zero(self, monkeypatch):
        def fail(shutdown):
            raise ConnectionError("database unavailable")
        monkeypatch.setattr(main, "run_renewals", fail)
        assert main.main(["renewals"]) == 1
        main.close_pool.assert_called_once()

    def test_reminders(self, monkeypatch):
        async def fake_reminders(shutdown):
            return JobResult("reminders", processed=2, succeeded=1)
        monkeypatch.setattr(main, "run_reminders", fake_reminders)
        assert main.main(["reminders"]) == 0

    def test_unreachable_database(self, monkeypatch):
        monkeypatch.setattr(main, "init_pool", MagicMock(side_effect=OSError("refused")))
        assert main.main(["renewals"]) == 1


class TestCleanupCommand:
    def test_cleanup_exit_codes(self, monkeypatch):
        good = CleanupTask("good", "ok", lambda: CleanupTaskResult(True, "done"))
        bad = CleanupTask("bad", "fails", lambda: CleanupTaskResult(False, "nope"))
        monkeypatch.setattr(main, "default_cleanup_tasks", lambda: [good, bad])

        assert main.main(["cleanup", "good"]) == 0
        assert main.main(["cleanup"]) == 1

    def test_tasks_lists_without_database(self, capsys):
        assert main.main(["tasks"]) == 0
        assert "job-run-history" in capsys.readouterr().out
        main.init_pool.assert_not_called()


class TestRecordRun:
    def test_store_failure_does_not_raise(self):
        repo = MagicMock()
        repo.add.side_effect = RuntimeError("insert failed")
        record_run(JobResult("renewals"), datetime.now(timezone.utc), repo=repo)
        repo.add.assert_called_once()
