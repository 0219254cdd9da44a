import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

from apscheduler.triggers.cron import CronTrigger

from services.exceptions import IngestionAlreadyRunning, StoreUnavailableError
from services.scheduler import JOB_ID, SchedulerService


class TestSchedulerService:
    def test_start_registers_hourly_job(self):
        """Job runs at minute 0 of every hour, once at startup, never overlapping"""
        scheduler = MagicMock()
        service = SchedulerService(runner=MagicMock(), scheduler=scheduler)

        service.start()

        scheduler.add_job.assert_called_once()
        args, kwargs = scheduler.add_job.call_args
        assert args[0] == service.fetch_external_data
        trigger = args[1]
        assert isinstance(trigger, CronTrigger)
        minute = next(f for f in trigger.fields if f.name == "minute")
        assert str(minute) == "0"
        assert kwargs["id"] == JOB_ID
        assert kwargs["max_instances"] == 1
        assert kwargs["coalesce"] is True
        assert kwargs["replace_existing"] is True
        assert (datetime.now(timezone.utc) - kwargs["next_run_time"]).total_seconds() < 5
        scheduler.start.assert_called_once()
        assert service.is_running

    def test_start_is_idempotent(self):
        scheduler = MagicMock()
        service = SchedulerService(runner=MagicMock(), scheduler=scheduler)

        service.start()
        service.start()

        assert scheduler.add_job.call_count == 1

    def test_shutdown(self):
        scheduler = MagicMock()
        service = SchedulerService(runner=MagicMock(), scheduler=scheduler)
        service.start()

        service.shutdown()

        scheduler.shutdown.assert_called_once_with(wait=False)
        assert not service.is_running
        assert service.next_run_time() is None

    def test_shutdown_when_not_started(self):
        scheduler = MagicMock()
        SchedulerService(runner=MagicMock(), scheduler=scheduler).shutdown()
        scheduler.shutdown.assert_not_called()

    def test_next_run_time(self):
        scheduler = MagicMock()
        when = datetime(2024, 5, 1, 13, 0, tzinfo=timezone.utc)
        scheduler.get_job.return_value = MagicMock(next_run_time=when)
        service = SchedulerService(runner=MagicMock(), scheduler=scheduler)
        service.start()

        assert service.next_run_time() == when
        scheduler.get_job.assert_called_with(JOB_ID)


@pytest.mark.asyncio
class TestFetchExternalDataJob:
    async def test_runs_ingestion(self):
        runner = MagicMock()
        runner.run_ingestion = AsyncMock(return_value=MagicMock(readings_stored=4, alerts_created=1))

        await SchedulerService(runner=runner, scheduler=MagicMock()).fetch_external_data()

        runner.run_ingestion.assert_awaited_once()

    @pytest.mark.parametrize("error", [
        IngestionAlreadyRunning("busy"),
        StoreUnavailableError("down"),
        RuntimeError("unexpected"),
    ])
    async def test_job_never_raises(self, error):
        """A failed tick waits for the next one instead of killing the scheduler"""
        runner = MagicMock()
        runner.run_ingestion = AsyncMock(side_effect=error)

        await SchedulerService(runner=runner, scheduler=MagicMock()).fetch_external_data()

        runner.run_ingestion.assert_awaited_once()
