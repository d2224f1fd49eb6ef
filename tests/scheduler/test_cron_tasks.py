import pytest

from pos_terminal.scheduler import cron_tasks
from pos_terminal.scheduler.cron_tasks import catalog_refresh_job, configure_scheduler, scheduler
from pos_terminal.utils.config import settings


def test_scheduler_idle_without_inventory_api(mocker):
    mocker.patch.object(settings, "INVENTORY_API_URL", None)
    assert configure_scheduler() is False


def test_first_refresh_is_due_immediately(mocker):
    mocker.patch.object(settings, "INVENTORY_API_URL", "https://inventory.test/api/products")

    assert configure_scheduler() is True
    try:
        job = scheduler.get_job("catalog_refresh")
        assert job is not None
        assert job.next_run_time is not None
    finally:
        scheduler.remove_job("catalog_refresh")


@pytest.mark.asyncio
async def test_refresh_job_swallows_errors(mocker):
    refresh = mocker.patch.object(
        cron_tasks.catalog_service, "refresh_from_remote",
        new_callable=mocker.AsyncMock, side_effect=RuntimeError("boom"),
    )

    await catalog_refresh_job()

    refresh.assert_awaited_once()
