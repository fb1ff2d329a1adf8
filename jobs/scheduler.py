"""
Projection scheduler.

Enqueues the registry projection task on a fixed period and serves the
health endpoints. Run with ``python -m jobs.scheduler``; the actors
themselves run in ``dramatiq jobs.tasks.registry_projection_task``.
"""

import asyncio
import signal

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from loguru import logger

from indexsync.bootstrap import lifespan
from indexsync.config.settings import settings
from indexsync.utils.logging import setup_logging
from jobs.health import (
    set_scheduler,
    set_status_client,
    start_health_server,
    stop_health_server,
)
from jobs.tasks.registry_projection_task import run_registry_projection


def create_scheduler(interval_seconds: int) -> AsyncIOScheduler:
    """
    Build the scheduler with the projection job registered.

    Args:
        interval_seconds: Period between projection runs

    Returns:
        Not yet started scheduler
    """
    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        run_registry_projection.send,
        "interval",
        seconds=interval_seconds,
        id="registry_projection",
        max_instances=1,
        coalesce=True,
    )
    return scheduler


async def main() -> None:
    """Run until SIGINT / SIGTERM."""
    setup_logging(settings.log_level, settings.log_file)
    stop = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    async with lifespan() as container:
        scheduler = create_scheduler(settings.projection_interval_seconds)
        scheduler.start()
        set_scheduler(scheduler)
        set_status_client(container.pointer)
        runner = await start_health_server(port=settings.health_check_port)

        logger.success(
            f"[Scheduler] Registry projection every "
            f"{settings.projection_interval_seconds}s"
        )
        try:
            await stop.wait()
        finally:
            scheduler.shutdown(wait=False)
            await stop_health_server(runner)


if __name__ == "__main__":
    asyncio.run(main())
