"""
Registry Projection Background Task.

Projects registry events from the chain into registry stats:
1. Reads the indexed block pointer
2. Fetches registry logs up to the chain head in chunks
3. Applies them through the aggregation engine and advances the pointer

Safe to rerun: already applied events are skipped by identity.
"""

import asyncio

import dramatiq
from loguru import logger

from indexsync.services.aggregation.projection_runner import ProjectionRunner
from indexsync.services.indexer.pointer import SqlIndexedBlockPointer
from indexsync.utils.exceptions import is_transient
from jobs.async_runner import async_actor, get_container
from jobs.broker import broker  # noqa: F401


MAX_RETRIES = 5


async def project_registry_events(
    runner: ProjectionRunner, pointer: SqlIndexedBlockPointer
) -> dict:
    """
    One projection pass.

    Args:
        runner: Projection runner
        pointer: Pointer to record failures on

    Returns:
        Dict with projection results
    """
    results = {
        "success": False,
        "events_applied": 0,
        "to_block": None,
        "errors": [],
    }

    try:
        run = await runner.run_once()
        results["events_applied"] = run["events_applied"]
        results["to_block"] = run["to_block"]
        results["success"] = True

        if run["events_applied"] > 0:
            logger.info(
                f"[Projection Task] Applied {run['events_applied']} event(s), "
                f"pointer at {run['to_block']}"
            )

    except asyncio.CancelledError:
        logger.info("[Projection Task] Cancelled")
        raise
    except Exception as e:
        logger.exception(f"[Projection Task] Error: {e}")
        results["errors"].append(str(e))
        await pointer.record_error(str(e))
        raise

    return results


def should_retry(retries_so_far: int, exception: Exception) -> bool:
    """
    Decide whether a failed projection pass is re-enqueued.

    Only node and database hiccups are retried; ordering and transition
    errors need an operator.
    """
    return retries_so_far < MAX_RETRIES and is_transient(exception)


@dramatiq.actor(
    max_retries=MAX_RETRIES,
    min_backoff=1000,  # 1 second
    max_backoff=60000,  # 1 minute
    retry_when=should_retry,
    time_limit=600_000,
)
@async_actor
async def run_registry_projection() -> dict:
    """Dramatiq entry point for one projection pass."""
    container = await get_container()
    return await project_registry_events(
        container.projection_runner, container.pointer
    )
