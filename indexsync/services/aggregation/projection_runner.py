"""
Projection runner.

Feeds chain events to the aggregation engine block by block and advances
the indexed block pointer only after a block is fully applied.
"""

import asyncio
from collections import defaultdict

from loguru import logger

from indexsync.config.constants import (
    PROJECTION_CHUNK_SIZE,
    PROJECTION_MAX_REGISTRY_WORKERS,
)
from indexsync.services.aggregation.engine import AggregationEngine, ApplyResult
from indexsync.services.aggregation.events import RegistryEvent
from indexsync.services.aggregation.log_source import RegistryLogSource
from indexsync.services.indexer.pointer import IndexedBlockPointer


class ProjectionRunner:
    """
    Drives the aggregation engine.

    Features:
    - Registries of one block processed concurrently, bounded by a semaphore
    - Events of one registry applied sequentially in (block, log_index) order
    - Pointer advanced only after every event of a block is applied
    """

    def __init__(
        self,
        engine: AggregationEngine,
        pointer: IndexedBlockPointer,
        log_source: RegistryLogSource | None = None,
        chunk_size: int = PROJECTION_CHUNK_SIZE,
        max_workers: int = PROJECTION_MAX_REGISTRY_WORKERS,
        start_block: int = 0,
    ) -> None:
        """
        Initialize runner.

        Args:
            engine: Aggregation engine
            pointer: Indexed block pointer
            log_source: Chain log source (required for run_once)
            chunk_size: Blocks per eth_getLogs request
            max_workers: Registries processed concurrently
            start_block: First block to project when the pointer is empty
        """
        self.engine = engine
        self.pointer = pointer
        self.log_source = log_source
        self.chunk_size = chunk_size
        self.start_block = start_block
        self._semaphore = asyncio.Semaphore(max_workers)

    async def process_block(self, block_number: int, events: list[RegistryEvent]) -> int:
        """
        Apply all events of one block and advance the pointer to it.

        Args:
            block_number: Block being completed
            events: Registry events of that block

        Returns:
            Number of newly applied events

        Raises:
            ValueError: If an event belongs to another block, or an event
                could not be applied (pointer is left unchanged)
        """
        stray = [e.event_id for e in events if e.block_number != block_number]
        if stray:
            raise ValueError(f"Events {stray} do not belong to block {block_number}")

        applied = await self._apply_grouped(events)
        await self.pointer.advance(block_number, applied)
        return applied

    async def process_range(
        self, from_block: int, to_block: int, events: list[RegistryEvent]
    ) -> int:
        """
        Apply events of [from_block, to_block], completing blocks in order.

        Returns:
            Number of newly applied events
        """
        by_block: dict[int, list[RegistryEvent]] = defaultdict(list)
        for event in events:
            if not from_block <= event.block_number <= to_block:
                raise ValueError(
                    f"Event {event.event_id} outside range {from_block}-{to_block}"
                )
            by_block[event.block_number].append(event)

        applied = 0
        for block_number in sorted(by_block):
            applied += await self.process_block(block_number, by_block[block_number])

        # Blocks without registry events are complete as well
        await self.pointer.advance(to_block)
        return applied

    async def run_once(self) -> dict:
        """
        Project everything between the pointer and the chain head.

        Returns:
            Dict with from_block, to_block, events_applied, chunks
        """
        if self.log_source is None:
            raise RuntimeError("ProjectionRunner.run_once requires a log source")

        indexed = await self.pointer.get_indexed_block()
        from_block = max(indexed + 1, self.start_block)
        latest = await self.log_source.get_latest_block()

        result = {
            "from_block": from_block,
            "to_block": latest,
            "events_applied": 0,
            "chunks": 0,
        }
        if from_block > latest:
            return result

        logger.info(f"[Projection] Projecting blocks {from_block} -> {latest}")

        current = from_block
        while current <= latest:
            chunk_end = min(current + self.chunk_size - 1, latest)
            events = await self.log_source.fetch_events(current, chunk_end)
            result["events_applied"] += await self.process_range(
                current, chunk_end, events
            )
            result["chunks"] += 1

            if result["chunks"] % 10 == 0:
                progress = (chunk_end - from_block + 1) / (latest - from_block + 1) * 100
                logger.info(
                    f"[Projection] Progress: {progress:.1f}% "
                    f"({result['events_applied']} events)"
                )
            current = chunk_end + 1

        logger.success(
            f"[Projection] Reached block {latest}: "
            f"{result['events_applied']} events in {result['chunks']} chunk(s)"
        )
        return result

    async def _apply_grouped(self, events: list[RegistryEvent]) -> int:
        groups: dict[str, list[RegistryEvent]] = defaultdict(list)
        for event in events:
            groups[event.registry_id].append(event)

        outcomes = await asyncio.gather(
            *(self._apply_registry(group) for group in groups.values()),
            return_exceptions=True,
        )
        errors = [o for o in outcomes if isinstance(o, BaseException)]
        if errors:
            for error in errors:
                logger.error(f"[Projection] Registry apply failed: {error}")
            raise errors[0]
        return sum(outcomes)

    async def _apply_registry(self, events: list[RegistryEvent]) -> int:
        applied = 0
        async with self._semaphore:
            for event in sorted(events, key=lambda e: e.position):
                if await self.engine.apply(event) == ApplyResult.APPLIED:
                    applied += 1
        return applied
