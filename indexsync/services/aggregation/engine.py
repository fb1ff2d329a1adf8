"""
Aggregation Engine.

Applies decoded registry events to per-registry counters and appends an
immutable snapshot for every applied event. Each event is applied at most
once; a registry's events are applied one at a time in chain order.
"""

import asyncio
from enum import StrEnum

from loguru import logger

from indexsync.services.aggregation.events import RegistryCounters, RegistryEvent
from indexsync.services.aggregation.store import Absent, AggregateStore, Found
from indexsync.services.aggregation.transitions import (
    InvalidTransitionError,
    apply_transition,
)
from indexsync.utils.exceptions import DuplicateEventError


class ApplyResult(StrEnum):
    """Outcome of applying one event."""

    APPLIED = "applied"
    DUPLICATE = "duplicate"


class OutOfOrderEventError(ValueError):
    """A new event is positioned at or before the registry's last event."""

    def __init__(self, event: RegistryEvent, last_position: tuple[int, int]) -> None:
        self.event_id = event.event_id
        self.position = event.position
        self.last_position = last_position
        super().__init__(
            f"Event {event.event_id} at {event.position} is not after "
            f"{last_position} for registry {event.registry_id}"
        )


class AggregationEngine:
    """
    Registry statistics aggregator.

    Features:
    - Exactly-once application keyed by (tx_hash, log_index)
    - Counters, snapshot, and dedup record committed atomically
    - Per-registry serialization, registries processed in parallel
    """

    def __init__(self, store: AggregateStore) -> None:
        """
        Initialize engine.

        Args:
            store: Aggregate store providing atomic units of work
        """
        self.store = store
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, registry_id: str) -> asyncio.Lock:
        lock = self._locks.get(registry_id)
        if lock is None:
            lock = self._locks[registry_id] = asyncio.Lock()
        return lock

    async def apply(self, event: RegistryEvent) -> ApplyResult:
        """
        Apply one event.

        Args:
            event: Decoded registry event

        Returns:
            APPLIED, or DUPLICATE if the event was applied before

        Raises:
            InvalidTransitionError: If the kind is not defined for the
                registry type, or the registry changed type
            OutOfOrderEventError: If the event is not after the last one
        """
        async with self._lock_for(event.registry_id):
            try:
                async with self.store.unit_of_work() as uow:
                    await uow.claim_event(event)

                    lookup = await uow.load_state(event.registry_id)
                    if isinstance(lookup, Absent):
                        logger.info(
                            f"[Aggregation] Initializing {event.registry_type.value} "
                            f"registry {event.registry_id}"
                        )
                        state = await uow.create_state(
                            event.registry_id, event.registry_type
                        )
                    else:
                        state = lookup

                    counters = self._next_counters(state, event)

                    await uow.save_state(event, counters)
                    await uow.append_snapshot(event, counters)
            except DuplicateEventError:
                logger.debug(f"[Aggregation] Skipping duplicate event {event.event_id}")
                return ApplyResult.DUPLICATE

        logger.debug(
            f"[Aggregation] {event.kind.value} {event.event_id} -> "
            f"{event.registry_id} {counters.as_dict()}"
        )
        return ApplyResult.APPLIED

    async def apply_many(self, events: list[RegistryEvent]) -> dict[str, int]:
        """
        Apply events sequentially in the given order.

        Returns:
            Dict with applied / duplicate counts
        """
        results = {"applied": 0, "duplicate": 0}
        for event in events:
            outcome = await self.apply(event)
            results[outcome.value] += 1
        return results

    @staticmethod
    def _next_counters(state: Found, event: RegistryEvent) -> RegistryCounters:
        if state.registry_type != event.registry_type:
            raise InvalidTransitionError(
                f"Registry {event.registry_id} is {state.registry_type.value}, "
                f"got {event.registry_type.value} event"
            )

        if state.last_position is not None and event.position <= state.last_position:
            raise OutOfOrderEventError(event, state.last_position)

        counters = apply_transition(state.counters, event.registry_type, event.kind)

        if counters.total_active < 0:
            # Chain history is authoritative; the projection keeps going
            logger.warning(
                f"[Aggregation] Registry {event.registry_id} active count "
                f"dropped to {counters.total_active} at {event.event_id}"
            )
        return counters
