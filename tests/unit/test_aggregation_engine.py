"""Unit tests for the aggregation engine."""

import asyncio

import pytest

from indexsync.models.enums import RegistryEventKind, RegistryType
from indexsync.services.aggregation.engine import (
    AggregationEngine,
    ApplyResult,
    OutOfOrderEventError,
)
from indexsync.services.aggregation.events import RegistryCounters
from indexsync.services.aggregation.store import Absent, Found, InMemoryAggregateStore
from indexsync.services.aggregation.transitions import InvalidTransitionError
from tests.helpers import make_address, make_event


ADDED = RegistryEventKind.ADDED
REMOVED = RegistryEventKind.REMOVED
REVOKED = RegistryEventKind.REVOKED


class TestApply:
    """Tests for AggregationEngine.apply."""

    @pytest.mark.asyncio
    async def test_first_event_initializes_registry(self, aggregation_engine, memory_store):
        """A registry without state starts from zero counters."""
        assert isinstance(memory_store.get_state(make_address(1)), Absent)

        result = await aggregation_engine.apply(make_event(ADDED, 10, 0))

        assert result is ApplyResult.APPLIED
        state = memory_store.get_state(make_address(1))
        assert isinstance(state, Found)
        assert state.counters == RegistryCounters(1, 1, 0, 0)
        assert state.last_position == (10, 0)

    @pytest.mark.asyncio
    async def test_added_added_removed_sequence(self, aggregation_engine, memory_store):
        """Each applied event appends one snapshot with the new totals."""
        for event in [
            make_event(ADDED, 10, 0),
            make_event(ADDED, 10, 1),
            make_event(REMOVED, 11, 0),
        ]:
            await aggregation_engine.apply(event)

        snapshots = memory_store.list_snapshots(make_address(1))
        assert [s.counters.total_active for s in snapshots] == [1, 2, 1]
        assert snapshots[-1].counters == RegistryCounters(2, 1, 1, 0)
        assert all(s.counters.is_consistent for s in snapshots)

    @pytest.mark.asyncio
    async def test_duplicate_event_is_noop(self, aggregation_engine, memory_store):
        """Re-delivering an event changes nothing."""
        event = make_event(ADDED, 10, 0)

        assert await aggregation_engine.apply(event) is ApplyResult.APPLIED
        assert await aggregation_engine.apply(event) is ApplyResult.DUPLICATE

        assert memory_store.get_state(event.registry_id).counters.total_added == 1
        assert len(memory_store.list_snapshots(event.registry_id)) == 1

    @pytest.mark.asyncio
    async def test_out_of_order_event_rejected(self, aggregation_engine, memory_store):
        """A new event positioned before the last applied one is refused."""
        await aggregation_engine.apply(make_event(ADDED, 20, 3))

        with pytest.raises(OutOfOrderEventError):
            await aggregation_engine.apply(make_event(ADDED, 20, 1))

        # Nothing of the rejected event was committed
        assert memory_store.get_state(make_address(1)).counters.total_added == 1
        assert len(memory_store.processed) == 1

    @pytest.mark.asyncio
    async def test_revoke_only_for_identity_claims(self, aggregation_engine):
        """Revocation is undefined for membership registries."""
        with pytest.raises(InvalidTransitionError):
            await aggregation_engine.apply(
                make_event(REVOKED, 5, 0, registry_type=RegistryType.TRUSTED_ISSUER)
            )

    @pytest.mark.asyncio
    async def test_claim_revocation(self, aggregation_engine, memory_store):
        claims = RegistryType.IDENTITY_CLAIM
        await aggregation_engine.apply(make_event(ADDED, 5, 0, registry_type=claims))
        await aggregation_engine.apply(make_event(ADDED, 5, 1, registry_type=claims))
        await aggregation_engine.apply(make_event(REVOKED, 6, 0, registry_type=claims))

        state = memory_store.get_state(make_address(1))
        assert state.counters == RegistryCounters(2, 1, 0, 1)
        assert state.counters.is_consistent

    @pytest.mark.asyncio
    async def test_registry_type_cannot_change(self, aggregation_engine):
        await aggregation_engine.apply(make_event(ADDED, 5, 0))

        with pytest.raises(InvalidTransitionError):
            await aggregation_engine.apply(
                make_event(ADDED, 6, 0, registry_type=RegistryType.COMPLIANCE_MODULE)
            )

    @pytest.mark.asyncio
    async def test_remove_below_zero_still_applied(self, aggregation_engine, memory_store):
        """History is applied as emitted even if it drives active negative."""
        await aggregation_engine.apply(make_event(REMOVED, 5, 0))

        counters = memory_store.get_state(make_address(1)).counters
        assert counters.total_active == -1
        assert counters.is_consistent


class TestConcurrency:
    """Tests for concurrent application."""

    @pytest.mark.asyncio
    async def test_registries_processed_in_parallel(self, aggregation_engine, memory_store):
        """Different registries never interfere."""
        events = [
            make_event(ADDED, 10 + i, 0, registry=r, tx=r * 1000 + i)
            for r in range(1, 6)
            for i in range(5)
        ]

        async def feed(registry):
            for event in [e for e in events if e.registry_id == make_address(registry)]:
                await aggregation_engine.apply(event)

        await asyncio.gather(*(feed(r) for r in range(1, 6)))

        for registry in range(1, 6):
            state = memory_store.get_state(make_address(registry))
            assert state.counters.total_added == 5
            assert len(memory_store.list_snapshots(make_address(registry))) == 5

    @pytest.mark.asyncio
    async def test_concurrent_duplicates_applied_once(self, aggregation_engine, memory_store):
        """The same event delivered concurrently is applied exactly once."""
        event = make_event(ADDED, 10, 0)

        results = await asyncio.gather(*(aggregation_engine.apply(event) for _ in range(10)))

        assert results.count(ApplyResult.APPLIED) == 1
        assert results.count(ApplyResult.DUPLICATE) == 9
        assert memory_store.get_state(event.registry_id).counters.total_active == 1

    @pytest.mark.asyncio
    async def test_apply_many_counts(self, memory_store):
        engine = AggregationEngine(memory_store)
        first = make_event(ADDED, 10, 0)

        result = await engine.apply_many([first, first, make_event(ADDED, 11, 0)])

        assert result == {"applied": 2, "duplicate": 1}


class TestInMemoryStore:
    """Tests for atomicity of the in-memory store."""

    @pytest.mark.asyncio
    async def test_failed_unit_of_work_leaves_no_trace(self):
        store = InMemoryAggregateStore()
        event = make_event(ADDED, 1, 0)

        with pytest.raises(RuntimeError):
            async with store.unit_of_work() as uow:
                await uow.claim_event(event)
                await uow.create_state(event.registry_id, event.registry_type)
                raise RuntimeError("crash before commit")

        assert store.processed == set()
        assert isinstance(store.get_state(event.registry_id), Absent)
