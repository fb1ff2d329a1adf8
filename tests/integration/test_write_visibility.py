"""Integration tests: a write becomes visible to reads once the facade returns."""

import asyncio

import pytest

from indexsync.models.enums import RegistryEventKind
from indexsync.services.aggregation.engine import AggregationEngine
from indexsync.services.aggregation.projection_runner import ProjectionRunner
from indexsync.services.aggregation.store import Found, InMemoryAggregateStore
from indexsync.services.chain.receipt_waiter import ReceiptWaiter
from indexsync.services.consistency.facade import ConsistencyFacade, TrackingStatus
from indexsync.services.consistency.messages import TransactionTrackingMessages
from indexsync.services.indexer.indexing_waiter import IndexingWaiter
from indexsync.services.indexer.pointer import InMemoryIndexedBlockPointer
from indexsync.utils.exceptions import IndexingTimeout, RevertedTransaction
from tests.helpers import (
    ScriptedChainClient,
    make_address,
    make_event,
    make_hash,
    reverted_receipt,
    success_receipt,
)


@pytest.fixture
def pointer():
    return InMemoryIndexedBlockPointer(start_block=10)


@pytest.fixture
def store():
    return InMemoryAggregateStore()


@pytest.fixture
def runner(store, pointer):
    return ProjectionRunner(AggregationEngine(store), pointer)


def build_facade(chain_client, pointer, timeout=2.0):
    return ConsistencyFacade(
        ReceiptWaiter(chain_client, timeout=timeout, interval=0.02),
        IndexingWaiter(pointer, timeout=timeout, interval=0.02),
    )


class TestWriteVisibility:
    """End-to-end read-after-write with the local projection."""

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_read_after_write(self, store, pointer, runner):
        """After await_write_visible, the registry reflects the write."""
        tx = make_hash(500)
        chain = ScriptedChainClient({tx: [None, None, success_receipt(tx, 12)]})
        facade = build_facade(chain, pointer)

        async def project_later():
            await asyncio.sleep(0.1)
            await runner.process_block(11, [])
            await asyncio.sleep(0.05)
            await runner.process_block(
                12, [make_event(RegistryEventKind.ADDED, 12, 0, tx=500)]
            )

        projector = asyncio.create_task(project_later())
        indexed = await facade.await_write_visible([tx])
        await projector

        assert indexed >= 12
        state = store.get_state(make_address(1))
        assert isinstance(state, Found)
        assert state.counters.total_active == 1

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_multi_transaction_write_waits_for_last_block(self, pointer, runner):
        """A write spanning blocks is visible only once its last block is indexed."""
        tx1, tx2 = make_hash(1), make_hash(2)
        chain = ScriptedChainClient({
            tx1: [success_receipt(tx1, 11)],
            tx2: [None, success_receipt(tx2, 13)],
        })
        facade = build_facade(chain, pointer)

        async def project_later():
            for block in (11, 12, 13):
                await asyncio.sleep(0.03)
                await runner.process_block(block, [])

        projector = asyncio.create_task(project_later())
        indexed = await facade.await_write_visible([tx1, tx2])
        await projector

        assert indexed == 13

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_revert_reported_without_indexing(self, pointer):
        tx = make_hash(7)
        chain = ScriptedChainClient({tx: [reverted_receipt(tx, 12, "Only agent")]})
        facade = build_facade(chain, pointer)

        with pytest.raises(RevertedTransaction):
            await facade.await_write_visible([tx])

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_stalled_projection_times_out(self, pointer):
        tx = make_hash(8)
        chain = ScriptedChainClient({tx: [success_receipt(tx, 50)]})
        facade = build_facade(chain, pointer, timeout=0.2)

        with pytest.raises(IndexingTimeout) as exc_info:
            await facade.await_write_visible([tx])

        assert exc_info.value.target_block == 50
        assert exc_info.value.last_indexed_block == 10

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_track_write_progress(self, pointer, runner):
        tx = make_hash(9)
        chain = ScriptedChainClient({tx: [success_receipt(tx, 11)]})
        facade = build_facade(chain, pointer)
        await runner.process_block(11, [])

        events = [event async for event in facade.track_write([tx])]

        assert [e.status for e in events] == [
            TrackingStatus.PENDING,
            TrackingStatus.PENDING,
            TrackingStatus.CONFIRMED,
        ]
        assert events[-1].indexed_block == 11

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_custom_error_revert_shows_failed_message(self, pointer):
        """A bare custom error selector is not shown to the user."""
        tx = make_hash(10)
        chain = ScriptedChainClient(
            {tx: [reverted_receipt(tx, 12, "Custom error 0xdeadbeef")]}
        )
        facade = build_facade(chain, pointer)
        messages = TransactionTrackingMessages(transaction_failed="Write failed")

        events = [event async for event in facade.track_write([tx], messages)]

        assert events[-1].status is TrackingStatus.FAILED
        assert events[-1].message == "Write failed"
        assert events[-1].error.reason == "Custom error 0xdeadbeef"
