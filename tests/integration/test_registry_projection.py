"""Integration tests: raw chain logs projected into registry stats."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from hexbytes import HexBytes

from indexsync.models.enums import RegistryType
from indexsync.services.aggregation.engine import AggregationEngine
from indexsync.services.aggregation.log_decoder import event_topic
from indexsync.services.aggregation.log_source import RegistryLogSource
from indexsync.services.aggregation.projection_runner import ProjectionRunner
from indexsync.services.aggregation.store import InMemoryAggregateStore
from indexsync.services.indexer.pointer import InMemoryIndexedBlockPointer
from tests.helpers import make_hash


ISSUERS = "0x1111111111111111111111111111111111111111"
CLAIMS = "0x2222222222222222222222222222222222222222"

ADDED = event_topic("TrustedIssuerAdded(address,address,uint256[])")
REMOVED = event_topic("TrustedIssuerRemoved(address,address)")
CLAIM_ADDED = event_topic("ClaimAdded(bytes32,uint256,uint256,address,bytes,bytes,string)")
CLAIM_REVOKED = event_topic("ClaimRevoked(bytes)")


def log(address, topic, block, index, tx):
    return {
        "address": address,
        "topics": [HexBytes(topic)],
        "blockNumber": block,
        "logIndex": index,
        "transactionHash": HexBytes(make_hash(tx)),
        "removed": False,
    }


@pytest.fixture
def chain_logs():
    return [
        log(ISSUERS, ADDED, 101, 0, 1),
        log(CLAIMS, CLAIM_ADDED, 101, 1, 1),
        log(ISSUERS, ADDED, 102, 3, 2),
        log(CLAIMS, CLAIM_ADDED, 103, 0, 3),
        log(CLAIMS, CLAIM_REVOKED, 104, 0, 4),
        log(ISSUERS, REMOVED, 104, 1, 4),
    ]


@pytest.fixture
def web3(chain_logs):
    mock = MagicMock()
    mock.eth = MagicMock()
    mock.eth.get_logs = AsyncMock(
        side_effect=lambda f: [
            entry for entry in chain_logs
            if f["fromBlock"] <= entry["blockNumber"] <= f["toBlock"]
        ]
    )
    mock.eth.get_block = AsyncMock(
        side_effect=lambda number: {"timestamp": 1_760_000_000 + number * 12}
    )
    block_number = AsyncMock(return_value=110)
    type(mock.eth).block_number = property(lambda self: block_number())
    return mock


class TestRegistryProjection:
    """Chain logs to counters through the full projection path."""

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_full_projection(self, web3):
        store = InMemoryAggregateStore()
        pointer = InMemoryIndexedBlockPointer(start_block=100)
        source = RegistryLogSource(web3, [ISSUERS, CLAIMS])
        runner = ProjectionRunner(
            AggregationEngine(store), pointer, source, chunk_size=3
        )

        result = await runner.run_once()

        assert result["events_applied"] == 6
        assert await pointer.get_indexed_block() == 110

        issuers = store.get_state(ISSUERS)
        assert issuers.registry_type is RegistryType.TRUSTED_ISSUER
        assert issuers.counters.as_dict() == {
            "total_added": 2,
            "total_active": 1,
            "total_removed": 1,
            "total_revoked": 0,
        }

        claims = store.get_state(CLAIMS)
        assert claims.counters.total_revoked == 1
        assert claims.counters.total_active == 1

        snapshots = store.list_snapshots(ISSUERS)
        assert [s.block_number for s in snapshots] == [101, 102, 104]
        assert snapshots[0].timestamp == datetime.fromtimestamp(
            1_760_000_000 + 101 * 12, UTC
        )

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_rerun_is_idempotent(self, web3):
        """Projecting the same range twice changes nothing."""
        store = InMemoryAggregateStore()
        engine = AggregationEngine(store)
        source = RegistryLogSource(web3, [ISSUERS, CLAIMS])

        first = ProjectionRunner(engine, InMemoryIndexedBlockPointer(100), source)
        await first.run_once()
        replay = ProjectionRunner(engine, InMemoryIndexedBlockPointer(100), source)
        result = await replay.run_once()

        assert result["events_applied"] == 0
        assert len(store.list_snapshots(ISSUERS)) == 3
