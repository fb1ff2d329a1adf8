"""
Process bootstrap.

Builds every collaborator once per process (or once per worker event
loop) and wires them explicitly. Nothing below this module creates its
own engine, web3 instance or HTTP session.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import aiohttp
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from web3 import AsyncHTTPProvider, AsyncWeb3

from indexsync.config.constants import BLOCKCHAIN_TIMEOUT
from indexsync.config.database import create_engine, create_session_maker
from indexsync.config.settings import Settings, settings
from indexsync.services.aggregation.engine import AggregationEngine
from indexsync.services.aggregation.log_source import RegistryLogSource
from indexsync.services.aggregation.projection_runner import ProjectionRunner
from indexsync.services.aggregation.store import SqlAlchemyAggregateStore
from indexsync.services.chain.client import Web3ChainClient
from indexsync.services.chain.receipt_waiter import ReceiptWaiter
from indexsync.services.consistency.facade import ConsistencyFacade
from indexsync.services.indexer.indexing_waiter import IndexingWaiter
from indexsync.services.indexer.pointer import SqlIndexedBlockPointer
from indexsync.services.indexer.status_client import (
    GraphIndexerStatusClient,
    IndexerStatusClient,
)


@dataclass
class Container:
    """Wired collaborators of one process."""

    settings: Settings
    db_engine: AsyncEngine
    session_maker: async_sessionmaker[AsyncSession]
    web3: AsyncWeb3
    http_session: aiohttp.ClientSession
    chain_client: Web3ChainClient
    pointer: SqlIndexedBlockPointer
    status_client: IndexerStatusClient
    receipt_waiter: ReceiptWaiter
    indexing_waiter: IndexingWaiter
    consistency: ConsistencyFacade
    aggregation_engine: AggregationEngine
    projection_runner: ProjectionRunner

    async def close(self) -> None:
        """Release network and database resources."""
        await self.http_session.close()
        await self.web3.provider.disconnect()
        await self.db_engine.dispose()
        logger.info("[Bootstrap] Container closed")


async def create_container(
    config: Settings | None = None, *, null_pool: bool = False
) -> Container:
    """
    Build the container.

    Must be called inside the event loop that will use it.

    Args:
        config: Settings (default: global settings)
        null_pool: Disable DB pooling (dramatiq workers)

    Returns:
        Container
    """
    config = config or settings

    db_engine = create_engine(config, null_pool=null_pool)
    session_maker = create_session_maker(db_engine)

    web3 = AsyncWeb3(
        AsyncHTTPProvider(config.rpc_url, request_kwargs={"timeout": BLOCKCHAIN_TIMEOUT})
    )
    http_session = aiohttp.ClientSession()

    chain_client = Web3ChainClient(web3)
    pointer = SqlIndexedBlockPointer(session_maker, config.indexer_name)

    status_client: IndexerStatusClient
    if config.indexer_url:
        status_client = GraphIndexerStatusClient(http_session, config.indexer_url)
    else:
        status_client = pointer

    receipt_waiter = ReceiptWaiter(
        chain_client,
        timeout=config.receipt_timeout,
        interval=config.receipt_poll_interval,
    )
    indexing_waiter = IndexingWaiter(
        status_client,
        timeout=config.indexing_timeout,
        interval=config.indexing_poll_interval,
    )

    aggregation_engine = AggregationEngine(SqlAlchemyAggregateStore(session_maker))
    projection_runner = ProjectionRunner(
        aggregation_engine,
        pointer,
        log_source=RegistryLogSource(web3, config.get_registry_addresses()),
        chunk_size=config.projection_chunk_size,
        start_block=config.projection_start_block,
    )

    logger.info(
        f"[Bootstrap] Container ready: indexer="
        f"{'graphql' if config.indexer_url else 'local pointer'}, "
        f"receipt_timeout={config.receipt_timeout}s, "
        f"indexing_timeout={config.indexing_timeout}s"
    )

    return Container(
        settings=config,
        db_engine=db_engine,
        session_maker=session_maker,
        web3=web3,
        http_session=http_session,
        chain_client=chain_client,
        pointer=pointer,
        status_client=status_client,
        receipt_waiter=receipt_waiter,
        indexing_waiter=indexing_waiter,
        consistency=ConsistencyFacade(receipt_waiter, indexing_waiter),
        aggregation_engine=aggregation_engine,
        projection_runner=projection_runner,
    )


@asynccontextmanager
async def lifespan(
    config: Settings | None = None, *, null_pool: bool = False
) -> AsyncIterator[Container]:
    """
    Container scoped to an async block.

    Usage:
        async with lifespan() as container:
            block = await container.consistency.await_write_visible(hashes)
    """
    container = await create_container(config, null_pool=null_pool)
    try:
        yield container
    finally:
        await container.close()
