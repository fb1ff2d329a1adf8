"""
Indexer status clients.

Answer one question: which block has the indexer fully projected.
"""

import asyncio
from typing import Protocol, runtime_checkable

import aiohttp
from loguru import logger

from indexsync.config.constants import INDEXER_REQUEST_TIMEOUT
from indexsync.utils.exceptions import TransientFetchError


INDEXING_STATUS_QUERY = """
query GetIndexingStatus {
  _meta {
    block {
      number
    }
  }
}
"""


@runtime_checkable
class IndexerStatusClient(Protocol):
    """Indexer status collaborator used by the indexing waiter."""

    async def get_indexed_block(self) -> int:
        """Return the highest fully indexed block."""
        ...


class GraphIndexerStatusClient:
    """
    Reads the indexed block from a GraphQL indexer's ``_meta`` field.

    Reads never go backwards: a lagging replica behind a load balancer
    reporting an older block is clamped to the highest block already seen.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        url: str,
        request_timeout: float = INDEXER_REQUEST_TIMEOUT,
    ) -> None:
        """
        Initialize status client.

        Args:
            session: aiohttp session owned by process bootstrap
            url: GraphQL endpoint of the indexer
            request_timeout: Timeout of one status request in seconds
        """
        self.session = session
        self.url = url
        self.request_timeout = request_timeout
        self._highest_seen = 0

    async def get_indexed_block(self) -> int:
        """
        Query the indexer's progress pointer.

        Returns:
            Highest indexed block number (0 if the indexer reports none)

        Raises:
            TransientFetchError: On HTTP, network, or GraphQL errors
        """
        try:
            async with self.session.post(
                self.url,
                json={"query": INDEXING_STATUS_QUERY, "operationName": "GetIndexingStatus"},
                timeout=aiohttp.ClientTimeout(total=self.request_timeout),
                headers={"Content-Type": "application/json"},
            ) as response:
                if response.status != 200:
                    raise TransientFetchError(
                        f"Indexer status HTTP {response.status}"
                    )
                data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise TransientFetchError(f"Indexer status request failed: {e}") from e

        if data.get("errors"):
            raise TransientFetchError(f"Indexer status query error: {data['errors']}")

        meta = (data.get("data") or {}).get("_meta")
        try:
            block = int(meta["block"]["number"]) if meta else 0
        except (KeyError, TypeError, ValueError) as e:
            raise TransientFetchError(f"Malformed indexer status: {meta!r}") from e

        if block < self._highest_seen:
            logger.debug(
                f"[IndexerStatus] Stale status {block} < {self._highest_seen}, "
                f"keeping highest"
            )
            return self._highest_seen

        self._highest_seen = block
        return block
