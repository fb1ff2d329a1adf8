"""
Registry log source.

Fetches registry logs for a block range and decodes them in chain order.
"""

import asyncio
from datetime import UTC, datetime

from loguru import logger
from web3 import AsyncWeb3

from indexsync.config.constants import BLOCKCHAIN_TIMEOUT
from indexsync.services.aggregation.events import RegistryEvent
from indexsync.services.aggregation.log_decoder import RegistryLogDecoder
from indexsync.utils.exceptions import TRANSIENT_FETCH_ERRORS, TransientFetchError
from indexsync.utils.validation import validate_address


class RegistryLogSource:
    """eth_getLogs reader for the configured registry contracts."""

    def __init__(
        self,
        web3: AsyncWeb3,
        addresses: list[str],
        decoder: RegistryLogDecoder | None = None,
        request_timeout: float = BLOCKCHAIN_TIMEOUT,
    ) -> None:
        """
        Initialize log source.

        Args:
            web3: AsyncWeb3 instance owned by process bootstrap
            addresses: Registry contract addresses (empty means any emitter)
            decoder: Log decoder
            request_timeout: Timeout of a single RPC request in seconds
        """
        invalid = [a for a in addresses if not validate_address(a)]
        if invalid:
            raise ValueError(f"Invalid registry addresses: {invalid}")

        self.web3 = web3
        self.addresses = [AsyncWeb3.to_checksum_address(a) for a in addresses]
        self.decoder = decoder or RegistryLogDecoder()
        self.request_timeout = request_timeout

    async def get_latest_block(self) -> int:
        """Current chain head."""
        try:
            return await asyncio.wait_for(
                self.web3.eth.block_number, timeout=self.request_timeout
            )
        except TRANSIENT_FETCH_ERRORS as e:
            raise TransientFetchError(f"Block number lookup failed: {e}") from e

    async def fetch_events(self, from_block: int, to_block: int) -> list[RegistryEvent]:
        """
        Fetch and decode registry events in [from_block, to_block].

        Returns:
            Events sorted by (block_number, log_index)

        Raises:
            TransientFetchError: If the node could not be queried
        """
        log_filter: dict = {
            "fromBlock": from_block,
            "toBlock": to_block,
            "topics": [self.decoder.topics()],
        }
        if self.addresses:
            log_filter["address"] = self.addresses

        try:
            logs = await asyncio.wait_for(
                self.web3.eth.get_logs(log_filter), timeout=self.request_timeout
            )
            block_numbers = {int(log["blockNumber"]) for log in logs}
            timestamps = await self._block_timestamps(block_numbers)
        except TRANSIENT_FETCH_ERRORS as e:
            raise TransientFetchError(
                f"Log fetch failed for blocks {from_block}-{to_block}: {e}"
            ) from e

        events = []
        for log in logs:
            event = self.decoder.decode(log, timestamps)
            if event is not None:
                events.append(event)

        events.sort(key=lambda e: e.position)
        if events:
            logger.debug(
                f"[LogSource] {len(events)} registry event(s) in blocks "
                f"{from_block}-{to_block}"
            )
        return events

    async def _block_timestamps(self, block_numbers: set[int]) -> dict[int, datetime]:
        timestamps = {}
        for number in sorted(block_numbers):
            block = await asyncio.wait_for(
                self.web3.eth.get_block(number), timeout=self.request_timeout
            )
            timestamps[number] = datetime.fromtimestamp(int(block["timestamp"]), UTC)
        return timestamps
