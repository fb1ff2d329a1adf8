"""
Web3 chain client.

Wraps an explicitly constructed AsyncWeb3 instance behind the ChainClient
contract: submission errors become SubmissionError, unavailable reads become
TransientFetchError, and a not-yet-mined transaction is reported as None.
"""

import asyncio
from typing import Any

from loguru import logger
from web3 import AsyncWeb3
from web3.exceptions import (
    ContractLogicError,
    TransactionNotFound,
    Web3Exception,
)

from indexsync.config.constants import BLOCKCHAIN_TIMEOUT
from indexsync.models.enums import ReceiptStatus
from indexsync.services.chain.revert_reason import (
    clean_node_message,
    decode_revert_data,
)
from indexsync.services.chain.types import TransactionReceipt
from indexsync.utils.exceptions import (
    TRANSIENT_FETCH_ERRORS,
    SubmissionError,
    TransientFetchError,
)
from indexsync.utils.validation import normalize_transaction_hash


class Web3ChainClient:
    """
    Chain RPC collaborator backed by AsyncWeb3.

    Features:
    - Raw or dict transaction submission
    - Receipt retrieval with "not mined yet" detection
    - Best-effort revert reason replay
    """

    def __init__(
        self,
        web3: AsyncWeb3,
        request_timeout: float = BLOCKCHAIN_TIMEOUT,
        decode_revert_reasons: bool = True,
    ) -> None:
        """
        Initialize chain client.

        Args:
            web3: AsyncWeb3 instance owned by process bootstrap
            request_timeout: Timeout of a single RPC request in seconds
            decode_revert_reasons: Replay reverted calls to extract a reason
        """
        self.web3 = web3
        self.request_timeout = request_timeout
        self.decode_revert_reasons = decode_revert_reasons

    async def submit_transaction(self, call: Any) -> list[str]:
        """
        Submit a write to the chain.

        Args:
            call: Signed raw transaction (bytes / 0x-hex str), a transaction
                dict for a node-managed account, or a list of those

        Returns:
            Transaction hashes in submission order

        Raises:
            SubmissionError: If the node rejects any transaction
        """
        calls = call if isinstance(call, list) else [call]
        hashes: list[str] = []

        for item in calls:
            try:
                if isinstance(item, (bytes, str)):
                    tx_hash = await asyncio.wait_for(
                        self.web3.eth.send_raw_transaction(item),
                        timeout=self.request_timeout,
                    )
                elif isinstance(item, dict):
                    tx_hash = await asyncio.wait_for(
                        self.web3.eth.send_transaction(item),
                        timeout=self.request_timeout,
                    )
                else:
                    raise SubmissionError(
                        f"Unsupported transaction payload: {type(item).__name__}"
                    )
            except SubmissionError:
                raise
            except ContractLogicError as e:
                reason = decode_revert_data(e.data) or clean_node_message(e.message)
                raise SubmissionError(
                    f"Transaction rejected by contract: {reason or e}"
                ) from e
            except (*TRANSIENT_FETCH_ERRORS, ValueError) as e:
                raise SubmissionError(f"Transaction submission failed: {e}") from e

            hashes.append(AsyncWeb3.to_hex(tx_hash))
            logger.info(f"[Chain] Submitted transaction {hashes[-1]}")

        return hashes

    async def get_receipt(self, tx_hash: str) -> TransactionReceipt | None:
        """
        Fetch the receipt of a transaction.

        Args:
            tx_hash: Transaction hash

        Returns:
            TransactionReceipt, or None if not mined yet

        Raises:
            TransientFetchError: If the node could not be queried
            ValueError: If the hash is malformed
        """
        normalized = normalize_transaction_hash(tx_hash)

        try:
            receipt = await asyncio.wait_for(
                self.web3.eth.get_transaction_receipt(normalized),
                timeout=self.request_timeout,
            )
        except TransactionNotFound:
            return None
        except TRANSIENT_FETCH_ERRORS as e:
            raise TransientFetchError(
                f"Receipt lookup failed for {normalized}: {e}"
            ) from e

        if receipt is None:
            return None

        block_number = int(receipt["blockNumber"])

        if receipt["status"] == 1:
            return TransactionReceipt(
                tx_hash=normalized,
                status=ReceiptStatus.SUCCESS,
                block_number=block_number,
            )

        reason = None
        if self.decode_revert_reasons:
            reason = await self._replay_revert_reason(normalized, block_number)

        logger.info(
            f"[Chain] Transaction {normalized} reverted in block {block_number}"
            f"{f': {reason}' if reason else ''}"
        )
        return TransactionReceipt(
            tx_hash=normalized,
            status=ReceiptStatus.REVERTED,
            block_number=block_number,
            revert_reason=reason,
        )

    async def _replay_revert_reason(
        self, tx_hash: str, block_number: int
    ) -> str | None:
        """
        Re-execute a reverted transaction as eth_call to recover its reason.

        Diagnostic only: any failure yields None.
        """
        try:
            tx = await asyncio.wait_for(
                self.web3.eth.get_transaction(tx_hash),
                timeout=self.request_timeout,
            )
            call_params = {
                "from": tx["from"],
                "to": tx["to"],
                "data": tx["input"],
                "value": tx.get("value", 0),
                "gas": tx["gas"],
            }
            await asyncio.wait_for(
                self.web3.eth.call(call_params, block_identifier=block_number),
                timeout=self.request_timeout,
            )
        except ContractLogicError as e:
            return decode_revert_data(e.data) or clean_node_message(e.message)
        except (*TRANSIENT_FETCH_ERRORS, KeyError, ValueError) as e:
            logger.debug(f"[Chain] Revert replay failed for {tx_hash}: {e}")
            return None

        # Call succeeded on replay: state changed since the original execution
        return None
