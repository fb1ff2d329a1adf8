"""Test doubles and builders shared by unit and integration tests."""

from datetime import UTC, datetime

from indexsync.models.enums import ReceiptStatus, RegistryEventKind, RegistryType
from indexsync.services.aggregation.events import RegistryEvent
from indexsync.services.chain.types import TransactionReceipt


def make_hash(n: int) -> str:
    """Deterministic 0x-prefixed 32-byte hash."""
    return f"0x{n:064x}"


def make_address(n: int) -> str:
    """Deterministic lowercase 20-byte address."""
    return f"0x{n:040x}"


def make_event(
    kind: RegistryEventKind = RegistryEventKind.ADDED,
    block_number: int = 100,
    log_index: int = 0,
    registry: int = 1,
    registry_type: RegistryType = RegistryType.TRUSTED_ISSUER,
    tx: int | None = None,
) -> RegistryEvent:
    """Build a registry event with sensible defaults."""
    return RegistryEvent(
        registry_id=make_address(registry),
        registry_type=registry_type,
        kind=kind,
        block_number=block_number,
        log_index=log_index,
        tx_hash=make_hash(tx if tx is not None else block_number * 1000 + log_index),
        timestamp=datetime(2026, 1, 1, tzinfo=UTC),
    )


def success_receipt(tx_hash: str, block_number: int) -> TransactionReceipt:
    return TransactionReceipt(tx_hash, ReceiptStatus.SUCCESS, block_number)


def reverted_receipt(
    tx_hash: str, block_number: int, reason: str | None = None
) -> TransactionReceipt:
    return TransactionReceipt(tx_hash, ReceiptStatus.REVERTED, block_number, reason)


class ScriptedChainClient:
    """
    Chain client returning scripted receipt lookups per hash.

    Each script is a list of receipts, None (not mined) or exceptions;
    the last entry repeats once the script is exhausted.
    """

    def __init__(self, scripts: dict[str, list]) -> None:
        self.scripts = scripts
        self.calls: dict[str, int] = {h: 0 for h in scripts}

    async def submit_transaction(self, call):
        return list(self.scripts)

    async def get_receipt(self, tx_hash: str):
        script = self.scripts.get(tx_hash, [None])
        index = min(self.calls.get(tx_hash, 0), len(script) - 1)
        self.calls[tx_hash] = self.calls.get(tx_hash, 0) + 1
        step = script[index]
        if isinstance(step, BaseException):
            raise step
        return step


class ScriptedStatusClient:
    """Indexer status client returning scripted blocks or raising errors."""

    def __init__(self, script: list) -> None:
        self.script = script
        self.calls = 0

    async def get_indexed_block(self) -> int:
        step = self.script[min(self.calls, len(self.script) - 1)]
        self.calls += 1
        if isinstance(step, BaseException):
            raise step
        return step


