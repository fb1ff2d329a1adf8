"""
Registry log decoder.

Maps raw EVM logs to RegistryEvent by topic0. The registry id is the
emitting contract address.
"""

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from loguru import logger
from web3 import Web3

from indexsync.models.enums import RegistryEventKind, RegistryType
from indexsync.services.aggregation.events import RegistryEvent


# Event signature -> (registry type, event kind)
REGISTRY_EVENT_SIGNATURES: dict[str, tuple[RegistryType, RegistryEventKind]] = {
    "TopicSchemeRegistered(address,uint256,string,string)": (
        RegistryType.TOPIC_SCHEME, RegistryEventKind.REGISTERED,
    ),
    "TopicSchemeRemoved(address,uint256,string)": (
        RegistryType.TOPIC_SCHEME, RegistryEventKind.REMOVED,
    ),
    "TrustedIssuerAdded(address,address,uint256[])": (
        RegistryType.TRUSTED_ISSUER, RegistryEventKind.ADDED,
    ),
    "TrustedIssuerRemoved(address,address)": (
        RegistryType.TRUSTED_ISSUER, RegistryEventKind.REMOVED,
    ),
    "GlobalComplianceModuleAdded(address,address,bytes)": (
        RegistryType.COMPLIANCE_MODULE, RegistryEventKind.ADDED,
    ),
    "GlobalComplianceModuleRemoved(address,address)": (
        RegistryType.COMPLIANCE_MODULE, RegistryEventKind.REMOVED,
    ),
    "ClaimAdded(bytes32,uint256,uint256,address,bytes,bytes,string)": (
        RegistryType.IDENTITY_CLAIM, RegistryEventKind.ADDED,
    ),
    "ClaimRemoved(bytes32,uint256,uint256,address,bytes,bytes,string)": (
        RegistryType.IDENTITY_CLAIM, RegistryEventKind.REMOVED,
    ),
    "ClaimRevoked(bytes)": (
        RegistryType.IDENTITY_CLAIM, RegistryEventKind.REVOKED,
    ),
}


def event_topic(signature: str) -> str:
    """keccak256 of a canonical event signature as 0x-hex."""
    return Web3.to_hex(Web3.keccak(text=signature))


def _hex(value: Any) -> str:
    if isinstance(value, str):
        return value.lower()
    return Web3.to_hex(value).lower()


def _int(value: Any) -> int:
    if isinstance(value, str):
        return int(value, 16)
    return int(value)


class RegistryLogDecoder:
    """Decodes registry logs into RegistryEvent."""

    def __init__(
        self,
        signatures: Mapping[str, tuple[RegistryType, RegistryEventKind]] | None = None,
    ) -> None:
        """
        Initialize decoder.

        Args:
            signatures: Event signature table (default: registry events)
        """
        signatures = signatures or REGISTRY_EVENT_SIGNATURES
        self._by_topic = {
            event_topic(signature): mapping
            for signature, mapping in signatures.items()
        }

    def topics(self) -> list[str]:
        """All topic0 values the decoder understands."""
        return list(self._by_topic)

    def decode(
        self,
        log: Mapping[str, Any],
        block_timestamps: Mapping[int, datetime],
    ) -> RegistryEvent | None:
        """
        Decode one log.

        Args:
            log: Log entry as returned by eth_getLogs
            block_timestamps: Timestamps of the blocks the logs belong to

        Returns:
            RegistryEvent, or None for logs that are not registry events
            or were removed by a reorg

        Raises:
            KeyError: If the log's block has no timestamp
        """
        if log.get("removed"):
            return None

        topics = log.get("topics") or []
        if not topics:
            return None

        mapping = self._by_topic.get(_hex(topics[0]))
        if mapping is None:
            return None

        registry_type, kind = mapping
        block_number = _int(log["blockNumber"])

        try:
            timestamp = block_timestamps[block_number]
        except KeyError:
            logger.error(f"[LogDecoder] No timestamp for block {block_number}")
            raise

        return RegistryEvent(
            registry_id=_hex(log["address"]),
            registry_type=registry_type,
            kind=kind,
            block_number=block_number,
            log_index=_int(log["logIndex"]),
            tx_hash=_hex(log["transactionHash"]),
            timestamp=timestamp,
        )
