"""
Registry transition table.

| kind                | effect                                  |
|---------------------|-----------------------------------------|
| ADDED / REGISTERED  | total_added += 1; total_active += 1     |
| REMOVED             | total_active -= 1; total_removed += 1   |
| REVOKED             | total_active -= 1; total_revoked += 1   |

Revocation exists only for identity claims.
"""

from collections.abc import Callable

from indexsync.models.enums import RegistryEventKind, RegistryType
from indexsync.services.aggregation.events import RegistryCounters


class InvalidTransitionError(ValueError):
    """The event kind is not defined for the registry type."""

    pass


TRANSITIONS: dict[RegistryEventKind, Callable[[RegistryCounters], RegistryCounters]] = {
    RegistryEventKind.ADDED: RegistryCounters.added,
    RegistryEventKind.REGISTERED: RegistryCounters.added,
    RegistryEventKind.REMOVED: RegistryCounters.removed,
    RegistryEventKind.REVOKED: RegistryCounters.revoked,
}

_MEMBERSHIP = frozenset({
    RegistryEventKind.ADDED,
    RegistryEventKind.REGISTERED,
    RegistryEventKind.REMOVED,
})

ALLOWED_KINDS: dict[RegistryType, frozenset[RegistryEventKind]] = {
    RegistryType.TOPIC_SCHEME: _MEMBERSHIP,
    RegistryType.TRUSTED_ISSUER: _MEMBERSHIP,
    RegistryType.COMPLIANCE_MODULE: _MEMBERSHIP,
    RegistryType.IDENTITY_CLAIM: _MEMBERSHIP | {RegistryEventKind.REVOKED},
}


def apply_transition(
    counters: RegistryCounters,
    registry_type: RegistryType,
    kind: RegistryEventKind,
) -> RegistryCounters:
    """
    Compute counters after one event.

    Args:
        counters: Counters before the event
        registry_type: Registry domain
        kind: Event kind

    Returns:
        New counters

    Raises:
        InvalidTransitionError: If kind is not allowed for registry_type
    """
    if kind not in ALLOWED_KINDS[registry_type]:
        raise InvalidTransitionError(
            f"{kind.value} events are not defined for {registry_type.value} registries"
        )
    return TRANSITIONS[kind](counters)
