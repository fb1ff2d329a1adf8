"""
Enumerations shared by models and services.
"""

from enum import StrEnum


class RegistryType(StrEnum):
    """Logical registry domains projected into stats."""

    TOPIC_SCHEME = "topic_scheme"
    TRUSTED_ISSUER = "trusted_issuer"
    COMPLIANCE_MODULE = "compliance_module"
    IDENTITY_CLAIM = "identity_claim"


class RegistryEventKind(StrEnum):
    """State-changing registry event kinds."""

    ADDED = "added"
    REGISTERED = "registered"
    REMOVED = "removed"
    REVOKED = "revoked"


class ReceiptStatus(StrEnum):
    """Terminal outcome of a mined transaction."""

    SUCCESS = "Success"
    REVERTED = "Reverted"
