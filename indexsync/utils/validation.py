"""
Input validation utilities.

Format checks for hashes and addresses handed to the waiters and the
projection engine.
"""


def validate_transaction_hash(tx_hash: str) -> bool:
    """
    Validate transaction hash.

    Args:
        tx_hash: Transaction hash

    Returns:
        True if valid
    """
    if not tx_hash or not isinstance(tx_hash, str):
        return False

    # Must start with 0x and be 66 chars (0x + 64 hex chars)
    if not tx_hash.startswith("0x") or len(tx_hash) != 66:
        return False

    # Validate hex
    try:
        int(tx_hash[2:], 16)
        return True
    except ValueError:
        return False


def normalize_transaction_hash(tx_hash: str) -> str:
    """
    Normalize hash to lowercase 0x-prefixed form.

    Args:
        tx_hash: Transaction hash (with or without 0x prefix)

    Returns:
        Normalized hash

    Raises:
        ValueError: If the hash is malformed
    """
    normalized = tx_hash.strip().lower() if isinstance(tx_hash, str) else ""
    if normalized and not normalized.startswith("0x"):
        normalized = f"0x{normalized}"

    if not validate_transaction_hash(normalized):
        raise ValueError(f"Invalid transaction hash: {tx_hash!r}")
    return normalized


def validate_address(address: str) -> bool:
    """
    Validate EVM address format (checksum not enforced).

    Args:
        address: Address to validate

    Returns:
        True if valid
    """
    if not address or not isinstance(address, str):
        return False

    if not address.startswith("0x") or len(address) != 42:
        return False

    try:
        int(address[2:], 16)
        return True
    except ValueError:
        return False


def normalize_registry_id(registry_id: str) -> str:
    """
    Normalize a registry identifier.

    Addresses are lowercased; any other opaque id is kept as is.

    Args:
        registry_id: Registry address or id

    Returns:
        Normalized identifier

    Raises:
        ValueError: If the identifier is empty
    """
    if not registry_id or not isinstance(registry_id, str):
        raise ValueError("Registry id must be a non-empty string")
    stripped = registry_id.strip()
    if stripped.lower().startswith("0x"):
        return stripped.lower()
    return stripped
