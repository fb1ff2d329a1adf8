"""
Best-effort revert reason decoding.

Revert data is only a diagnostic: decoding may fail or the node may not
return data at all, so every function here returns None rather than raising.
"""

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from eth_utils import to_bytes

from indexsync.config.constants import ERROR_STRING_SELECTOR, PANIC_SELECTOR


# Solidity panic codes
PANIC_REASONS = {
    0x00: "generic compiler panic",
    0x01: "assertion failed",
    0x11: "arithmetic overflow or underflow",
    0x12: "division or modulo by zero",
    0x21: "invalid enum value",
    0x22: "invalid storage byte array encoding",
    0x31: "pop on empty array",
    0x32: "array index out of bounds",
    0x41: "out of memory",
    0x51: "call to zero-initialized function",
}

_NODE_PREFIXES = ("execution reverted: ", "execution reverted:", "VM Exception while processing transaction: revert ")
CUSTOM_ERROR_PREFIX = "Custom error "


def _as_bytes(data: str | bytes | None) -> bytes | None:
    if data is None:
        return None
    if isinstance(data, bytes):
        return data
    if not isinstance(data, str) or not data.startswith("0x"):
        return None
    try:
        return to_bytes(hexstr=data)
    except ValueError:
        return None


def decode_revert_data(data: str | bytes | None) -> str | None:
    """
    Decode ABI-encoded revert data.

    Supports Error(string) and Panic(uint256). Custom errors are returned
    as their 4-byte selector.

    Args:
        data: Raw revert data (hex string or bytes)

    Returns:
        Human-readable reason or None if not decodable
    """
    raw = _as_bytes(data)
    if not raw or len(raw) < 4:
        return None

    selector = "0x" + raw[:4].hex()
    payload = raw[4:]

    try:
        if selector == ERROR_STRING_SELECTOR:
            (reason,) = decode(["string"], payload)
            return reason or None
        if selector == PANIC_SELECTOR:
            (code,) = decode(["uint256"], payload)
            description = PANIC_REASONS.get(code, "unknown panic")
            return f"Panic(0x{code:02x}): {description}"
    except (DecodingError, OverflowError, ValueError):
        return None

    return f"{CUSTOM_ERROR_PREFIX}{selector}"


def is_decoded_reason(reason: str | None) -> bool:
    """Check if a revert reason is readable text rather than a bare selector."""
    return bool(reason) and not reason.startswith(CUSTOM_ERROR_PREFIX)


def clean_node_message(message: str | None) -> str | None:
    """
    Strip node-specific prefixes from a revert message.

    Args:
        message: Message reported by the RPC node

    Returns:
        Reason text or None if nothing meaningful is left
    """
    if not message or not isinstance(message, str):
        return None

    text = message.strip()
    for prefix in _NODE_PREFIXES:
        if text.startswith(prefix):
            text = text[len(prefix):].strip()
            break

    if not text or text == "execution reverted":
        return None
    return text
