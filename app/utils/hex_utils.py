"""
Hex normalization helpers.

Every address and hash written to the database goes through these so
rows compare equal regardless of checksum casing or bytes/str input.
"""

from typing import Any

from hexbytes import HexBytes
from web3 import Web3


def to_hex(value: Any) -> str:
    """
    Convert bytes / HexBytes / hex string to lowercase 0x-prefixed hex.

    Args:
        value: Raw value from web3 or a stored string

    Returns:
        Lowercase hex string with 0x prefix
    """
    if isinstance(value, (bytes, bytearray, HexBytes)):
        return Web3.to_hex(value).lower()
    if isinstance(value, str):
        value = value.lower()
        return value if value.startswith("0x") else f"0x{value}"
    raise TypeError(f"Cannot convert {type(value).__name__} to hex")


def normalize_address(address: str | None) -> str | None:
    """Lowercase an address, keeping None as None."""
    if address is None:
        return None
    return to_hex(address)


def to_json_safe(value: Any) -> Any:
    """
    Make decoded ABI values JSON-serializable.

    Bytes become lowercase hex, strings (addresses) are lowercased,
    ints stay ints, containers are converted recursively.
    """
    if isinstance(value, (bytes, bytearray, HexBytes)):
        return to_hex(value)
    if isinstance(value, bool) or isinstance(value, int):
        return value
    if isinstance(value, str):
        return value.lower() if value.startswith("0x") else value
    if isinstance(value, dict):
        return {k: to_json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_safe(v) for v in value]
    return value
