"""
Security utilities for masking sensitive data in logs.

Provides functions to safely mask:
- Wallet and contract addresses
- Transaction hashes, lock ids and HTLC secrets
- RPC endpoints carrying API keys
"""

from urllib.parse import urlsplit


def mask_address(address: str | None) -> str:
    """
    Mask wallet address for logging: 0x1234...5678

    Args:
        address: Wallet address to mask

    Returns:
        Masked address showing first 6 and last 4 characters

    Examples:
        >>> mask_address("0x1234567890abcdef1234567890abcdef12345678")
        '0x1234...5678'
        >>> mask_address(None)
        '***'
    """
    if not address or len(address) < 10:
        return "***"
    return f"{address[:6]}...{address[-4:]}"


def mask_tx_hash(tx_hash: str | None) -> str:
    """
    Mask transaction hash (or any 32-byte hex value) for logging.

    Args:
        tx_hash: Transaction hash to mask

    Returns:
        Masked hash showing first 10 and last 6 characters

    Examples:
        >>> mask_tx_hash("0x1234567890abcdef1234567890abcdef1234567890abcdef1234567890abcdef")
        '0x12345678...abcdef'
    """
    if not tx_hash or len(tx_hash) < 16:
        return "***"
    return f"{tx_hash[:10]}...{tx_hash[-6:]}"


def mask_secret(secret: str | None) -> str:
    """
    Mask a revealed HTLC preimage.

    Secrets are public once claimed on-chain, but logs only need to
    show that one was found.
    """
    return "***SECRET***" if secret else "***"


def mask_rpc_url(url: str | None) -> str:
    """
    Strip path and query from an RPC URL (they often carry API keys).

    Examples:
        >>> mask_rpc_url("https://eth-sepolia.g.alchemy.com/v2/abc123")
        'https://eth-sepolia.g.alchemy.com/***'
    """
    if not url:
        return "***"
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        return "***"
    host = parts.hostname or parts.netloc
    if parts.path.strip("/") or parts.query:
        return f"{parts.scheme}://{host}/***"
    return f"{parts.scheme}://{host}"
