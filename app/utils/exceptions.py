"""
Exception handling utilities.

Defines categorized exception types for proper error handling.
"""

from requests.exceptions import ConnectionError as RequestsConnectionError
from requests.exceptions import Timeout as RequestsTimeout
from sqlalchemy.exc import OperationalError
from web3.exceptions import Web3Exception


class IndexerError(Exception):
    """Base exception for the chain indexer."""
    pass


class UnknownChainError(IndexerError):
    """Raised when a chain id has no configured client."""

    def __init__(self, chain_id: int) -> None:
        self.chain_id = chain_id
        super().__init__(f"Unknown chain: {chain_id}")


class ChainClientError(IndexerError):
    """Raised when a chain client cannot be built or used."""
    pass


class ChainMismatchError(ChainClientError):
    """Raised when an RPC endpoint reports a different chain id."""

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"RPC endpoint serves chain {actual}, expected {expected}"
        )


class EventDecodeError(IndexerError):
    """Raised when a log cannot be decoded against a known ABI."""
    pass


class BlockchainTimeoutError(IndexerError):
    """Raised when blockchain RPC call times out."""
    pass


class BlockchainError(IndexerError):
    """Raised when a blockchain RPC call keeps failing."""
    pass


# Exception categories based on handling strategy

# Transient - log, give up for this cycle, retry next poll
TRANSIENT_ERRORS = (
    BlockchainTimeoutError,
    BlockchainError,
    Web3Exception,           # RPC errors
    RequestsConnectionError,  # Provider unreachable
    RequestsTimeout,
    TimeoutError,
    OperationalError,        # Database connection errors
)


def is_transient(exc: BaseException) -> bool:
    """
    Check if exception is a transient infrastructure failure.

    Args:
        exc: Exception to check

    Returns:
        True if the operation may succeed on the next cycle
    """
    return isinstance(exc, TRANSIENT_ERRORS)
