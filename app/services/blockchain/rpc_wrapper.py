"""
RPC Wrapper with Timeout and Retry Logic.

Provides centralized timeout and retry functionality for all blockchain RPC calls.
"""

import asyncio
from collections.abc import Callable
from typing import Any, TypeVar

from loguru import logger

from app.config.constants import BLOCKCHAIN_TIMEOUT
from app.utils.exceptions import (
    BlockchainError,
    BlockchainTimeoutError,
    is_transient,
)

T = TypeVar("T")

__all__ = [
    "BlockchainError",
    "BlockchainTimeoutError",
    "rpc_call_with_retry",
    "with_timeout",
]


async def with_timeout(
    coro: Any,
    timeout: float = BLOCKCHAIN_TIMEOUT,
    operation_name: str = "RPC call",
) -> Any:
    """
    Execute async coroutine with timeout.

    Args:
        coro: Coroutine to execute
        timeout: Timeout in seconds (default: BLOCKCHAIN_TIMEOUT)
        operation_name: Operation name for logging

    Returns:
        Result of the coroutine

    Raises:
        BlockchainTimeoutError: If operation times out
    """
    try:
        return await asyncio.wait_for(coro, timeout=timeout)
    except TimeoutError as e:
        error_msg = f"{operation_name} timed out after {timeout}s"
        logger.error(error_msg)
        raise BlockchainTimeoutError(error_msg) from e


async def rpc_call_with_retry(
    coro_factory: Callable[[], Any],
    max_retries: int = 3,
    timeout: float = BLOCKCHAIN_TIMEOUT,
    operation_name: str = "RPC call",
    backoff_base: float = 1.0,
) -> Any:
    """
    Execute RPC call with retry logic and timeout.

    Only transient failures (timeouts, provider/connection errors) are
    retried; anything else is raised immediately.

    Args:
        coro_factory: Factory function that returns a coroutine
        max_retries: Maximum number of attempts
        timeout: Timeout per attempt in seconds
        operation_name: Operation name for logging
        backoff_base: First retry delay, doubled on each attempt

    Returns:
        Result of the RPC call

    Raises:
        BlockchainTimeoutError: If all attempts time out
        BlockchainError: If all attempts fail with transient errors
    """
    last_error: Exception | None = None

    for attempt in range(max_retries):
        try:
            result = await with_timeout(
                coro_factory(),
                timeout=timeout,
                operation_name=f"{operation_name} (attempt {attempt + 1}/{max_retries})",
            )

            if attempt > 0:
                logger.success(
                    f"{operation_name} succeeded on attempt {attempt + 1}"
                )

            return result

        except Exception as e:
            if not is_transient(e):
                raise
            last_error = e

            if attempt < max_retries - 1:
                delay = backoff_base * (2 ** attempt)  # 1s, 2s, 4s...
                logger.warning(
                    f"{operation_name} failed on attempt {attempt + 1}/{max_retries}: {e}. "
                    f"Retrying in {delay}s..."
                )
                await asyncio.sleep(delay)
            else:
                logger.error(
                    f"{operation_name} failed after {max_retries} attempts: {e}"
                )

    if isinstance(last_error, BlockchainTimeoutError):
        raise last_error
    raise BlockchainError(
        f"{operation_name} failed after {max_retries} attempts: {last_error}"
    ) from last_error
