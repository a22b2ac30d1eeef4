"""
Log fetcher.

Fetches contract logs for a bounded block range. Ranges the provider
rejects as too large are bisected; any other failure is returned to the
caller, which decides whether to stop the cycle.
"""

from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from app.config.constants import LOG_RANGE_LIMIT_MARKERS
from app.services.blockchain.chain_client import ChainClient


@dataclass
class LogFetchResult:
    """Logs of a block range, or the error that prevented fetching them."""

    logs: list[Any] = field(default_factory=list)
    error: Exception | None = None
    requests: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


def is_range_limit_error(error: Exception) -> bool:
    """Check whether the provider rejected the range as too large."""
    message = str(error).lower()
    return any(marker in message for marker in LOG_RANGE_LIMIT_MARKERS)


def _sort_key(log: Any) -> tuple[int, int]:
    return (int(log["blockNumber"]), int(log["logIndex"]))


async def _fetch_range(
    client: ChainClient,
    addresses: list[str],
    from_block: int,
    to_block: int,
    result: LogFetchResult,
) -> list[Any]:
    result.requests += 1
    try:
        return await client.get_logs(addresses, from_block, to_block)
    except Exception as e:
        if not is_range_limit_error(e) or from_block >= to_block:
            raise

    mid = (from_block + to_block) // 2
    logger.debug(
        f"[Fetcher] {client.name}: range {from_block}-{to_block} too large, "
        f"splitting at {mid}"
    )
    left = await _fetch_range(client, addresses, from_block, mid, result)
    right = await _fetch_range(client, addresses, mid + 1, to_block, result)
    return left + right


async def fetch_logs(
    client: ChainClient,
    addresses: list[str],
    from_block: int,
    to_block: int,
) -> LogFetchResult:
    """
    Fetch logs emitted by `addresses` in [from_block, to_block].

    Args:
        client: Chain client
        addresses: Contract addresses to filter on
        from_block: First block (inclusive)
        to_block: Last block (inclusive)

    Returns:
        LogFetchResult with logs sorted by (block number, log index) and
        provider-removed logs dropped, or with `error` set and no logs
    """
    result = LogFetchResult()
    if not addresses or from_block > to_block:
        return result

    try:
        logs = await _fetch_range(client, addresses, from_block, to_block, result)
    except Exception as e:
        logger.error(
            f"[Fetcher] {client.name}: eth_getLogs {from_block}-{to_block} "
            f"failed: {e}"
        )
        result.error = e
        return result

    kept = [log for log in logs if not log.get("removed", False)]
    dropped = len(logs) - len(kept)
    if dropped:
        logger.warning(
            f"[Fetcher] {client.name}: dropped {dropped} removed logs "
            f"in {from_block}-{to_block}"
        )

    result.logs = sorted(kept, key=_sort_key)
    return result
