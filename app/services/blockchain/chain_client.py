"""
Chain client.

Read-only RPC access to one EVM chain. Web3 is synchronous, so every
call runs in a thread pool with an asyncio timeout.
"""

import asyncio
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, TypeVar

from loguru import logger
from web3 import Web3
from web3.exceptions import TransactionNotFound, Web3Exception
from web3.middleware import ExtraDataToPOAMiddleware

from app.config.constants import (
    BLOCKCHAIN_EXECUTOR_TIMEOUT,
    BLOCKCHAIN_LONG_TIMEOUT,
    BLOCKCHAIN_RPC_TIMEOUT,
    RPC_EXECUTOR_MAX_WORKERS,
)
from app.config.settings import ChainConfig
from app.services.blockchain.rpc_wrapper import rpc_call_with_retry, with_timeout
from app.utils.exceptions import ChainMismatchError
from app.utils.hex_utils import to_hex
from app.utils.security import mask_rpc_url

T = TypeVar("T")


@dataclass(frozen=True)
class BlockRef:
    """Block number and hash (lowercase hex)."""

    number: int
    hash: str
    parent_hash: str | None = None
    timestamp: int | None = None

    @classmethod
    def from_block(cls, block: Any) -> "BlockRef":
        """Build from a web3 block AttributeDict."""
        parent = block.get("parentHash")
        return cls(
            number=int(block["number"]),
            hash=to_hex(block["hash"]),
            parent_hash=to_hex(parent) if parent is not None else None,
            timestamp=block.get("timestamp"),
        )


class ChainClient:
    """
    Read-only client of a single chain.

    Args:
        config: Chain configuration
        web3: Pre-built Web3 instance (built from config.rpc_url if None)
        max_retries: Attempts for retried calls (block number, blocks, txs)
        retry_backoff: First retry delay in seconds
    """

    def __init__(
        self,
        config: ChainConfig,
        web3: Web3 | None = None,
        max_retries: int = 3,
        retry_backoff: float = 1.0,
    ) -> None:
        self.config = config
        self.chain_id = config.chain_id
        self.name = config.name
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff

        if web3 is None:
            web3 = Web3(Web3.HTTPProvider(
                config.rpc_url,
                request_kwargs={"timeout": BLOCKCHAIN_RPC_TIMEOUT},
            ))
            # BSC and other POA chains carry extra data in the header
            web3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
        self.web3 = web3

        self._executor = ThreadPoolExecutor(
            max_workers=RPC_EXECUTOR_MAX_WORKERS,
            thread_name_prefix=f"rpc-{config.chain_id}",
        )

    def __repr__(self) -> str:
        return (
            f"<ChainClient(chain_id={self.chain_id}, name={self.name}, "
            f"rpc={mask_rpc_url(self.config.rpc_url)})>"
        )

    async def _run(
        self,
        func: Callable[[], T],
        operation: str,
        timeout: float = BLOCKCHAIN_EXECUTOR_TIMEOUT,
    ) -> T:
        """Run a blocking web3 call in the executor with a timeout."""
        loop = asyncio.get_running_loop()
        return await with_timeout(
            loop.run_in_executor(self._executor, func),
            timeout=timeout,
            operation_name=f"[{self.name}] {operation}",
        )

    async def _run_with_retry(
        self,
        func: Callable[[], T],
        operation: str,
        timeout: float = BLOCKCHAIN_EXECUTOR_TIMEOUT,
    ) -> T:
        """Run a blocking web3 call, retrying transient failures."""
        loop = asyncio.get_running_loop()
        return await rpc_call_with_retry(
            lambda: loop.run_in_executor(self._executor, func),
            max_retries=self.max_retries,
            timeout=timeout,
            operation_name=f"[{self.name}] {operation}",
            backoff_base=self.retry_backoff,
        )

    async def startup_check(self) -> int:
        """
        Verify the RPC endpoint serves the configured chain.

        Returns:
            Chain id reported by the endpoint

        Raises:
            ChainMismatchError: If eth_chainId differs from config
        """
        actual = await self._run_with_retry(
            lambda: self.web3.eth.chain_id, "eth_chainId"
        )
        if int(actual) != self.chain_id:
            raise ChainMismatchError(self.chain_id, int(actual))

        logger.info(
            f"[ChainClient] {self.name} ({self.chain_id}) connected via "
            f"{mask_rpc_url(self.config.rpc_url)}"
        )
        return int(actual)

    async def get_block_number(self) -> int:
        """Get current head block number."""
        return int(await self._run_with_retry(
            lambda: self.web3.eth.block_number, "eth_blockNumber"
        ))

    async def get_block(self, number: int) -> BlockRef:
        """
        Get block number and hash at a height.

        Args:
            number: Block number

        Returns:
            BlockRef of the canonical block at that height
        """
        block = await self._run_with_retry(
            lambda: self.web3.eth.get_block(number),
            f"eth_getBlockByNumber({number})",
        )
        return BlockRef.from_block(block)

    async def get_block_refs(self, numbers: Iterable[int]) -> list[BlockRef]:
        """
        Get several blocks in one JSON-RPC batch request.

        Falls back to one request per block when the endpoint rejects
        batching.
        """
        numbers = list(numbers)
        if not numbers:
            return []

        def _batch() -> list[Any]:
            with self.web3.batch_requests() as batch:
                for number in numbers:
                    batch.add(self.web3.eth.get_block(number))
                return batch.execute()

        try:
            blocks = await self._run(
                _batch,
                f"batch eth_getBlockByNumber x{len(numbers)}",
                timeout=BLOCKCHAIN_LONG_TIMEOUT,
            )
        except (Web3Exception, ValueError) as e:
            logger.warning(
                f"[ChainClient] {self.name}: batch request rejected ({e}), "
                f"fetching {len(numbers)} blocks one by one"
            )
            return [await self.get_block(n) for n in numbers]

        return [BlockRef.from_block(block) for block in blocks]

    async def get_logs(
        self,
        addresses: list[str],
        from_block: int,
        to_block: int,
    ) -> list[Any]:
        """
        Raw eth_getLogs over an inclusive block range.

        Not retried: the log fetcher decides how to react to errors.
        """
        params = {
            "address": [Web3.to_checksum_address(a) for a in addresses],
            "fromBlock": from_block,
            "toBlock": to_block,
        }
        return list(await self._run(
            lambda: self.web3.eth.get_logs(params),
            f"eth_getLogs({from_block}-{to_block})",
            timeout=BLOCKCHAIN_LONG_TIMEOUT,
        ))

    async def get_transaction(self, tx_hash: str) -> Any | None:
        """
        Get transaction by hash.

        Returns:
            Transaction AttributeDict or None if the node does not know it
        """
        def _get() -> Any | None:
            # Unknown tx is an answer, not a transient failure
            try:
                return self.web3.eth.get_transaction(tx_hash)
            except TransactionNotFound:
                return None

        return await self._run_with_retry(_get, "eth_getTransactionByHash")

    def close(self) -> None:
        """Shut down the executor."""
        self._executor.shutdown(wait=False, cancel_futures=True)
