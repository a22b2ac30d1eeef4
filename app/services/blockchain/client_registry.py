"""
Chain client registry.

Built once at startup from chain configs and passed explicitly to the
indexer, handlers and secret extractor.
"""

from collections.abc import Iterator

from loguru import logger

from app.config.settings import ChainConfig
from app.services.blockchain.chain_client import ChainClient
from app.utils.exceptions import ChainClientError, UnknownChainError


class ChainClientRegistry:
    """Chain id -> ChainClient lookup."""

    def __init__(self, clients: dict[int, ChainClient] | None = None) -> None:
        self._clients: dict[int, ChainClient] = dict(clients or {})

    @classmethod
    def from_configs(cls, configs: list[ChainConfig]) -> "ChainClientRegistry":
        """
        Build a client for each configured chain.

        Args:
            configs: Chain configurations

        Returns:
            Registry with one client per chain

        Raises:
            ChainClientError: If no chain is configured or a client fails
        """
        if not configs:
            raise ChainClientError("No chains configured")

        registry = cls()
        for config in configs:
            try:
                registry.register(ChainClient(config))
            except (ValueError, TypeError) as e:
                raise ChainClientError(
                    f"Failed to build client for {config.name} "
                    f"({config.chain_id}): {e}"
                ) from e

        logger.info(
            f"[Registry] Chain clients ready: "
            f"{', '.join(f'{c.name} ({c.chain_id})' for c in registry)}"
        )
        return registry

    def register(self, client: ChainClient) -> None:
        """Add a client (chain ids must be unique)."""
        if client.chain_id in self._clients:
            raise ChainClientError(f"Chain {client.chain_id} registered twice")
        self._clients[client.chain_id] = client

    def get(self, chain_id: int) -> ChainClient:
        """
        Get client of a chain.

        Raises:
            UnknownChainError: If the chain is not configured
        """
        try:
            return self._clients[chain_id]
        except KeyError:
            raise UnknownChainError(chain_id) from None

    def __contains__(self, chain_id: object) -> bool:
        return chain_id in self._clients

    def __iter__(self) -> Iterator[ChainClient]:
        return iter(self._clients.values())

    def __len__(self) -> int:
        return len(self._clients)

    @property
    def chain_ids(self) -> list[int]:
        return list(self._clients)

    async def startup_check(self) -> None:
        """Verify every endpoint serves its configured chain."""
        for client in self:
            await client.startup_check()

    def close(self) -> None:
        """Close all clients."""
        for client in self:
            client.close()
