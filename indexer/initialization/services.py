"""
Indexer Initialization - Services Module.

Module: services.py
Builds chain clients, the handler registry and one indexer per chain.
"""

from dataclasses import dataclass

from loguru import logger

from app.config.database import async_session_maker
from app.config.settings import Settings, settings
from app.services.blockchain.client_registry import ChainClientRegistry
from app.services.chain_indexer import (
    ChainIndexerService,
    IndexerOptions,
    IndexerScheduler,
)
from app.services.events.dispatcher import EventDispatcher
from app.services.events.registry import build_default_registry
from app.services.handlers.secret_extractor import SecretExtractor
from app.utils.security import mask_address


@dataclass
class IndexerComponents:
    clients: ChainClientRegistry
    dispatcher: EventDispatcher
    scheduler: IndexerScheduler


def validate_environment(config: Settings = settings) -> None:
    """Log configuration problems that do not prevent startup."""
    if "your_" in config.database_url.lower():
        logger.error("DATABASE_URL is not properly configured")
    if config.reorg_tolerance_blocks == 0:
        logger.warning("REORG_TOLERANCE_BLOCKS is 0: reorgs roll back nothing")


async def initialize_all_services(config: Settings = settings) -> IndexerComponents:
    """
    Build everything the poll loop needs.

    Raises:
        ChainClientError: If a chain client cannot be built or an RPC
            endpoint serves the wrong chain
        ValueError: If chain configuration is invalid
    """
    validate_environment(config)

    chains = config.get_chain_configs()
    clients = ChainClientRegistry.from_configs(chains)
    await clients.startup_check()

    registry = build_default_registry()
    dispatcher = EventDispatcher(
        registry,
        secrets=SecretExtractor(clients),
        max_orphan_attempts=config.max_orphan_attempts,
        vault_buy_chain_id=config.vault_buy_chain_id,
        vault_sell_chain_id=config.vault_sell_chain_id,
    )

    options = IndexerOptions.from_settings(config)
    indexers = []
    for chain in chains:
        indexers.append(
            ChainIndexerService(
                chain=chain,
                client=clients.get(chain.chain_id),
                dispatcher=dispatcher,
                session_factory=async_session_maker,
                options=options,
            )
        )
        contracts = ", ".join(
            f"{kind}={mask_address(address)}"
            for address, kind in chain.contracts.items()
        )
        logger.info(
            f"[Init] {chain.name} ({chain.chain_id}): start block "
            f"{chain.start_block}, {chain.confirmations} confirmations, "
            f"contracts: {contracts or 'none'}"
        )

    scheduler = IndexerScheduler(
        indexers, concurrent=config.indexer_concurrent_chains
    )
    return IndexerComponents(clients=clients, dispatcher=dispatcher, scheduler=scheduler)
