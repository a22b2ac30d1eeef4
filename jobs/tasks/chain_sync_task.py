"""
Chain sync background task.

Runs one sync cycle for one chain from a dramatiq worker. Used to
trigger a sync on demand (backfill, manual catch-up) alongside the
indexer process; the per-chain guard of the indexer process does not
cover workers, so enqueue at most one sync per chain at a time.
"""

import asyncio
from typing import Any

import dramatiq
from loguru import logger

from app.config.settings import settings
from app.services.blockchain.client_registry import ChainClientRegistry
from app.services.chain_indexer import ChainIndexerService, IndexerOptions
from app.services.events.dispatcher import EventDispatcher
from app.services.events.registry import build_default_registry
from app.services.handlers.secret_extractor import SecretExtractor
from app.utils.exceptions import UnknownChainError
from jobs.async_runner import run_async
from jobs.broker import broker  # noqa: F401
from jobs.utils.database import create_task_engine, create_task_session_maker


async def run_chain_sync(chain_id: int) -> dict[str, Any]:
    """
    Run one sync cycle for a configured chain.

    Args:
        chain_id: Chain to sync

    Returns:
        Cycle result of ChainIndexerService.run_cycle

    Raises:
        UnknownChainError: If the chain is not configured
    """
    chains = {chain.chain_id: chain for chain in settings.get_chain_configs()}
    chain = chains.get(chain_id)
    if chain is None:
        raise UnknownChainError(chain_id)

    clients = ChainClientRegistry.from_configs(list(chains.values()))
    engine = create_task_engine()
    try:
        await clients.get(chain_id).startup_check()
        dispatcher = EventDispatcher(
            build_default_registry(),
            secrets=SecretExtractor(clients),
            max_orphan_attempts=settings.max_orphan_attempts,
            vault_buy_chain_id=settings.vault_buy_chain_id,
            vault_sell_chain_id=settings.vault_sell_chain_id,
        )
        indexer = ChainIndexerService(
            chain=chain,
            client=clients.get(chain_id),
            dispatcher=dispatcher,
            session_factory=create_task_session_maker(engine),
            options=IndexerOptions.from_settings(settings),
        )
        return await indexer.run_cycle()
    finally:
        clients.close()
        await engine.dispose()


@dramatiq.actor(max_retries=0, time_limit=600_000)
def sync_chain_actor(chain_id: int) -> dict[str, Any]:
    """
    Dramatiq actor for one sync cycle.

    Failures are stored on the chain cursor by the cycle itself, so the
    actor does not retry.
    """
    logger.info(f"[Sync Task] Starting sync for chain {chain_id}")
    try:
        result = run_async(run_chain_sync(chain_id))
    except asyncio.CancelledError:
        logger.info("[Sync Task] Task cancelled")
        raise
    except UnknownChainError as e:
        logger.error(f"[Sync Task] {e}")
        return {"success": False, "chain_id": chain_id, "errors": [str(e)]}

    if result["success"]:
        logger.info(
            f"[Sync Task] Chain {chain_id}: {result['events']} events, "
            f"to block {result['to_block']}"
        )
    else:
        logger.warning(f"[Sync Task] Chain {chain_id} failed: {result['errors']}")
    return result
