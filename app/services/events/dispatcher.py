"""
Event dispatcher.

Stores each decoded log, runs its handler, then marks it processed.
The stored row is committed before the handler runs so a crash in
between leaves an unprocessed row for the replay step.
"""

from loguru import logger

from app.config.settings import settings
from app.models.indexed_event import IndexedEvent
from app.services.events.decoder import DecodedLog
from app.services.events.registry import HandlerRegistry
from app.services.handlers.context import (
    HandlerContext,
    HandlerOutcome,
    HandlerResult,
    Repositories,
)
from app.services.handlers.secret_extractor import SecretExtractor
from app.utils.security import mask_tx_hash

ORPHANED_NOTE = "orphaned"


class EventDispatcher:
    """
    Routes decoded logs to domain handlers.

    Args:
        registry: Handler registry
        secrets: Secret extractor passed to escrow handlers
        max_orphan_attempts: Handler attempts before an orphaned event is
            given up on
    """

    def __init__(
        self,
        registry: HandlerRegistry,
        secrets: SecretExtractor | None = None,
        max_orphan_attempts: int = settings.max_orphan_attempts,
        vault_buy_chain_id: int = settings.vault_buy_chain_id,
        vault_sell_chain_id: int = settings.vault_sell_chain_id,
    ) -> None:
        self.registry = registry
        self.secrets = secrets
        self.max_orphan_attempts = max_orphan_attempts
        self.vault_buy_chain_id = vault_buy_chain_id
        self.vault_sell_chain_id = vault_sell_chain_id

    async def record(self, repos: Repositories, decoded: DecodedLog) -> IndexedEvent:
        """Store (or refresh) the raw event and commit."""
        record = await repos.events.record_event(
            decoded.chain_id,
            decoded.tx_hash,
            decoded.log_index,
            contract_address=decoded.contract_address,
            event_name=decoded.event_name,
            block_number=decoded.block_number,
            block_hash=decoded.block_hash,
            args=decoded.args,
        )
        await repos.commit()
        return record

    async def dispatch(
        self,
        repos: Repositories,
        decoded: DecodedLog,
        record: IndexedEvent | None = None,
    ) -> HandlerResult:
        """
        Apply one event.

        Args:
            repos: Repositories of the chain's unit of work
            decoded: Decoded log
            record: Already stored row (replay); stored first if None

        Returns:
            Handler result

        Raises:
            Exception: Whatever the handler raised, after rollback
        """
        if record is None:
            record = await self.record(repos, decoded)

        handler = self.registry.get(decoded.kind, decoded.event_name)
        if handler is None:
            logger.warning(
                f"[Dispatcher] No handler for {decoded.kind}.{decoded.event_name}"
            )
            await repos.events.mark_processed(record, notes="no handler")
            await repos.commit()
            return HandlerResult.noop(note="no handler")

        ctx = HandlerContext(
            repos=repos,
            record=record,
            secrets=self.secrets,
            vault_buy_chain_id=self.vault_buy_chain_id,
            vault_sell_chain_id=self.vault_sell_chain_id,
        )

        try:
            result = await handler(ctx, decoded)

            if result.order_pk is not None:
                await repos.events.link_order(record, result.order_pk)

            if result.outcome == HandlerOutcome.ORPHANED:
                await self._handle_orphan(repos, record, decoded, result)
            else:
                await repos.events.mark_processed(record, notes=result.note)

            await repos.commit()
        except Exception as e:
            await repos.rollback()
            logger.error(
                f"[Dispatcher] Chain {decoded.chain_id} block {decoded.block_number}: "
                f"handler {decoded.kind}.{decoded.event_name} failed on "
                f"{mask_tx_hash(decoded.tx_hash)}#{decoded.log_index}: {e}"
            )
            raise

        return result

    async def _handle_orphan(
        self,
        repos: Repositories,
        record: IndexedEvent,
        decoded: DecodedLog,
        result: HandlerResult,
    ) -> None:
        """Count the attempt; give up after max_orphan_attempts."""
        await repos.events.mark_attempt(record, notes=result.note)

        if record.attempts >= self.max_orphan_attempts:
            await repos.events.mark_processed(
                record, notes=f"{ORPHANED_NOTE}: {result.note}"
            )
            logger.warning(
                f"[Dispatcher] Chain {decoded.chain_id}: giving up on "
                f"{decoded.event_name} {mask_tx_hash(decoded.tx_hash)}"
                f"#{decoded.log_index} after {record.attempts} attempts "
                f"({result.note})"
            )
        else:
            logger.info(
                f"[Dispatcher] Chain {decoded.chain_id}: {decoded.event_name} "
                f"kept for replay ({record.attempts}/{self.max_orphan_attempts}): "
                f"{result.note}"
            )
