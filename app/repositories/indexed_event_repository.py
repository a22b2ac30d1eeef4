"""
Indexed Event repository.

Idempotent event store: one row per (chain_id, tx_hash, log_index).
"""

from typing import Any

from sqlalchemy import and_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.indexed_event import IndexedEvent
from app.repositories.base import BaseRepository
from app.utils.datetime_utils import utc_now


class IndexedEventRepository(BaseRepository[IndexedEvent]):
    """Repository for decoded contract events."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(IndexedEvent, session)

    async def get_by_key(
        self, chain_id: int, tx_hash: str, log_index: int
    ) -> IndexedEvent | None:
        """
        Get event by its natural key.

        Args:
            chain_id: Chain ID
            tx_hash: Transaction hash (any case)
            log_index: Log index inside the block

        Returns:
            Stored event or None
        """
        return await self.get_by(
            chain_id=chain_id,
            tx_hash=tx_hash.lower(),
            log_index=log_index,
        )

    async def record_event(
        self,
        chain_id: int,
        tx_hash: str,
        log_index: int,
        *,
        contract_address: str,
        event_name: str,
        block_number: int,
        block_hash: str,
        args: dict[str, Any],
    ) -> IndexedEvent:
        """
        Insert an event, or refresh it if the same log was seen before.

        Re-observing a log overwrites its block hash and args and clears
        the `removed` flag; a second row is never created.

        Returns:
            Stored event
        """
        existing = await self.get_by_key(chain_id, tx_hash, log_index)

        if existing:
            return await self.update(
                existing,
                block_number=block_number,
                block_hash=block_hash.lower(),
                args=args,
                removed=False,
            )

        return await self.create(
            chain_id=chain_id,
            tx_hash=tx_hash.lower(),
            log_index=log_index,
            contract_address=contract_address.lower(),
            event_name=event_name,
            block_number=block_number,
            block_hash=block_hash.lower(),
            args=args,
            processed=False,
            removed=False,
            attempts=0,
        )

    async def mark_processed(
        self, event: IndexedEvent, notes: str | None = None
    ) -> IndexedEvent:
        """Flag event as fully applied to derived entities."""
        data: dict[str, Any] = {"processed": True, "processed_at": utc_now()}
        if notes:
            data["processing_notes"] = notes
        return await self.update(event, **data)

    async def mark_attempt(
        self, event: IndexedEvent, notes: str | None = None
    ) -> IndexedEvent:
        """Count a handler attempt that hit a missing order/escrow."""
        return await self.update(
            event,
            attempts=(event.attempts or 0) + 1,
            processing_notes=notes,
        )

    async def link_order(
        self, event: IndexedEvent, order_pk: int
    ) -> IndexedEvent:
        """Link event to the order it mutated."""
        if event.order_pk == order_pk:
            return event
        return await self.update(event, order_pk=order_pk)

    async def mark_removed_after(self, chain_id: int, block_number: int) -> int:
        """
        Soft-delete events above a block (reorg rollback).

        Args:
            chain_id: Chain ID
            block_number: Last block that stays valid

        Returns:
            Number of events flagged as removed
        """
        stmt = (
            update(IndexedEvent)
            .where(
                and_(
                    IndexedEvent.chain_id == chain_id,
                    IndexedEvent.block_number > block_number,
                    IndexedEvent.removed.is_(False),
                )
            )
            .values(removed=True, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount or 0

    async def get_unprocessed(
        self,
        chain_id: int,
        max_attempts: int,
        limit: int = 500,
    ) -> list[IndexedEvent]:
        """
        Get stored events that still need a handler run.

        Ordered by block number, then log index.
        """
        query = (
            select(IndexedEvent)
            .where(
                and_(
                    IndexedEvent.chain_id == chain_id,
                    IndexedEvent.processed.is_(False),
                    IndexedEvent.removed.is_(False),
                    IndexedEvent.attempts < max_attempts,
                )
            )
            .order_by(
                IndexedEvent.block_number.asc(),
                IndexedEvent.log_index.asc(),
            )
            .limit(limit)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())
