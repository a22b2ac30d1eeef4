"""
Handler context and results.

Everything a domain handler may touch is passed in explicitly.
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.repositories.chain_cursor_repository import ChainCursorRepository
from app.repositories.escrow_repository import EscrowRepository
from app.repositories.indexed_event_repository import IndexedEventRepository
from app.repositories.order_repository import OrderRepository
from app.repositories.user_repository import UserRepository

if TYPE_CHECKING:
    from app.models.indexed_event import IndexedEvent
    from app.services.handlers.secret_extractor import SecretExtractor


class HandlerOutcome(StrEnum):
    """What a handler did with an event."""

    APPLIED = "applied"  # Derived entities changed
    NOOP = "noop"  # Repeat or ignored transition
    ORPHANED = "orphaned"  # Referenced order/escrow not indexed (yet)


@dataclass
class HandlerResult:
    outcome: HandlerOutcome
    order_pk: int | None = None
    note: str | None = None

    @classmethod
    def applied(cls, order_pk: int | None = None, note: str | None = None):
        return cls(HandlerOutcome.APPLIED, order_pk, note)

    @classmethod
    def noop(cls, order_pk: int | None = None, note: str | None = None):
        return cls(HandlerOutcome.NOOP, order_pk, note)

    @classmethod
    def orphaned(cls, note: str):
        return cls(HandlerOutcome.ORPHANED, None, note)


@dataclass
class Repositories:
    """Repositories sharing one session (one unit of work)."""

    session: AsyncSession
    cursors: ChainCursorRepository
    events: IndexedEventRepository
    orders: OrderRepository
    escrows: EscrowRepository
    users: UserRepository

    @classmethod
    def from_session(cls, session: AsyncSession) -> "Repositories":
        return cls(
            session=session,
            cursors=ChainCursorRepository(session),
            events=IndexedEventRepository(session),
            orders=OrderRepository(session),
            escrows=EscrowRepository(session),
            users=UserRepository(session),
        )

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()


@dataclass
class HandlerContext:
    """
    Dependencies of a handler call.

    Args:
        repos: Repositories of the current unit of work
        record: Stored row of the event being handled
        secrets: Secret extractor (claim calldata reader)
        vault_buy_chain_id: Chain of the buy vault
        vault_sell_chain_id: Chain of the sell vault
    """

    repos: Repositories
    record: "IndexedEvent"
    secrets: "SecretExtractor | None" = None
    vault_buy_chain_id: int = settings.vault_buy_chain_id
    vault_sell_chain_id: int = settings.vault_sell_chain_id
