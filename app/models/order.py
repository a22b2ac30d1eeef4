"""
Order model.

One row per distinct on-chain order id (escrow flow or vault flow).
"""

from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin
from app.models.enums import OrderStatus
from app.models.types import AddressType, HashType, RawAmountType


if TYPE_CHECKING:
    from app.models.escrow import Escrow
    from app.models.indexed_event import IndexedEvent


class Order(TimestampMixin, Base):
    """
    Cross-chain order.

    Escrow-flow and vault buy orders use the raw on-chain id; vault sell
    orders are shifted by VAULT_SELL_ORDER_ID_OFFSET so the two vault
    id spaces never collide.
    """

    __tablename__ = "orders"

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # On-chain (or offset-adjusted) order id
    order_id: Mapped[int] = mapped_column(
        BigInteger, nullable=False, unique=True, index=True
    )
    chain_id: Mapped[int] = mapped_column(BigInteger, nullable=False)

    # Parties
    maker: Mapped[str] = mapped_column(AddressType, nullable=False, index=True)
    taker: Mapped[str | None] = mapped_column(AddressType, nullable=True)

    # Trade
    sell_token: Mapped[str] = mapped_column(AddressType, nullable=False)
    sell_amount: Mapped[str] = mapped_column(RawAmountType, nullable=False)
    buy_token: Mapped[str] = mapped_column(AddressType, nullable=False)
    buy_amount: Mapped[str] = mapped_column(RawAmountType, nullable=False)
    src_chain_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    dst_chain_id: Mapped[int] = mapped_column(BigInteger, nullable=False)

    # HTLC
    hash_lock: Mapped[str] = mapped_column(HashType, nullable=False)
    maker_timelock: Mapped[int] = mapped_column(BigInteger, nullable=False)
    taker_timelock: Mapped[int] = mapped_column(BigInteger, nullable=False)
    secret: Mapped[str | None] = mapped_column(HashType, nullable=True)

    # Status
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=OrderStatus.OPEN, index=True
    )
    cancelled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )

    # Vault flow
    filled_amount: Mapped[str] = mapped_column(
        RawAmountType, nullable=False, default="0"
    )
    counter_order_id: Mapped[int | None] = mapped_column(
        BigInteger, nullable=True
    )

    # Provenance
    tx_hash: Mapped[str] = mapped_column(HashType, nullable=False)
    block_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    log_index: Mapped[int] = mapped_column(Integer, nullable=False)

    escrows: Mapped[list["Escrow"]] = relationship(
        "Escrow", back_populates="order", lazy="raise"
    )
    events: Mapped[list["IndexedEvent"]] = relationship(
        "IndexedEvent", back_populates="order", lazy="raise"
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Order(order_id={self.order_id}, status={self.status}, "
            f"src={self.src_chain_id}, dst={self.dst_chain_id})>"
        )

    @property
    def remaining_amount(self) -> int:
        """Unfilled part of sell_amount (vault flow)."""
        remaining = int(self.sell_amount) - int(self.filled_amount or 0)
        return max(remaining, 0)

    @property
    def is_terminal(self) -> bool:
        """Check if order reached a final status."""
        return self.status in OrderStatus.TERMINAL
