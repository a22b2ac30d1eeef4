"""
Escrow model.

One row per HTLC lock, keyed by lock id.
"""

from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin
from app.models.enums import EscrowStatus
from app.models.types import AddressType, HashType, RawAmountType


if TYPE_CHECKING:
    from app.models.order import Order


class Escrow(TimestampMixin, Base):
    """
    HTLC escrow deposit.

    An order has at most one maker-side escrow (on the order's source
    chain) and one taker-side escrow.
    """

    __tablename__ = "escrows"

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Lock identification
    lock_id: Mapped[str] = mapped_column(
        HashType, nullable=False, unique=True, index=True
    )
    order_pk: Mapped[int] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    chain_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    side: Mapped[str] = mapped_column(String(10), nullable=False)  # maker, taker

    # Deposit
    depositor: Mapped[str] = mapped_column(AddressType, nullable=False, index=True)
    recipient: Mapped[str] = mapped_column(AddressType, nullable=False)
    token: Mapped[str] = mapped_column(AddressType, nullable=False)
    amount: Mapped[str] = mapped_column(RawAmountType, nullable=False)
    hash_lock: Mapped[str] = mapped_column(HashType, nullable=False)
    timelock: Mapped[int] = mapped_column(BigInteger, nullable=False)

    # Status
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=EscrowStatus.LOCKED, index=True
    )
    secret: Mapped[str | None] = mapped_column(HashType, nullable=True)
    claimed_tx_hash: Mapped[str | None] = mapped_column(HashType, nullable=True)
    refunded_tx_hash: Mapped[str | None] = mapped_column(HashType, nullable=True)

    # Provenance
    tx_hash: Mapped[str] = mapped_column(HashType, nullable=False)
    block_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    log_index: Mapped[int] = mapped_column(Integer, nullable=False)

    order: Mapped["Order"] = relationship(
        "Order", back_populates="escrows", lazy="raise"
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Escrow(lock_id={self.lock_id[:16]}..., side={self.side}, "
            f"chain={self.chain_id}, status={self.status})>"
        )
