"""
Indexed Event model.

Stores every decoded contract log exactly once, keyed by
(chain_id, tx_hash, log_index).
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin
from app.models.types import AddressType, HashType


if TYPE_CHECKING:
    from app.models.order import Order


class IndexedEvent(TimestampMixin, Base):
    """
    Raw decoded contract event.

    Stored before any derived entity is touched, so a crash between
    fetching and applying the event is recoverable from this table.
    Rows are never deleted: a reorg rollback sets `removed`.
    """

    __tablename__ = "indexed_events"
    __table_args__ = (
        UniqueConstraint(
            "chain_id", "tx_hash", "log_index",
            name="uq_indexed_events_chain_tx_log",
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Log identification
    chain_id: Mapped[int] = mapped_column(
        BigInteger, nullable=False, index=True
    )
    tx_hash: Mapped[str] = mapped_column(
        HashType, nullable=False, index=True
    )
    log_index: Mapped[int] = mapped_column(
        Integer, nullable=False
    )
    contract_address: Mapped[str] = mapped_column(
        AddressType, nullable=False, index=True
    )
    event_name: Mapped[str] = mapped_column(
        String(64), nullable=False, index=True
    )

    # Block
    block_number: Mapped[int] = mapped_column(
        BigInteger, nullable=False, index=True
    )
    block_hash: Mapped[str] = mapped_column(
        HashType, nullable=False
    )

    # Decoded arguments (JSON-safe: ints, lowercase hex strings)
    args: Mapped[dict[str, Any]] = mapped_column(
        JSON, nullable=False, default=dict
    )

    # Processing flags
    processed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, index=True
    )
    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    removed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, index=True
    )
    attempts: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    processing_notes: Mapped[str | None] = mapped_column(
        Text, nullable=True
    )

    # Order this event mutated
    order_pk: Mapped[int | None] = mapped_column(
        ForeignKey("orders.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    order: Mapped["Order | None"] = relationship(
        "Order", back_populates="events", lazy="raise"
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<IndexedEvent(chain={self.chain_id}, "
            f"event={self.event_name}, block={self.block_number}, "
            f"tx={self.tx_hash[:16]}..., log={self.log_index})>"
        )

    @property
    def key(self) -> tuple[int, str, int]:
        """Natural key (chain_id, tx_hash, log_index)."""
        return (self.chain_id, self.tx_hash, self.log_index)
