"""
Chain Cursor model.

Tracks the synchronization state of each indexed chain.
"""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin
from app.models.types import HashType


class ChainCursor(TimestampMixin, Base):
    """
    Last synced block of a chain.

    Used to:
    - Resume sync after restart
    - Detect reorgs (stored hash vs. freshly fetched hash at same height)
    - Track sync errors per chain

    Invariant: last_block_hash is the hash of last_block_number as observed
    at the most recent checkpoint or rollback.
    """

    __tablename__ = "chain_cursors"

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Chain identification
    chain_id: Mapped[int] = mapped_column(
        BigInteger, nullable=False, unique=True, index=True
    )

    # Sync position
    first_synced_block: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0
    )
    last_block_number: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0
    )
    last_block_hash: Mapped[str] = mapped_column(
        HashType, nullable=False
    )

    # Reorg tracking
    reorg_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    last_reorg_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Error tracking
    last_error: Mapped[str | None] = mapped_column(
        Text, nullable=True
    )
    error_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<ChainCursor(chain_id={self.chain_id}, "
            f"block={self.last_block_number}, "
            f"hash={self.last_block_hash[:10]}...)>"
        )
