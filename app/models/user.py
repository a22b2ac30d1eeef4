"""
User model.

Aggregate trading counters per address.
"""

from sqlalchemy import Integer
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin
from app.models.types import AddressType, RawAmountType


class User(TimestampMixin, Base):
    """Trader keyed by lowercase address."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    address: Mapped[str] = mapped_column(
        AddressType, nullable=False, unique=True, index=True
    )

    orders_created: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    orders_completed: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    # Sum of raw sell amounts of completed orders
    total_volume: Mapped[str] = mapped_column(
        RawAmountType, nullable=False, default="0"
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<User(address={self.address}, created={self.orders_created}, "
            f"completed={self.orders_completed})>"
        )
