"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from app.models.base import Base
from app.models.chain_cursor import ChainCursor
from app.models.enums import EscrowSide, EscrowStatus, OrderStatus
from app.models.escrow import Escrow
from app.models.indexed_event import IndexedEvent
from app.models.order import Order
from app.models.user import User

__all__ = [
    # Base
    "Base",
    # Enums
    "OrderStatus",
    "EscrowStatus",
    "EscrowSide",
    # Sync state
    "ChainCursor",
    "IndexedEvent",
    # Domain
    "Order",
    "Escrow",
    "User",
]
