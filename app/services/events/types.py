"""
Typed contract events.

One frozen dataclass per (contract kind, event name). Field names are the
snake_case form of the ABI argument names; addresses and bytes32 values
are lowercase hex strings, uint256 values are ints.
"""

import re
from dataclasses import dataclass, fields
from typing import Any, ClassVar, Union

from app.config.settings import (
    CONTRACT_KIND_ESCROW,
    CONTRACT_KIND_ORDERBOOK,
    CONTRACT_KIND_VAULT_BUY,
    CONTRACT_KIND_VAULT_SELL,
)
from app.utils.exceptions import EventDecodeError

# (contract kind, event name) -> event class
EVENT_TYPES: dict[tuple[str, str], type["ChainEvent"]] = {}

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def snake_case(name: str) -> str:
    """orderId -> order_id, dscTxHash -> dsc_tx_hash."""
    return _CAMEL_RE.sub("_", name).lower()


def event_type(kind: str, name: str):
    """Register an event dataclass under its contract kind and ABI name."""
    def decorator(cls: type["ChainEvent"]) -> type["ChainEvent"]:
        key = (kind, name)
        if key in EVENT_TYPES:
            raise ValueError(f"Event type {kind}.{name} registered twice")
        cls.kind = kind
        cls.event_name = name
        EVENT_TYPES[key] = cls
        return cls
    return decorator


class ChainEvent:
    """Mixin for event dataclasses."""

    kind: ClassVar[str]
    event_name: ClassVar[str]

    @classmethod
    def from_args(cls, args: dict[str, Any]):
        """
        Build the event from a JSON-safe args dict (ABI argument names).

        Raises:
            EventDecodeError: If an argument is missing
        """
        values = {snake_case(k): v for k, v in args.items()}
        try:
            return cls(**{f.name: values[f.name] for f in fields(cls)})
        except KeyError as e:
            raise EventDecodeError(
                f"{cls.kind}.{cls.event_name}: missing argument {e}"
            ) from e


def lookup_event_type(kind: str, name: str) -> type[ChainEvent] | None:
    return EVENT_TYPES.get((kind, name))


# ----------------------------------------------------------------------
# Orderbook (escrow flow)
# ----------------------------------------------------------------------

@event_type(CONTRACT_KIND_ORDERBOOK, "OrderCreated")
@dataclass(frozen=True)
class OrderCreated(ChainEvent):
    order_id: int
    maker: str
    sell_token: str
    sell_amount: int
    buy_token: str
    buy_amount: int
    src_chain_id: int
    dst_chain_id: int
    hash_lock: str
    maker_timelock: int
    taker_timelock: int


@event_type(CONTRACT_KIND_ORDERBOOK, "OrderCancelled")
@dataclass(frozen=True)
class OrderCancelled(ChainEvent):
    order_id: int
    maker: str


# ----------------------------------------------------------------------
# Escrow HTLC
# ----------------------------------------------------------------------

@event_type(CONTRACT_KIND_ESCROW, "Locked")
@dataclass(frozen=True)
class Locked(ChainEvent):
    lock_id: str
    order_id: int
    depositor: str
    recipient: str
    token: str
    amount: int
    hash_lock: str
    timelock: int


@event_type(CONTRACT_KIND_ESCROW, "Claimed")
@dataclass(frozen=True)
class Claimed(ChainEvent):
    lock_id: str
    order_id: int
    recipient: str
    hash_lock: str


@event_type(CONTRACT_KIND_ESCROW, "Refunded")
@dataclass(frozen=True)
class Refunded(ChainEvent):
    lock_id: str
    order_id: int
    depositor: str
    hash_lock: str


# ----------------------------------------------------------------------
# Buy vault
# ----------------------------------------------------------------------

@event_type(CONTRACT_KIND_VAULT_BUY, "OrderCreated")
@dataclass(frozen=True)
class BuyOrderCreated(ChainEvent):
    order_id: int
    buyer: str
    amount: int
    expires_at: int


@event_type(CONTRACT_KIND_VAULT_BUY, "OrderMatched")
@dataclass(frozen=True)
class BuyOrderMatched(ChainEvent):
    order_id: int
    buyer: str
    seller: str
    amount: int


@event_type(CONTRACT_KIND_VAULT_BUY, "OrderCompleted")
@dataclass(frozen=True)
class BuyOrderCompleted(ChainEvent):
    order_id: int
    buyer: str
    seller: str
    amount: int
    dsc_tx_hash: str


@event_type(CONTRACT_KIND_VAULT_BUY, "OrderCancelled")
@dataclass(frozen=True)
class BuyOrderCancelled(ChainEvent):
    order_id: int
    buyer: str
    amount: int


@event_type(CONTRACT_KIND_VAULT_BUY, "OrderRefunded")
@dataclass(frozen=True)
class BuyOrderRefunded(ChainEvent):
    order_id: int
    buyer: str
    amount: int


# ----------------------------------------------------------------------
# Sell vault
# ----------------------------------------------------------------------

@event_type(CONTRACT_KIND_VAULT_SELL, "SellOrderCreated")
@dataclass(frozen=True)
class SellOrderCreated(ChainEvent):
    order_id: int
    seller: str
    amount: int
    expires_at: int


@event_type(CONTRACT_KIND_VAULT_SELL, "DirectFillCreated")
@dataclass(frozen=True)
class DirectFillCreated(ChainEvent):
    dsc_order_id: int
    bsc_order_id: int
    seller: str
    buyer: str
    amount: int


@event_type(CONTRACT_KIND_VAULT_SELL, "OrderMatched")
@dataclass(frozen=True)
class SellOrderMatched(ChainEvent):
    dsc_order_id: int
    bsc_order_id: int
    seller: str
    buyer: str
    amount: int


@event_type(CONTRACT_KIND_VAULT_SELL, "OrderCompleted")
@dataclass(frozen=True)
class SellOrderCompleted(ChainEvent):
    dsc_order_id: int
    bsc_order_id: int
    seller: str
    buyer: str
    amount: int
    bsc_tx_hash: str


@event_type(CONTRACT_KIND_VAULT_SELL, "OrderCancelled")
@dataclass(frozen=True)
class SellOrderCancelled(ChainEvent):
    order_id: int
    seller: str
    amount: int


ContractEvent = Union[
    OrderCreated,
    OrderCancelled,
    Locked,
    Claimed,
    Refunded,
    BuyOrderCreated,
    BuyOrderMatched,
    BuyOrderCompleted,
    BuyOrderCancelled,
    BuyOrderRefunded,
    SellOrderCreated,
    DirectFillCreated,
    SellOrderMatched,
    SellOrderCompleted,
    SellOrderCancelled,
]
