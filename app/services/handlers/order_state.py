"""
Order state transitions shared by the handlers.

Status only moves forward along OPEN -> MAKER_LOCKED -> TAKER_LOCKED ->
COMPLETED; terminal statuses never change except through the explicit
cancel/refund handlers.
"""

from loguru import logger

from app.models.enums import OrderStatus
from app.models.order import Order
from app.services.handlers.context import Repositories


def can_advance(order: Order, target: str, *, from_statuses: tuple[str, ...]) -> bool:
    """
    Check a forward transition.

    Args:
        order: Order
        target: Status to move to
        from_statuses: Statuses the transition is allowed from

    Returns:
        True if the order is in one of `from_statuses` and `target`
        is further along the forward path
    """
    if order.status not in from_statuses:
        return False
    return OrderStatus.RANK[target] > OrderStatus.RANK.get(order.status, -1)


async def advance(
    repos: Repositories,
    order: Order,
    target: str,
    *,
    from_statuses: tuple[str, ...],
    **extra: object,
) -> bool:
    """Move order to `target` if the transition is allowed."""
    if not can_advance(order, target, from_statuses=from_statuses):
        return False

    previous = order.status
    await repos.orders.update(order, status=target, **extra)
    logger.info(f"[Orders] Order {order.order_id}: {previous} -> {target}")
    return True


async def complete(repos: Repositories, order: Order) -> bool:
    """
    Mark order COMPLETED and credit the maker.

    User stats change only on the actual transition, so replays do not
    double count.

    Returns:
        True if the order transitioned
    """
    if order.status in OrderStatus.TERMINAL:
        return False

    previous = order.status
    await repos.orders.update(order, status=OrderStatus.COMPLETED)
    await repos.users.record_completion(order.maker, order.sell_amount)
    logger.success(
        f"[Orders] Order {order.order_id} completed (was {previous})"
    )
    return True


async def set_terminal(
    repos: Repositories, order: Order, status: str, **extra: object
) -> bool:
    """Force a cancel/refund status (authoritative on-chain events)."""
    changes = {"status": status, **extra}
    if all(getattr(order, key) == value for key, value in changes.items()):
        return False

    previous = order.status
    await repos.orders.update(order, **changes)
    logger.info(f"[Orders] Order {order.order_id}: {previous} -> {status}")
    return True
