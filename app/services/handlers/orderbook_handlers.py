"""
Orderbook event handlers (escrow flow).
"""

from loguru import logger

from app.config.settings import CONTRACT_KIND_ORDERBOOK
from app.models.enums import OrderStatus
from app.services.events.decoder import DecodedLog
from app.services.events.registry import handles
from app.services.events.types import OrderCancelled, OrderCreated
from app.services.handlers.context import HandlerContext, HandlerResult
from app.services.handlers.order_state import set_terminal
from app.utils.security import mask_address


@handles(CONTRACT_KIND_ORDERBOOK, "OrderCreated")
async def handle_order_created(
    ctx: HandlerContext, decoded: DecodedLog
) -> HandlerResult:
    """Create the order once; repeats are no-ops."""
    event: OrderCreated = decoded.event
    repos = ctx.repos

    order, created = await repos.orders.create_if_absent(
        event.order_id,
        chain_id=decoded.chain_id,
        maker=event.maker,
        taker=None,
        sell_token=event.sell_token,
        sell_amount=str(event.sell_amount),
        buy_token=event.buy_token,
        buy_amount=str(event.buy_amount),
        src_chain_id=event.src_chain_id,
        dst_chain_id=event.dst_chain_id,
        hash_lock=event.hash_lock,
        maker_timelock=event.maker_timelock,
        taker_timelock=event.taker_timelock,
        status=OrderStatus.OPEN,
        cancelled=False,
        filled_amount="0",
        tx_hash=decoded.tx_hash,
        block_number=decoded.block_number,
        log_index=decoded.log_index,
    )

    if not created:
        logger.info(f"[Orderbook] Order {event.order_id} already exists")
        return HandlerResult.noop(order.id, "order exists")

    await repos.users.increment_created(event.maker)

    logger.info(
        f"[Orderbook] Created order {event.order_id} by "
        f"{mask_address(event.maker)} ({event.src_chain_id} -> {event.dst_chain_id})"
    )
    return HandlerResult.applied(order.id)


@handles(CONTRACT_KIND_ORDERBOOK, "OrderCancelled")
async def handle_order_cancelled(
    ctx: HandlerContext, decoded: DecodedLog
) -> HandlerResult:
    event: OrderCancelled = decoded.event

    order = await ctx.repos.orders.get_by_order_id(event.order_id)
    if order is None:
        logger.warning(f"[Orderbook] Order {event.order_id} not found for cancellation")
        return HandlerResult.orphaned(f"order {event.order_id} not indexed")

    changed = await set_terminal(
        ctx.repos, order, OrderStatus.CANCELLED, cancelled=True
    )
    if not changed:
        return HandlerResult.noop(order.id, "already cancelled")
    return HandlerResult.applied(order.id)
