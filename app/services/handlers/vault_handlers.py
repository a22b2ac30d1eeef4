"""
Vault event handlers.

The buy vault (BSC) holds buy orders under their raw ids; the sell vault
(DSC) holds sell orders under raw id + VAULT_SELL_ORDER_ID_OFFSET and
emits the fills that link sell orders to buy orders.
"""

from loguru import logger

from app.config.constants import (
    BSC_USDT_ADDRESS,
    DSC_USDT_ADDRESS,
    VAULT_SELL_ORDER_ID_OFFSET,
    ZERO_HASH,
)
from app.config.settings import CONTRACT_KIND_VAULT_BUY, CONTRACT_KIND_VAULT_SELL
from app.models.enums import OrderStatus
from app.models.order import Order
from app.services.events.decoder import DecodedLog
from app.services.events.registry import handles
from app.services.events.types import (
    BuyOrderCancelled,
    BuyOrderCompleted,
    BuyOrderCreated,
    BuyOrderMatched,
    BuyOrderRefunded,
    DirectFillCreated,
    SellOrderCancelled,
    SellOrderCompleted,
    SellOrderCreated,
    SellOrderMatched,
)
from app.services.handlers.context import HandlerContext, HandlerResult, Repositories
from app.services.handlers.order_state import advance, complete, set_terminal
from app.utils.security import mask_address


def sell_order_id(raw_id: int) -> int:
    """Stored id of a sell-vault order."""
    return raw_id + VAULT_SELL_ORDER_ID_OFFSET


async def _apply_fill(
    repos: Repositories,
    order: Order,
    amount: int,
    counter_order_id: int | None = None,
) -> bool:
    """
    Set filled amount (absolute, capped at sell amount) and counter order.

    Returns:
        True if anything changed
    """
    changes: dict[str, object] = {}
    filled = str(min(int(amount), int(order.sell_amount)))
    if order.filled_amount != filled:
        changes["filled_amount"] = filled
    if counter_order_id is not None and order.counter_order_id != counter_order_id:
        changes["counter_order_id"] = counter_order_id
    if not changes:
        return False
    await repos.orders.update(order, **changes)
    return True


async def _create_vault_order(
    ctx: HandlerContext,
    decoded: DecodedLog,
    *,
    order_id: int,
    maker: str,
    amount: int,
    expires_at: int,
    sell_token: str,
    buy_token: str,
    src_chain_id: int,
    dst_chain_id: int,
) -> HandlerResult:
    repos = ctx.repos
    order, created = await repos.orders.create_if_absent(
        order_id,
        chain_id=decoded.chain_id,
        maker=maker,
        taker=None,
        sell_token=sell_token,
        sell_amount=str(amount),
        buy_token=buy_token,
        buy_amount=str(amount),
        src_chain_id=src_chain_id,
        dst_chain_id=dst_chain_id,
        hash_lock=ZERO_HASH,
        maker_timelock=expires_at,
        taker_timelock=expires_at,
        status=OrderStatus.OPEN,
        cancelled=False,
        filled_amount="0",
        tx_hash=decoded.tx_hash,
        block_number=decoded.block_number,
        log_index=decoded.log_index,
    )
    if not created:
        logger.info(f"[Vault] Order {order_id} already exists")
        return HandlerResult.noop(order.id, "order exists")

    await repos.users.increment_created(maker)
    logger.info(
        f"[Vault] Created order {order_id} by {mask_address(maker)} "
        f"({src_chain_id} -> {dst_chain_id})"
    )
    return HandlerResult.applied(order.id)


async def _load(ctx: HandlerContext, order_id: int, action: str) -> Order | None:
    order = await ctx.repos.orders.get_by_order_id(order_id)
    if order is None:
        logger.warning(f"[Vault] Order {order_id} not found for {action}")
    return order


def _result(order: Order, changed: bool, note: str) -> HandlerResult:
    if changed:
        return HandlerResult.applied(order.id)
    return HandlerResult.noop(order.id, note)


# ----------------------------------------------------------------------
# Buy vault
# ----------------------------------------------------------------------

@handles(CONTRACT_KIND_VAULT_BUY, "OrderCreated")
async def handle_buy_order_created(
    ctx: HandlerContext, decoded: DecodedLog
) -> HandlerResult:
    event: BuyOrderCreated = decoded.event
    return await _create_vault_order(
        ctx,
        decoded,
        order_id=event.order_id,
        maker=event.buyer,
        amount=event.amount,
        expires_at=event.expires_at,
        sell_token=BSC_USDT_ADDRESS,
        buy_token=DSC_USDT_ADDRESS,
        src_chain_id=ctx.vault_buy_chain_id,
        dst_chain_id=ctx.vault_sell_chain_id,
    )


@handles(CONTRACT_KIND_VAULT_BUY, "OrderCancelled")
async def handle_buy_order_cancelled(
    ctx: HandlerContext, decoded: DecodedLog
) -> HandlerResult:
    event: BuyOrderCancelled = decoded.event
    order = await _load(ctx, event.order_id, "cancellation")
    if order is None:
        return HandlerResult.orphaned(f"order {event.order_id} not indexed")

    changed = await set_terminal(
        ctx.repos, order, OrderStatus.CANCELLED, cancelled=True
    )
    return _result(order, changed, "already cancelled")


@handles(CONTRACT_KIND_VAULT_BUY, "OrderMatched")
async def handle_buy_order_matched(
    ctx: HandlerContext, decoded: DecodedLog
) -> HandlerResult:
    event: BuyOrderMatched = decoded.event
    order = await _load(ctx, event.order_id, "match")
    if order is None:
        return HandlerResult.orphaned(f"order {event.order_id} not indexed")

    advanced = await advance(
        ctx.repos, order, OrderStatus.MAKER_LOCKED,
        from_statuses=(OrderStatus.OPEN,),
        taker=event.seller,
    )
    filled = await _apply_fill(ctx.repos, order, event.amount)
    return _result(order, advanced or filled, "match already applied")


@handles(CONTRACT_KIND_VAULT_BUY, "OrderCompleted")
async def handle_buy_order_completed(
    ctx: HandlerContext, decoded: DecodedLog
) -> HandlerResult:
    event: BuyOrderCompleted = decoded.event
    order = await _load(ctx, event.order_id, "completion")
    if order is None:
        return HandlerResult.orphaned(f"order {event.order_id} not indexed")

    filled = await _apply_fill(ctx.repos, order, event.amount)
    completed = await complete(ctx.repos, order)
    return _result(order, filled or completed, "already completed")


@handles(CONTRACT_KIND_VAULT_BUY, "OrderRefunded")
async def handle_buy_order_refunded(
    ctx: HandlerContext, decoded: DecodedLog
) -> HandlerResult:
    event: BuyOrderRefunded = decoded.event
    order = await _load(ctx, event.order_id, "refund")
    if order is None:
        return HandlerResult.orphaned(f"order {event.order_id} not indexed")

    changed = await set_terminal(ctx.repos, order, OrderStatus.REFUNDED)
    return _result(order, changed, "already refunded")


# ----------------------------------------------------------------------
# Sell vault
# ----------------------------------------------------------------------

@handles(CONTRACT_KIND_VAULT_SELL, "SellOrderCreated")
async def handle_sell_order_created(
    ctx: HandlerContext, decoded: DecodedLog
) -> HandlerResult:
    event: SellOrderCreated = decoded.event
    return await _create_vault_order(
        ctx,
        decoded,
        order_id=sell_order_id(event.order_id),
        maker=event.seller,
        amount=event.amount,
        expires_at=event.expires_at,
        sell_token=DSC_USDT_ADDRESS,
        buy_token=BSC_USDT_ADDRESS,
        src_chain_id=ctx.vault_sell_chain_id,
        dst_chain_id=ctx.vault_buy_chain_id,
    )


@handles(CONTRACT_KIND_VAULT_SELL, "DirectFillCreated")
async def handle_direct_fill(
    ctx: HandlerContext, decoded: DecodedLog
) -> HandlerResult:
    """A seller fills a buy order directly: the buy order becomes TAKER_LOCKED."""
    event: DirectFillCreated = decoded.event
    order = await _load(ctx, event.bsc_order_id, "direct fill")
    if order is None:
        return HandlerResult.orphaned(f"order {event.bsc_order_id} not indexed")

    extra = {"taker": event.seller} if order.taker is None else {}
    advanced = await advance(
        ctx.repos, order, OrderStatus.TAKER_LOCKED,
        from_statuses=(OrderStatus.OPEN, OrderStatus.MAKER_LOCKED),
        **extra,
    )
    filled = await _apply_fill(
        ctx.repos, order, event.amount, sell_order_id(event.dsc_order_id)
    )

    logger.info(
        f"[Vault] Direct fill: sell order {event.dsc_order_id} filling "
        f"buy order {event.bsc_order_id}"
    )
    return _result(order, advanced or filled, "fill already applied")


@handles(CONTRACT_KIND_VAULT_SELL, "OrderMatched")
async def handle_sell_order_matched(
    ctx: HandlerContext, decoded: DecodedLog
) -> HandlerResult:
    """Link a sell order with the buy order it was matched to."""
    event: SellOrderMatched = decoded.event
    sell_id = sell_order_id(event.dsc_order_id)
    order = await _load(ctx, sell_id, "match")
    if order is None:
        return HandlerResult.orphaned(f"order {sell_id} not indexed")

    advanced = await advance(
        ctx.repos, order, OrderStatus.MAKER_LOCKED,
        from_statuses=(OrderStatus.OPEN,),
        taker=event.buyer,
    )
    filled = await _apply_fill(ctx.repos, order, event.amount, event.bsc_order_id)

    counter_changed = False
    buy_order = await ctx.repos.orders.get_by_order_id(event.bsc_order_id)
    if buy_order is not None:
        counter_changed = await _apply_fill(
            ctx.repos, buy_order, event.amount, sell_id
        )

    return _result(order, advanced or filled or counter_changed, "match already applied")


@handles(CONTRACT_KIND_VAULT_SELL, "OrderCompleted")
async def handle_sell_order_completed(
    ctx: HandlerContext, decoded: DecodedLog
) -> HandlerResult:
    """Complete both sides of a cross-chain vault trade."""
    event: SellOrderCompleted = decoded.event
    sell_order = await ctx.repos.orders.get_by_order_id(sell_order_id(event.dsc_order_id))
    buy_order = await ctx.repos.orders.get_by_order_id(event.bsc_order_id)

    if sell_order is None and buy_order is None:
        logger.warning(
            f"[Vault] Neither sell order {event.dsc_order_id} nor buy order "
            f"{event.bsc_order_id} found for completion"
        )
        return HandlerResult.orphaned(
            f"orders {event.dsc_order_id}/{event.bsc_order_id} not indexed"
        )

    changed = False
    for order in (sell_order, buy_order):
        if order is None:
            continue
        if await _apply_fill(ctx.repos, order, event.amount):
            changed = True
        if await complete(ctx.repos, order):
            changed = True

    logger.info(
        f"[Vault] Completed cross-chain trade: buy {event.bsc_order_id} "
        f"<-> sell {event.dsc_order_id}"
    )
    primary = sell_order or buy_order
    return _result(primary, changed, "already completed")


@handles(CONTRACT_KIND_VAULT_SELL, "OrderCancelled")
async def handle_sell_order_cancelled(
    ctx: HandlerContext, decoded: DecodedLog
) -> HandlerResult:
    event: SellOrderCancelled = decoded.event
    sell_id = sell_order_id(event.order_id)
    order = await _load(ctx, sell_id, "cancellation")
    if order is None:
        return HandlerResult.orphaned(f"order {sell_id} not indexed")

    changed = await set_terminal(
        ctx.repos, order, OrderStatus.CANCELLED, cancelled=True
    )
    return _result(order, changed, "already cancelled")
