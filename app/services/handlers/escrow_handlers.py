"""
Escrow HTLC event handlers.

Locked creates the escrow and moves the order forward; Claimed and
Refunded resolve the escrow by lock id.
"""

from loguru import logger

from app.config.settings import CONTRACT_KIND_ESCROW
from app.models.enums import EscrowSide, EscrowStatus, OrderStatus
from app.services.events.decoder import DecodedLog
from app.services.events.registry import handles
from app.services.events.types import Claimed, Locked, Refunded
from app.services.handlers.context import HandlerContext, HandlerResult
from app.services.handlers.order_state import advance, complete, set_terminal
from app.utils.security import mask_address, mask_secret, mask_tx_hash


@handles(CONTRACT_KIND_ESCROW, "Locked")
async def handle_locked(
    ctx: HandlerContext, decoded: DecodedLog
) -> HandlerResult:
    """
    Record an escrow deposit.

    Maker-lock: depositor is the order maker and the lock is on the
    order's source chain. Anything else is a taker-lock.
    """
    event: Locked = decoded.event
    repos = ctx.repos

    order = await repos.orders.get_by_order_id(event.order_id)
    if order is None:
        logger.warning(
            f"[Escrow] Order {event.order_id} not found for lock "
            f"{mask_tx_hash(event.lock_id)}"
        )
        return HandlerResult.orphaned(f"order {event.order_id} not indexed")

    is_maker_lock = (
        event.depositor == order.maker
        and decoded.chain_id == order.src_chain_id
    )
    side = EscrowSide.MAKER if is_maker_lock else EscrowSide.TAKER

    escrow, created = await repos.escrows.upsert_lock(
        event.lock_id,
        order_pk=order.id,
        chain_id=decoded.chain_id,
        side=side,
        depositor=event.depositor,
        recipient=event.recipient,
        token=event.token,
        amount=str(event.amount),
        hash_lock=event.hash_lock,
        timelock=event.timelock,
        status=EscrowStatus.LOCKED,
        tx_hash=decoded.tx_hash,
        block_number=decoded.block_number,
        log_index=decoded.log_index,
    )

    if is_maker_lock:
        advanced = await advance(
            repos, order, OrderStatus.MAKER_LOCKED,
            from_statuses=(OrderStatus.OPEN,),
        )
    else:
        extra = {"taker": event.depositor} if order.taker is None else {}
        advanced = await advance(
            repos, order, OrderStatus.TAKER_LOCKED,
            from_statuses=(OrderStatus.MAKER_LOCKED,),
            **extra,
        )
        if not advanced and extra:
            # Taker known before the maker lock arrived
            await repos.orders.update(order, **extra)
            advanced = True

    if not created and not advanced:
        return HandlerResult.noop(order.id, "lock already applied")

    logger.info(
        f"[Escrow] {side} lock {mask_tx_hash(event.lock_id)} for order "
        f"{event.order_id} on chain {decoded.chain_id} by "
        f"{mask_address(event.depositor)}"
    )
    return HandlerResult.applied(order.id)


@handles(CONTRACT_KIND_ESCROW, "Claimed")
async def handle_claimed(
    ctx: HandlerContext, decoded: DecodedLog
) -> HandlerResult:
    """
    Mark escrow claimed, propagate the secret, complete the order once
    every escrow (at least maker + taker) is claimed.
    """
    event: Claimed = decoded.event
    repos = ctx.repos

    escrow = await repos.escrows.get_by_lock_id(event.lock_id)
    if escrow is None:
        logger.warning(
            f"[Escrow] Escrow {mask_tx_hash(event.lock_id)} not found for claim"
        )
        return HandlerResult.orphaned(f"escrow {event.lock_id} not indexed")

    order = await repos.orders.get_by_pk(escrow.order_pk)

    secret = escrow.secret
    if secret is None and ctx.secrets is not None:
        secret = await ctx.secrets.extract(decoded.chain_id, decoded.tx_hash)

    changed = False
    if escrow.status != EscrowStatus.CLAIMED or escrow.secret != secret:
        await repos.escrows.update(
            escrow,
            status=EscrowStatus.CLAIMED,
            secret=secret,
            claimed_tx_hash=decoded.tx_hash,
        )
        changed = True

    if order is None:
        return HandlerResult.applied(None) if changed else HandlerResult.noop()

    # First revealed secret wins
    if secret and not order.secret:
        await repos.orders.update(order, secret=secret)
        logger.info(
            f"[Escrow] Secret {mask_secret(secret)} revealed for order {order.order_id}"
        )
        changed = True

    escrows = await repos.escrows.list_by_order(order.id)
    if len(escrows) >= 2 and all(e.status == EscrowStatus.CLAIMED for e in escrows):
        if await complete(repos, order):
            changed = True

    if not changed:
        return HandlerResult.noop(order.id, "claim already applied")

    logger.info(
        f"[Escrow] Claimed {mask_tx_hash(event.lock_id)} for order {order.order_id}"
    )
    return HandlerResult.applied(order.id)


@handles(CONTRACT_KIND_ESCROW, "Refunded")
async def handle_refunded(
    ctx: HandlerContext, decoded: DecodedLog
) -> HandlerResult:
    event: Refunded = decoded.event
    repos = ctx.repos

    escrow = await repos.escrows.get_by_lock_id(event.lock_id)
    if escrow is None:
        logger.warning(
            f"[Escrow] Escrow {mask_tx_hash(event.lock_id)} not found for refund"
        )
        return HandlerResult.orphaned(f"escrow {event.lock_id} not indexed")

    changed = False
    if escrow.status != EscrowStatus.REFUNDED:
        await repos.escrows.update(
            escrow,
            status=EscrowStatus.REFUNDED,
            refunded_tx_hash=decoded.tx_hash,
        )
        changed = True

    order = await repos.orders.get_by_pk(escrow.order_pk)
    if order is not None and await set_terminal(repos, order, OrderStatus.REFUNDED):
        changed = True

    order_pk = order.id if order is not None else None
    if not changed:
        return HandlerResult.noop(order_pk, "refund already applied")

    logger.info(f"[Escrow] Refunded {mask_tx_hash(event.lock_id)}")
    return HandlerResult.applied(order_pk)
