"""Unit tests for EventDispatcher: storage, orphans, failures."""

from unittest.mock import AsyncMock

import pytest

from app.config.settings import (
    CONTRACT_KIND_ESCROW,
    CONTRACT_KIND_ORDERBOOK,
    CONTRACT_KIND_VAULT_BUY,
)
from app.models import OrderStatus
from app.services.events.dispatcher import EventDispatcher
from app.services.events.registry import HandlerRegistry, build_default_registry
from app.services.handlers.context import HandlerOutcome, HandlerResult
from tests.support import ESCROW_A_ADDRESS, HASH_LOCK, LOCK_MAKER, TAKER


@pytest.fixture
def dispatcher():
    return EventDispatcher(build_default_registry(), max_orphan_attempts=3)


class TestIdempotentStorage:
    """The same log is stored once however often it is dispatched."""

    @pytest.mark.asyncio
    async def test_same_log_twice_one_row(
        self, dispatcher, repos, store, make_decoded, order_created_args
    ):
        decoded = make_decoded(CONTRACT_KIND_ORDERBOOK, "OrderCreated", order_created_args())

        first = await dispatcher.dispatch(repos, decoded)
        second = await dispatcher.dispatch(repos, decoded)

        assert first.outcome == HandlerOutcome.APPLIED
        assert second.outcome == HandlerOutcome.NOOP
        assert len(store.events) == 1
        assert len(store.orders) == 1
        record = store.events[decoded.key]
        assert record.processed is True
        assert record.order_pk == store.orders[1].id

    @pytest.mark.asyncio
    async def test_reobserved_log_refreshes_row(
        self, dispatcher, repos, store, make_decoded, order_created_args
    ):
        decoded = make_decoded(CONTRACT_KIND_ORDERBOOK, "OrderCreated", order_created_args())
        await dispatcher.dispatch(repos, decoded)
        record = store.events[decoded.key]
        record.removed = True
        record.block_hash = "0x" + "ff" * 32

        await dispatcher.dispatch(repos, decoded)

        assert len(store.events) == 1
        assert record.removed is False
        assert record.block_hash == decoded.block_hash

    @pytest.mark.asyncio
    async def test_event_committed_before_handler_runs(
        self, repos, mock_session, make_decoded, order_created_args
    ):
        calls = []
        mock_session.commit.side_effect = lambda: calls.append("commit")

        async def handler(ctx, decoded):
            calls.append("handler")
            return HandlerResult.noop()

        registry = HandlerRegistry()
        registry.register(CONTRACT_KIND_ORDERBOOK, "OrderCreated", handler)
        decoded = make_decoded(CONTRACT_KIND_ORDERBOOK, "OrderCreated", order_created_args())

        await EventDispatcher(registry).dispatch(repos, decoded)

        assert calls == ["commit", "handler", "commit"]


class TestOrphans:
    """Events whose order/escrow is not indexed yet."""

    def claimed(self, make_decoded):
        return make_decoded(
            CONTRACT_KIND_ESCROW,
            "Claimed",
            {"lockId": LOCK_MAKER, "orderId": 1, "recipient": TAKER, "hashLock": HASH_LOCK},
            address=ESCROW_A_ADDRESS,
        )

    @pytest.mark.asyncio
    async def test_orphan_kept_for_replay(self, dispatcher, repos, store, make_decoded):
        decoded = self.claimed(make_decoded)

        result = await dispatcher.dispatch(repos, decoded)

        assert result.outcome == HandlerOutcome.ORPHANED
        record = store.events[decoded.key]
        assert record.processed is False
        assert record.attempts == 1

    @pytest.mark.asyncio
    async def test_orphan_given_up_after_max_attempts(
        self, dispatcher, repos, store, make_decoded
    ):
        decoded = self.claimed(make_decoded)

        for _ in range(3):
            await dispatcher.dispatch(repos, decoded)

        record = store.events[decoded.key]
        assert record.attempts == 3
        assert record.processed is True
        assert record.processing_notes.startswith("orphaned:")


class TestFailures:
    @pytest.mark.asyncio
    async def test_handler_error_rolls_back_and_raises(
        self, repos, store, mock_session, make_decoded, order_created_args
    ):
        registry = HandlerRegistry()
        registry.register(
            CONTRACT_KIND_ORDERBOOK,
            "OrderCreated",
            AsyncMock(side_effect=RuntimeError("boom")),
        )
        decoded = make_decoded(CONTRACT_KIND_ORDERBOOK, "OrderCreated", order_created_args())

        with pytest.raises(RuntimeError, match="boom"):
            await EventDispatcher(registry).dispatch(repos, decoded)

        mock_session.rollback.assert_awaited_once()
        assert store.events[decoded.key].processed is False

    @pytest.mark.asyncio
    async def test_event_without_handler_marked_processed(
        self, repos, store, make_decoded, order_created_args
    ):
        decoded = make_decoded(CONTRACT_KIND_ORDERBOOK, "OrderCreated", order_created_args())

        result = await EventDispatcher(HandlerRegistry()).dispatch(repos, decoded)

        assert result.outcome == HandlerOutcome.NOOP
        assert store.events[decoded.key].processed is True
        assert store.orders == {}

    @pytest.mark.asyncio
    async def test_vault_chain_ids_passed_to_handlers(self, repos, store, make_decoded):
        dispatcher = EventDispatcher(
            build_default_registry(), vault_buy_chain_id=97, vault_sell_chain_id=98
        )
        decoded = make_decoded(
            CONTRACT_KIND_VAULT_BUY,
            "OrderCreated",
            {"orderId": 4, "buyer": TAKER, "amount": 50, "expiresAt": 100},
            chain_id=97,
        )

        await dispatcher.dispatch(repos, decoded)

        order = store.orders[4]
        assert (order.src_chain_id, order.dst_chain_id) == (97, 98)
        assert order.status == OrderStatus.OPEN
