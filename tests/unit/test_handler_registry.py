"""Unit tests for the handler registration table."""

import types

import pytest

from app.config.settings import (
    CONTRACT_KIND_ESCROW,
    CONTRACT_KIND_ORDERBOOK,
    CONTRACT_KIND_VAULT_BUY,
    CONTRACT_KIND_VAULT_SELL,
)
from app.services.events.registry import HandlerRegistry, build_default_registry, handles
from app.services.events.types import EVENT_TYPES
from app.services.handlers import escrow_handlers, orderbook_handlers


class TestHandlerRegistry:
    """Tests for HandlerRegistry."""

    def test_default_registry_covers_every_event_type(self):
        registry = build_default_registry()

        assert set(registry.keys()) == set(EVENT_TYPES)
        assert len(registry) == 15

    def test_lookup(self):
        registry = build_default_registry()

        assert registry.get(CONTRACT_KIND_ESCROW, "Locked") is escrow_handlers.handle_locked
        assert (
            registry.get(CONTRACT_KIND_ORDERBOOK, "OrderCreated")
            is orderbook_handlers.handle_order_created
        )
        assert (CONTRACT_KIND_VAULT_BUY, "OrderCompleted") in registry
        assert (CONTRACT_KIND_VAULT_SELL, "OrderCompleted") in registry
        assert registry.get(CONTRACT_KIND_ESCROW, "Paused") is None

    def test_duplicate_registration_rejected(self):
        registry = HandlerRegistry()

        async def handler(ctx, decoded):
            return None

        registry.register("kind", "Event", handler)
        with pytest.raises(ValueError, match="registered twice"):
            registry.register("kind", "Event", handler)

    def test_register_module_collects_marked_functions(self):
        @handles("kind", "First")
        @handles("kind", "Second")
        async def handler(ctx, decoded):
            return None

        async def unmarked(ctx, decoded):
            return None

        module = types.ModuleType("custom_handlers")
        module.handler = handler
        module.unmarked = unmarked

        registry = HandlerRegistry()
        count = registry.register_module(module)

        assert count == 2
        assert registry.get("kind", "First") is handler
        assert registry.get("kind", "Second") is handler
