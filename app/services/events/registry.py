"""
Handler registry.

Maps (contract kind, event name) to the domain handler applying it.
Handlers mark themselves with `@handles(...)`; `build_default_registry`
collects them from the handler modules at startup.
"""

from collections.abc import Awaitable, Callable, Iterable
from types import ModuleType
from typing import TYPE_CHECKING, Any

from loguru import logger

if TYPE_CHECKING:
    from app.services.events.decoder import DecodedLog
    from app.services.handlers.context import HandlerContext, HandlerResult


Handler = Callable[["HandlerContext", "DecodedLog"], Awaitable["HandlerResult"]]

_HANDLES_ATTR = "__handles__"


def handles(kind: str, event_name: str) -> Callable[[Handler], Handler]:
    """Mark a coroutine function as the handler of one event type."""
    def decorator(func: Handler) -> Handler:
        keys = list(getattr(func, _HANDLES_ATTR, []))
        keys.append((kind, event_name))
        setattr(func, _HANDLES_ATTR, keys)
        return func
    return decorator


class HandlerRegistry:
    """(contract kind, event name) -> handler."""

    def __init__(self) -> None:
        self._handlers: dict[tuple[str, str], Handler] = {}

    def register(self, kind: str, event_name: str, handler: Handler) -> None:
        """
        Register a handler.

        Raises:
            ValueError: If the event type already has a handler
        """
        key = (kind, event_name)
        if key in self._handlers:
            raise ValueError(f"Handler for {kind}.{event_name} registered twice")
        self._handlers[key] = handler

    def register_module(self, module: ModuleType) -> int:
        """Register every `@handles` function of a module."""
        count = 0
        for value in vars(module).values():
            for kind, event_name in getattr(value, _HANDLES_ATTR, []):
                self.register(kind, event_name, value)
                count += 1
        return count

    def get(self, kind: str, event_name: str) -> Handler | None:
        return self._handlers.get((kind, event_name))

    def __contains__(self, key: Any) -> bool:
        return key in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)

    def keys(self) -> Iterable[tuple[str, str]]:
        return self._handlers.keys()


def build_default_registry() -> HandlerRegistry:
    """Registry with all orderbook, escrow and vault handlers."""
    from app.services.handlers import (
        escrow_handlers,
        orderbook_handlers,
        vault_handlers,
    )

    registry = HandlerRegistry()
    for module in (orderbook_handlers, escrow_handlers, vault_handlers):
        registry.register_module(module)

    logger.debug(f"[Registry] {len(registry)} event handlers registered")
    return registry
