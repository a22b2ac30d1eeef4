"""
Contract event decoding and dispatch.
"""

from app.services.events.decoder import DecodedLog, EventDecoder
from app.services.events.dispatcher import EventDispatcher
from app.services.events.registry import (
    HandlerRegistry,
    build_default_registry,
    handles,
)

__all__ = [
    "DecodedLog",
    "EventDecoder",
    "EventDispatcher",
    "HandlerRegistry",
    "build_default_registry",
    "handles",
]
