"""In-process publish/subscribe keyed by event class."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable

logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]


class EventBus:
    """Dispatches typed events to the handlers registered for their class."""

    def __init__(self) -> None:
        self._handlers: dict[type, list[Handler]] = defaultdict(list)

    def on(self, event_type: type, handler: Handler) -> None:
        self._handlers[event_type].append(handler)

    def off(self, event_type: type, handler: Handler) -> None:
        if handler in self._handlers.get(event_type, []):
            self._handlers[event_type].remove(handler)

    def trigger(self, event: Any) -> int:
        """Run every handler for ``type(event)`` and return how many ran cleanly.

        A failing handler is logged and does not stop the others.
        """
        ok = 0
        for handler in list(self._handlers.get(type(event), [])):
            try:
                handler(event)
                ok += 1
            except Exception:
                logger.exception(
                    "Handler %s failed for %s", getattr(handler, "__name__", handler), type(event).__name__
                )
        return ok
