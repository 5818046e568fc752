"""
Event Bus Infrastructure

Architectural Intent:
- In-memory EventBusPort used by the CLI and tests
- Handlers run in subscription order, one event at a time, in the order the
  rollout emitted them
- A handler registered for a base class receives its subclasses too, so
  subscribing to DomainEvent observes the whole rollout
- Handler exceptions propagate to the publisher
"""

import logging
from typing import Sequence
from factroll.domain.events.event_base import DomainEvent
from factroll.domain.ports.event_bus_port import EventHandler

logger = logging.getLogger(__name__)


class EventBus:
    def __init__(self) -> None:
        self._handlers: dict[type[DomainEvent], list[EventHandler]] = {}

    def _handlers_for(self, event: DomainEvent) -> list[EventHandler]:
        handlers: list[EventHandler] = []
        for cls in type(event).__mro__:
            handlers.extend(self._handlers.get(cls, ()))
        return handlers

    async def publish(self, events: Sequence[DomainEvent]) -> None:
        for event in events:
            handlers = self._handlers_for(event)
            logger.debug(
                "Publishing %s for %s to %d handler(s)",
                event.event_type,
                event.aggregate_id,
                len(handlers),
            )
            for handler in handlers:
                await handler(event)

    def subscribe(self, event_type: type[DomainEvent], handler: EventHandler) -> None:
        self._handlers.setdefault(event_type, []).append(handler)
