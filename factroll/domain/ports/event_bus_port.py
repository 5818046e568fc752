"""
Event Bus Port

Architectural Intent:
- Where finished rollouts hand their accumulated domain events to listeners
  (chat notifications, audit trails)
- Subscribing to a base event class receives every subclass of it
"""

from typing import Awaitable, Callable, Protocol, Sequence, runtime_checkable
from factroll.domain.events.event_base import DomainEvent

EventHandler = Callable[[DomainEvent], Awaitable[None]]


@runtime_checkable
class EventBusPort(Protocol):
    async def publish(self, events: Sequence[DomainEvent]) -> None: ...

    def subscribe(self, event_type: type[DomainEvent], handler: EventHandler) -> None: ...
