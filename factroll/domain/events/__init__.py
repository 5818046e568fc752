"""
Domain Events Package

Architectural Intent:
- Contains domain events and event bus infrastructure
- Events are the primary mechanism for cross-boundary communication
"""

from factroll.domain.events.event_base import DomainEvent
from factroll.domain.events.rollout_events import (
    RolloutStartedEvent,
    RolloutStateChangedEvent,
    BatchStartedEvent,
    BatchSucceededEvent,
    BatchFailedEvent,
    RolloutCompletedEvent,
    RolloutFailedEvent,
)

__all__ = [
    "DomainEvent",
    "RolloutStartedEvent",
    "RolloutStateChangedEvent",
    "BatchStartedEvent",
    "BatchSucceededEvent",
    "BatchFailedEvent",
    "RolloutCompletedEvent",
    "RolloutFailedEvent",
]
