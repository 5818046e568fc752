"""
Rollout Domain Events

Published by the Rollout aggregate as it moves through its states.
"""

from dataclasses import dataclass
from typing import Optional
from factroll.domain.events.event_base import DomainEvent


@dataclass(frozen=True)
class RolloutStartedEvent(DomainEvent):
    group_id: str = ""
    commit: str = ""
    fact: str = ""


@dataclass(frozen=True)
class RolloutStateChangedEvent(DomainEvent):
    from_state: str = ""
    to_state: str = ""


@dataclass(frozen=True)
class BatchStartedEvent(DomainEvent):
    batch_key: str = ""
    node_count: int = 0
    noop: bool = True


@dataclass(frozen=True)
class BatchSucceededEvent(DomainEvent):
    batch_key: str = ""
    node_count: int = 0


@dataclass(frozen=True)
class BatchFailedEvent(DomainEvent):
    batch_key: str = ""
    failed_nodes: tuple[str, ...] = ()
    error_message: str = ""


@dataclass(frozen=True)
class RolloutCompletedEvent(DomainEvent):
    batches: int = 0
    direct_deploy: bool = False


@dataclass(frozen=True)
class RolloutFailedEvent(DomainEvent):
    phase: str = ""
    error_message: str = ""
    batch_key: Optional[str] = None
