"""
Domain Events Module

Architectural Intent:
- Immutable records of what happened to a rollout, stamped at creation
- aggregate_id is always the rollout id
- to_dict() flattens an event for JSON output and listeners outside Python
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime, UTC
from typing import Any


def _now() -> str:
    return datetime.now(UTC).isoformat()


@dataclass(frozen=True)
class DomainEvent:
    occurred_at: str = field(default_factory=_now, init=False, repr=False)
    aggregate_id: str = ""

    @property
    def event_type(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        # failed_nodes and similar tuples serialize as lists
        for key, value in data.items():
            if isinstance(value, tuple):
                data[key] = list(value)
        data["event_type"] = self.event_type
        return data
