"""
Batch Value Objects

Architectural Intent:
- Batch is a set of nodes sharing one fact value, deployed as a unit
- EphemeralScope names the transient branch and node group owned by a batch
- Branch names are derived deterministically from the fact value and rollout id
"""

from __future__ import annotations
import re
from dataclasses import dataclass, replace
from typing import Optional

# Environment names on the platform only allow lowercase alnum and underscore
_UNSAFE_RE = re.compile(r"[^a-z0-9_]")


@dataclass(frozen=True)
class Batch:
    key: str
    nodes: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.key:
            raise ValueError("Batch key cannot be empty")
        if not self.nodes:
            raise ValueError(f"Batch {self.key!r} has no nodes")
        object.__setattr__(self, "nodes", tuple(self.nodes))

    def __len__(self) -> int:
        return len(self.nodes)

    def __str__(self) -> str:
        return f"{self.key} ({len(self.nodes)} nodes)"


@dataclass(frozen=True)
class EphemeralScope:
    """
    Value Object for the temporary branch and node group of a single batch.
    group_id/environment stay None until the node group has been created.
    """
    branch: str
    group_id: Optional[str] = None
    environment: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.branch:
            raise ValueError("Ephemeral branch name cannot be empty")

    @staticmethod
    def branch_name_for(fact_value: str, rollout_id: str) -> str:
        safe_value = _UNSAFE_RE.sub("_", str(fact_value).lower())
        safe_id = _UNSAFE_RE.sub("_", rollout_id.lower())
        return f"{safe_value}_{safe_id}"

    def with_group(self, group_id: str, environment: Optional[str]) -> "EphemeralScope":
        return replace(self, group_id=group_id, environment=environment or self.branch)

    @property
    def has_group(self) -> bool:
        return self.group_id is not None
