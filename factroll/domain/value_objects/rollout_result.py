"""
Rollout Result Value Objects

Architectural Intent:
- Terminal, structured description of a rollout
- Carries per-batch reports so partial progress is visible on failure
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class BatchReport:
    key: str
    nodes: tuple[str, ...]
    phase: str
    failed_nodes: tuple[str, ...] = ()
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and not self.failed_nodes


@dataclass(frozen=True)
class RolloutResult:
    rollout_id: str
    success: bool
    state: str
    cause: Optional[str] = None
    phase: Optional[str] = None
    batch_key: Optional[str] = None
    failed_nodes: tuple[str, ...] = ()
    batch_reports: tuple[BatchReport, ...] = ()
    excluded_nodes: tuple[str, ...] = ()
    direct_deploy: bool = False
    error: Optional[Exception] = field(default=None, compare=False, repr=False)

    def describe(self) -> str:
        if self.success:
            if self.direct_deploy:
                return f"Rollout {self.rollout_id} succeeded via direct deploy"
            return (
                f"Rollout {self.rollout_id} succeeded "
                f"({len(self.batch_reports)} batch reports)"
            )
        text = f"Rollout {self.rollout_id} failed"
        if self.phase:
            text += f" during {self.phase}"
        text += f": {self.cause}"
        if self.failed_nodes:
            text += f" [failed nodes: {', '.join(self.failed_nodes)}]"
        return text

    def to_dict(self) -> dict[str, Any]:
        return {
            "rollout_id": self.rollout_id,
            "success": self.success,
            "state": self.state,
            "cause": self.cause,
            "phase": self.phase,
            "batch_key": self.batch_key,
            "failed_nodes": list(self.failed_nodes),
            "excluded_nodes": list(self.excluded_nodes),
            "direct_deploy": self.direct_deploy,
            "batches": [
                {
                    "key": r.key,
                    "phase": r.phase,
                    "nodes": list(r.nodes),
                    "failed_nodes": list(r.failed_nodes),
                    "error": r.error,
                }
                for r in self.batch_reports
            ],
        }
