"""
Rollout DTOs

Architectural Intent:
- Data Transfer Objects for the rollout use case boundaries
- Every input is validated once, at construction, instead of being read from
  ambient process state while the rollout runs
"""

from __future__ import annotations
import uuid
from dataclasses import dataclass, field
from typing import Union
from factroll.domain.services.fact_grouper import Grouping, MissingFactPolicy
from factroll.domain.value_objects.revision import Revision
from factroll.domain.value_objects.target_group import TargetGroup


def _new_rollout_id() -> str:
    return uuid.uuid4().hex[:8]


@dataclass(frozen=True)
class RolloutRequest:
    revision: str
    target_group: str
    target_branch: str
    fact: str
    noop: bool = False
    post_noop_enforce: bool = False
    batch_delay_seconds: float = 0.0
    fail_if_no_nodes: bool = False
    repo: str = "origin"
    rollout_id: str = field(default_factory=_new_rollout_id)
    missing_fact_policy: Union[MissingFactPolicy, str] = MissingFactPolicy.FAIL

    def __post_init__(self) -> None:
        if not self.target_group:
            raise ValueError("target_group cannot be empty")
        if not self.fact:
            raise ValueError("fact cannot be empty")
        if not self.rollout_id:
            raise ValueError("rollout_id cannot be empty")
        if self.batch_delay_seconds < 0:
            raise ValueError("batch_delay_seconds cannot be negative")
        if not isinstance(self.missing_fact_policy, MissingFactPolicy):
            object.__setattr__(
                self, "missing_fact_policy", MissingFactPolicy(self.missing_fact_policy)
            )
        # Revision validates commit, branch and repo
        self.to_revision()

    def to_revision(self) -> Revision:
        return Revision(
            commit=self.revision, target_branch=self.target_branch, repo=self.repo
        )

    @property
    def enforce_after_noop(self) -> bool:
        return self.noop and self.post_noop_enforce


@dataclass(frozen=True)
class PlanRequest:
    target_group: str
    fact: str
    missing_fact_policy: Union[MissingFactPolicy, str] = MissingFactPolicy.EXCLUDE

    def __post_init__(self) -> None:
        if not self.target_group:
            raise ValueError("target_group cannot be empty")
        if not self.fact:
            raise ValueError("fact cannot be empty")
        if not isinstance(self.missing_fact_policy, MissingFactPolicy):
            object.__setattr__(
                self, "missing_fact_policy", MissingFactPolicy(self.missing_fact_policy)
            )


@dataclass(frozen=True)
class PlanResponse:
    target: TargetGroup
    grouping: Grouping

    @property
    def direct_deploy(self) -> bool:
        return self.target.is_empty
