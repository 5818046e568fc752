"""
Rollout Module

Architectural Intent:
- Rollout aggregate is the consistency boundary for one release moving through
  the fleet
- Lifecycle managed through named states; only the transitions listed in
  ALLOWED_TRANSITIONS are legal
- All state changes produce new instances to ensure auditability
- Domain events accumulate on the aggregate and are published once the
  rollout reaches a terminal state

States:
    RESOLVING -> APPROVING -> DIRECT_DEPLOY -> DONE
    RESOLVING -> APPROVING -> BATCHING -> FINALIZING_BRANCH -> FINAL_DEPLOY
        -> [ENFORCE_PHASE] -> DONE
    FAILED is reachable from every non-terminal state.
"""

from __future__ import annotations
from enum import Enum
from typing import Optional
from factroll.domain.value_objects.revision import Revision
from factroll.domain.value_objects.batch import Batch
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


class RolloutState(Enum):
    RESOLVING = "resolving"
    APPROVING = "approving"
    DIRECT_DEPLOY = "direct_deploy"
    BATCHING = "batching"
    FINALIZING_BRANCH = "finalizing_branch"
    FINAL_DEPLOY = "final_deploy"
    ENFORCE_PHASE = "enforce_phase"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RolloutState.DONE, RolloutState.FAILED)


ALLOWED_TRANSITIONS: dict[RolloutState, frozenset[RolloutState]] = {
    RolloutState.RESOLVING: frozenset({RolloutState.APPROVING}),
    RolloutState.APPROVING: frozenset(
        {RolloutState.DIRECT_DEPLOY, RolloutState.BATCHING}
    ),
    RolloutState.DIRECT_DEPLOY: frozenset({RolloutState.DONE}),
    RolloutState.BATCHING: frozenset({RolloutState.FINALIZING_BRANCH}),
    RolloutState.FINALIZING_BRANCH: frozenset({RolloutState.FINAL_DEPLOY}),
    RolloutState.FINAL_DEPLOY: frozenset(
        {RolloutState.ENFORCE_PHASE, RolloutState.DONE}
    ),
    RolloutState.ENFORCE_PHASE: frozenset({RolloutState.DONE}),
    RolloutState.DONE: frozenset(),
    RolloutState.FAILED: frozenset(),
}


class Rollout:
    __slots__ = (
        "_rollout_id",
        "_revision",
        "_group_id",
        "_fact",
        "_state",
        "_batches",
        "_completed_batches",
        "_error_message",
        "_domain_events",
    )

    def __init__(
        self,
        rollout_id: str,
        revision: Revision,
        group_id: str,
        fact: str,
        state: RolloutState = RolloutState.RESOLVING,
        batches: tuple[Batch, ...] = (),
        completed_batches: tuple[str, ...] = (),
        error_message: Optional[str] = None,
        domain_events: tuple[DomainEvent, ...] = (),
    ):
        self._rollout_id = rollout_id
        self._revision = revision
        self._group_id = group_id
        self._fact = fact
        self._state = state
        self._batches = batches
        self._completed_batches = completed_batches
        self._error_message = error_message
        self._domain_events = domain_events

    @classmethod
    def start(
        cls, rollout_id: str, revision: Revision, group_id: str, fact: str
    ) -> "Rollout":
        return cls(
            rollout_id=rollout_id,
            revision=revision,
            group_id=group_id,
            fact=fact,
            domain_events=(
                RolloutStartedEvent(
                    aggregate_id=rollout_id,
                    group_id=group_id,
                    commit=revision.commit,
                    fact=fact,
                ),
            ),
        )

    @property
    def rollout_id(self) -> str:
        return self._rollout_id

    @property
    def revision(self) -> Revision:
        return self._revision

    @property
    def group_id(self) -> str:
        return self._group_id

    @property
    def fact(self) -> str:
        return self._fact

    @property
    def state(self) -> RolloutState:
        return self._state

    @property
    def batches(self) -> tuple[Batch, ...]:
        return self._batches

    @property
    def completed_batches(self) -> tuple[str, ...]:
        return self._completed_batches

    @property
    def error_message(self) -> Optional[str]:
        return self._error_message

    @property
    def domain_events(self) -> tuple[DomainEvent, ...]:
        return self._domain_events

    def _evolve(self, *events: DomainEvent, **changes) -> "Rollout":
        fields = {
            "rollout_id": self._rollout_id,
            "revision": self._revision,
            "group_id": self._group_id,
            "fact": self._fact,
            "state": self._state,
            "batches": self._batches,
            "completed_batches": self._completed_batches,
            "error_message": self._error_message,
            "domain_events": self._domain_events + events,
        }
        fields.update(changes)
        return Rollout(**fields)

    def transition(self, to_state: RolloutState) -> "Rollout":
        if to_state == RolloutState.FAILED:
            raise ValueError("Use fail() to move a rollout to FAILED")
        if to_state not in ALLOWED_TRANSITIONS[self._state]:
            raise ValueError(
                f"Illegal rollout transition {self._state.name} -> {to_state.name}"
            )
        return self._evolve(
            RolloutStateChangedEvent(
                aggregate_id=self._rollout_id,
                from_state=self._state.value,
                to_state=to_state.value,
            ),
            state=to_state,
        )

    def with_batches(self, batches: tuple[Batch, ...]) -> "Rollout":
        if self._state != RolloutState.BATCHING:
            raise ValueError("Batches can only be assigned while BATCHING")
        return self._evolve(batches=tuple(batches))

    def begin_batch(self, batch: Batch, noop: bool) -> "Rollout":
        if self._state not in (RolloutState.BATCHING, RolloutState.ENFORCE_PHASE):
            raise ValueError(f"Cannot run a batch while {self._state.name}")
        return self._evolve(
            BatchStartedEvent(
                aggregate_id=self._rollout_id,
                batch_key=batch.key,
                node_count=len(batch),
                noop=noop,
            )
        )

    def batch_succeeded(self, batch: Batch) -> "Rollout":
        return self._evolve(
            BatchSucceededEvent(
                aggregate_id=self._rollout_id,
                batch_key=batch.key,
                node_count=len(batch),
            ),
            completed_batches=self._completed_batches + (batch.key,),
        )

    def batch_failed(
        self, batch: Batch, failed_nodes: tuple[str, ...], message: str
    ) -> "Rollout":
        return self._evolve(
            BatchFailedEvent(
                aggregate_id=self._rollout_id,
                batch_key=batch.key,
                failed_nodes=tuple(sorted(failed_nodes)),
                error_message=message,
            )
        )

    def complete(self) -> "Rollout":
        rollout = self.transition(RolloutState.DONE)
        return rollout._evolve(
            RolloutCompletedEvent(
                aggregate_id=self._rollout_id,
                batches=len(self._batches),
                direct_deploy=self._state == RolloutState.DIRECT_DEPLOY,
            )
        )

    def fail(
        self, phase: str, message: str, batch_key: Optional[str] = None
    ) -> "Rollout":
        if self._state.is_terminal:
            raise ValueError(f"Rollout already finished in state {self._state.name}")
        return self._evolve(
            RolloutFailedEvent(
                aggregate_id=self._rollout_id,
                phase=phase,
                error_message=message,
                batch_key=batch_key,
            ),
            state=RolloutState.FAILED,
            error_message=message,
        )

    def __repr__(self) -> str:
        return (
            f"Rollout(rollout_id={self._rollout_id}, revision={self._revision}, "
            f"group_id={self._group_id}, fact={self._fact}, state={self._state}, "
            f"batches={len(self._batches)}, error_message={self._error_message})"
        )
