"""
Run Rollout Use Case

Architectural Intent:
- Drives one rollout from resolution to a terminal state
- Each Rollout state has exactly one handler; handlers do their work and
  move the aggregate to the next state
- Every RolloutError raised by a handler takes the single failure path:
  the aggregate moves to FAILED and the error becomes the RolloutResult cause
- Batches run strictly one after another; the next batch never starts before
  the previous batch's cleanup has been attempted
- The persistent branch is only moved after every batch verified cleanly

Concurrency:
- The only unbounded wait is the approval gate; the caller imposes timeouts
- Cancellation propagates untouched
"""

from __future__ import annotations
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional
from factroll.application.dtos.rollout_dtos import RolloutRequest
from factroll.application.use_cases.batch_lifecycle import BatchLifecycle
from factroll.application.use_cases.resolve_target import ResolveTarget
from factroll.domain.entities.rollout import Rollout, RolloutState
from factroll.domain.errors import (
    BatchApplyError,
    BranchUpdateError,
    EmptyTargetError,
    EnforceError,
    MissingFactError,
    RolloutError,
)
from factroll.domain.ports.agent_runner_port import ClockPort
from factroll.domain.ports.event_bus_port import EventBusPort
from factroll.domain.ports.fact_port import FactPort
from factroll.domain.ports.telemetry_port import TelemetryPort
from factroll.domain.ports.version_control_port import VersionControlPort
from factroll.domain.services.fact_grouper import FactGrouper
from factroll.domain.services.result_aggregator import ResultAggregator
from factroll.domain.value_objects.batch import Batch
from factroll.domain.value_objects.revision import Revision
from factroll.domain.value_objects.rollout_result import RolloutResult
from factroll.domain.value_objects.target_group import TargetGroup

logger = logging.getLogger(__name__)


@dataclass
class RolloutRun:
    """Mutable state of a single execute() call."""

    request: RolloutRequest
    revision: Revision
    rollout: Rollout
    aggregator: ResultAggregator = field(default_factory=ResultAggregator)
    target: Optional[TargetGroup] = None
    direct_deploy: bool = False
    error: Optional[RolloutError] = None


class RunRollout:
    def __init__(
        self,
        resolve_target: ResolveTarget,
        fact_port: FactPort,
        batch_lifecycle: BatchLifecycle,
        version_control: VersionControlPort,
        clock: ClockPort,
        event_bus: Optional[EventBusPort] = None,
        telemetry: Optional[TelemetryPort] = None,
    ):
        self.resolve_target = resolve_target
        self.fact_port = fact_port
        self.batch_lifecycle = batch_lifecycle
        self.version_control = version_control
        self.clock = clock
        self.event_bus = event_bus
        self.telemetry = telemetry
        self._handlers: dict[RolloutState, Callable[[RolloutRun], Awaitable[None]]] = {
            RolloutState.RESOLVING: self._resolve,
            RolloutState.APPROVING: self._approve,
            RolloutState.DIRECT_DEPLOY: self._direct_deploy,
            RolloutState.BATCHING: self._run_batches,
            RolloutState.FINALIZING_BRANCH: self._finalize_branch,
            RolloutState.FINAL_DEPLOY: self._final_deploy,
            RolloutState.ENFORCE_PHASE: self._enforce,
        }

    async def execute(self, request: RolloutRequest) -> RolloutResult:
        revision = request.to_revision()
        run = RolloutRun(
            request=request,
            revision=revision,
            rollout=Rollout.start(
                request.rollout_id, revision, request.target_group, request.fact
            ),
        )
        logger.info(
            "Starting rollout %s of %s to group %s by fact '%s' (noop=%s)",
            request.rollout_id,
            revision,
            request.target_group,
            request.fact,
            request.noop,
            extra={"rollout_id": request.rollout_id},
        )
        span = self._start_span(
            "factroll.rollout",
            {"rollout_id": request.rollout_id, "group_id": request.target_group},
        )
        try:
            while not run.rollout.state.is_terminal:
                state = run.rollout.state
                try:
                    await self._handlers[state](run)
                except RolloutError as err:
                    logger.error(
                        "Rollout %s failed: %s",
                        request.rollout_id,
                        err.describe(),
                        extra={"rollout_id": request.rollout_id, "batch": err.batch_key},
                    )
                    run.error = err
                    run.rollout = run.rollout.fail(err.phase, err.describe(), err.batch_key)
        finally:
            self._end_span(span)

        if run.error is not None:
            result = run.aggregator.failure(run.rollout, run.error)
        else:
            result = run.aggregator.success(run.rollout, direct_deploy=run.direct_deploy)
            logger.info(
                "Rollout %s completed",
                request.rollout_id,
                extra={"rollout_id": request.rollout_id},
            )

        self._record_metric(
            "factroll.rollout.success",
            1.0 if result.success else 0.0,
            {"rollout_id": request.rollout_id, "state": result.state},
        )
        if self.event_bus is not None:
            await self.event_bus.publish(list(run.rollout.domain_events))
        return result

    async def _resolve(self, run: RolloutRun) -> None:
        target = await self.resolve_target.execute(run.request.target_group)
        if target.is_empty and run.request.fail_if_no_nodes:
            raise EmptyTargetError(f"Node group '{target.group_id}' has no nodes")
        run.target = target
        run.rollout = run.rollout.transition(RolloutState.APPROVING)

    async def _approve(self, run: RolloutRun) -> None:
        await self.resolve_target.await_approval(run.target)
        if run.target.is_empty:
            logger.info(
                "Group %s has no nodes, deploying %s directly",
                run.target.group_id,
                run.revision.target_branch,
            )
            run.rollout = run.rollout.transition(RolloutState.DIRECT_DEPLOY)
        else:
            run.rollout = run.rollout.transition(RolloutState.BATCHING)

    async def _direct_deploy(self, run: RolloutRun) -> None:
        await self._update_branch(run.revision)
        await self.batch_lifecycle.deploy_code(
            run.revision.target_branch, run.target.environment
        )
        run.direct_deploy = True
        run.rollout = run.rollout.complete()

    async def _run_batches(self, run: RolloutRun) -> None:
        grouper = FactGrouper(self.fact_port, run.request.missing_fact_policy)
        grouping = await grouper.group(run.target.nodes, run.request.fact)
        run.aggregator.set_excluded(grouping.excluded)
        if not grouping.batches:
            raise MissingFactError(
                f"No node in group '{run.target.group_id}' has fact '{run.request.fact}'",
                nodes=grouping.excluded,
            )
        run.rollout = run.rollout.with_batches(grouping.batches)

        last = len(grouping.batches) - 1
        for index, batch in enumerate(grouping.batches):
            await self._run_batch(run, batch)
            if index < last and run.request.batch_delay_seconds > 0:
                logger.info(
                    "Sleeping %ss before next batch", run.request.batch_delay_seconds
                )
                await self.clock.sleep(run.request.batch_delay_seconds)

        run.rollout = run.rollout.transition(RolloutState.FINALIZING_BRANCH)

    async def _run_batch(self, run: RolloutRun, batch: Batch) -> None:
        run.rollout = run.rollout.begin_batch(batch, noop=run.request.noop)
        logger.info(
            "Starting batch %s (%d of %d node(s))",
            batch.key,
            len(batch),
            len(run.target.nodes),
            extra={"rollout_id": run.request.rollout_id, "batch": batch.key},
        )
        span = self._start_span(
            "factroll.batch", {"rollout_id": run.request.rollout_id, "batch": batch.key}
        )
        started = time.monotonic()
        try:
            await self.batch_lifecycle.execute(
                batch,
                run.target,
                run.revision,
                run.request.rollout_id,
                noop=run.request.noop,
            )
        except RolloutError as err:
            run.rollout = run.rollout.batch_failed(batch, err.nodes, err.describe())
            run.aggregator.record_failure(batch, err)
            self._record_batch(batch, len(err.nodes), started)
            raise
        finally:
            self._end_span(span)
        run.rollout = run.rollout.batch_succeeded(batch)
        run.aggregator.record_success(batch)
        self._record_batch(batch, 0, started)

    async def _finalize_branch(self, run: RolloutRun) -> None:
        await self._update_branch(run.revision)
        run.rollout = run.rollout.transition(RolloutState.FINAL_DEPLOY)

    async def _final_deploy(self, run: RolloutRun) -> None:
        await self.batch_lifecycle.deploy_code(
            run.revision.target_branch, run.target.environment
        )
        if run.request.enforce_after_noop:
            run.rollout = run.rollout.transition(RolloutState.ENFORCE_PHASE)
        else:
            run.rollout = run.rollout.complete()

    async def _enforce(self, run: RolloutRun) -> None:
        failed_keys: list[str] = []
        for batch in run.rollout.batches:
            run.rollout = run.rollout.begin_batch(batch, noop=False)
            try:
                outcome = await self.batch_lifecycle.run_agent(batch, noop=False)
                if not outcome.succeeded:
                    failed = sorted(outcome.failed_nodes)
                    raise BatchApplyError(
                        f"{len(failed)} node(s) failed to enforce: {', '.join(failed)}",
                        batch_key=batch.key,
                        nodes=failed,
                    )
            except RolloutError as err:
                failed_keys.append(batch.key)
                run.rollout = run.rollout.batch_failed(batch, err.nodes, err.describe())
                run.aggregator.record_failure(batch, err, phase="enforce")
                continue
            run.rollout = run.rollout.batch_succeeded(batch)
            run.aggregator.record_success(batch, phase="enforce")

        if failed_keys:
            nodes = [
                node
                for report in run.aggregator.failed_reports("enforce")
                for node in report.failed_nodes
            ]
            raise EnforceError(
                f"Enforce run failed for batch(es): {', '.join(failed_keys)}",
                failed_batches=failed_keys,
                nodes=nodes,
            )
        run.rollout = run.rollout.complete()

    async def _update_branch(self, revision: Revision) -> None:
        try:
            await self.version_control.update_branch(
                revision.repo, revision.target_branch, revision.commit
            )
        except Exception as e:
            raise BranchUpdateError(
                f"Failed to move branch '{revision.target_branch}' to {revision.short}: {e}"
            ) from e
        logger.info("Branch %s now points at %s", revision.target_branch, revision.short)

    def _start_span(self, name: str, attributes: dict[str, str]) -> Optional[Any]:
        if self.telemetry is None:
            return None
        return self.telemetry.start_span(name, attributes)

    def _end_span(self, span: Optional[Any]) -> None:
        if self.telemetry is not None:
            self.telemetry.end_span(span)

    def _record_metric(
        self, name: str, value: float, attributes: dict[str, str]
    ) -> None:
        if self.telemetry is not None:
            self.telemetry.record_metric(name, value, attributes=attributes)

    def _record_batch(self, batch: Batch, failed: int, started: float) -> None:
        attributes = {"batch": batch.key}
        self._record_metric("factroll.batch.nodes", float(len(batch)), attributes)
        self._record_metric("factroll.batch.failed_nodes", float(failed), attributes)
        self._record_metric(
            "factroll.batch.duration_ms", (time.monotonic() - started) * 1000, attributes
        )
