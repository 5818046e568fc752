"""
Batch Lifecycle Use Case

Architectural Intent:
- Runs one batch through its ephemeral scope: temporary branch, code deploy,
  temporary node group, pinning, agent run, teardown
- Steps execute strictly in order; the first failure aborts the batch
- The scope never outlives the batch: deletion is attempted on success and on
  every failure path once something has been created
- Cleanup failures after a primary failure are attached to that failure rather
  than replacing it

Step order:
    1. create branch        -> BranchCreateError
    2. deploy + validate    -> CodeDeployError
    3. create temp group    -> GroupCreateError
    4. pin nodes            -> PinError
    5. agent run            -> RunOrchestrationError / BatchApplyError
    6. delete group, branch -> CleanupError
"""

from __future__ import annotations
import logging
from typing import Optional
from factroll.domain.errors import (
    BatchApplyError,
    BranchCreateError,
    CleanupError,
    CodeDeployError,
    GroupCreateError,
    PinError,
    RolloutError,
    RunOrchestrationError,
)
from factroll.domain.ports.agent_runner_port import AgentRunnerPort
from factroll.domain.ports.classifier_port import ClassifierPort
from factroll.domain.ports.code_deploy_port import CodeDeployPort
from factroll.domain.ports.version_control_port import VersionControlPort
from factroll.domain.value_objects.apply_outcome import ApplyOutcome
from factroll.domain.value_objects.batch import Batch, EphemeralScope
from factroll.domain.value_objects.revision import Revision
from factroll.domain.value_objects.target_group import TargetGroup

logger = logging.getLogger(__name__)


class BatchLifecycle:
    def __init__(
        self,
        version_control: VersionControlPort,
        code_deploy: CodeDeployPort,
        classifier: ClassifierPort,
        agent_runner: AgentRunnerPort,
    ):
        self.version_control = version_control
        self.code_deploy = code_deploy
        self.classifier = classifier
        self.agent_runner = agent_runner

    async def execute(
        self,
        batch: Batch,
        target: TargetGroup,
        revision: Revision,
        rollout_id: str,
        noop: bool,
    ) -> ApplyOutcome:
        scope = EphemeralScope(
            branch=EphemeralScope.branch_name_for(batch.key, rollout_id)
        )
        logger.info(
            "Batch %s: creating branch %s at %s", batch.key, scope.branch, revision.short
        )
        try:
            await self.version_control.create_branch(
                revision.repo, scope.branch, revision.commit, from_existing=False
            )
        except Exception as e:
            raise BranchCreateError(
                f"Failed to create branch '{scope.branch}': {e}", batch_key=batch.key
            ) from e

        try:
            await self.deploy_code(
                scope.branch, target.environment, batch_key=batch.key
            )
            scope = await self._create_group(batch, target, scope)
            await self._pin(batch, scope)
            outcome = await self.run_agent(
                batch, noop=noop, environment=scope.environment
            )
        except RolloutError as err:
            await self._discard(batch, scope, revision.repo, err)
            raise

        if not outcome.succeeded:
            failed = sorted(outcome.failed_nodes)
            err = BatchApplyError(
                f"{len(failed)} node(s) failed in batch '{batch.key}': "
                + ", ".join(failed),
                batch_key=batch.key,
                nodes=failed,
            )
            await self._discard(batch, scope, revision.repo, err)
            raise err

        await self._teardown(batch, scope, revision.repo)
        logger.info("Batch %s: %d node(s) applied cleanly", batch.key, len(batch))
        return outcome

    async def deploy_code(
        self, branch: str, environment: str, batch_key: Optional[str] = None
    ) -> None:
        """Deploys a branch to an environment and waits until the pipeline settles."""
        try:
            handle = await self.code_deploy.deploy(branch, environment=environment)
            await self.code_deploy.validate(handle)
        except Exception as e:
            raise CodeDeployError(
                f"Code deploy of '{branch}' to {environment} failed: {e}",
                batch_key=batch_key,
            ) from e
        logger.info("Code deployed from %s to environment %s", branch, environment)

    async def run_agent(
        self, batch: Batch, noop: bool, environment: Optional[str] = None
    ) -> ApplyOutcome:
        logger.info(
            "Batch %s: running agent on %d node(s) (noop=%s)", batch.key, len(batch), noop
        )
        try:
            outcome = await self.agent_runner.run(
                list(batch.nodes), noop=noop, environment=environment
            )
        except Exception as e:
            raise RunOrchestrationError(
                f"Agent run could not be dispatched: {e}", batch_key=batch.key
            ) from e
        return ApplyOutcome(
            failed_nodes=outcome.failed_nodes, job_id=outcome.job_id, batch_key=batch.key
        )

    async def _create_group(
        self, batch: Batch, target: TargetGroup, scope: EphemeralScope
    ) -> EphemeralScope:
        try:
            record = await self.classifier.create_temp_group(
                target.group_id, scope.branch, pinned=True
            )
        except Exception as e:
            raise GroupCreateError(
                f"Failed to create temporary group for branch '{scope.branch}': {e}",
                batch_key=batch.key,
            ) from e
        logger.info("Batch %s: created temporary group %s", batch.key, record.group_id)
        return scope.with_group(record.group_id, record.environment)

    async def _pin(self, batch: Batch, scope: EphemeralScope) -> None:
        try:
            await self.classifier.pin_nodes(list(batch.nodes), scope.group_id)
        except Exception as e:
            raise PinError(
                f"Failed to pin nodes to group '{scope.group_id}': {e}",
                batch_key=batch.key,
                nodes=batch.nodes,
            ) from e

    async def _delete_scope(self, scope: EphemeralScope, repo: str) -> list[str]:
        errors = []
        if scope.has_group:
            try:
                await self.classifier.delete_group(scope.group_id)
            except Exception as e:
                errors.append(f"failed to delete group '{scope.group_id}': {e}")
        try:
            await self.version_control.delete_branch(repo, scope.branch)
        except Exception as e:
            errors.append(f"failed to delete branch '{scope.branch}': {e}")
        return errors

    async def _discard(
        self, batch: Batch, scope: EphemeralScope, repo: str, err: RolloutError
    ) -> None:
        logger.warning("Batch %s failed, discarding scope %s", batch.key, scope.branch)
        for error in await self._delete_scope(scope, repo):
            logger.error("Batch %s cleanup: %s", batch.key, error)
            err.add_cleanup_error(error)

    async def _teardown(self, batch: Batch, scope: EphemeralScope, repo: str) -> None:
        errors = await self._delete_scope(scope, repo)
        if errors:
            raise CleanupError(
                f"Batch applied but its temporary scope leaked: {'; '.join(errors)}",
                batch_key=batch.key,
            )
        logger.info("Batch %s: removed temporary scope %s", batch.key, scope.branch)
