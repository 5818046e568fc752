"""Tests for BatchLifecycle use case."""

import pytest
from unittest.mock import AsyncMock
from factroll.application.use_cases.batch_lifecycle import BatchLifecycle
from factroll.domain.errors import (
    BatchApplyError,
    BranchCreateError,
    CleanupError,
    CodeDeployError,
    DeployValidationError,
    GroupCreateError,
    PinError,
    RunDispatchError,
    RunOrchestrationError,
)
from factroll.domain.value_objects.apply_outcome import ApplyOutcome
from factroll.domain.value_objects.batch import Batch
from factroll.domain.value_objects.group_record import DeployHandle, GroupRecord
from factroll.domain.value_objects.revision import Revision
from factroll.domain.value_objects.target_group import TargetGroup

REVISION = Revision(commit="3f2a9c1", target_branch="target", repo="control")
TARGET = TargetGroup(group_id="web", environment="production", nodes=("c", "d"))
BATCH = Batch(key="eu", nodes=("c", "d"))


class TestBatchLifecycle:
    def _make_use_case(self, failed_nodes=()):
        calls = []

        def recorder(name, result=None):
            async def _call(*args, **kwargs):
                calls.append(name)
                return result

            return AsyncMock(side_effect=_call)

        vcs = AsyncMock()
        vcs.create_branch = recorder("create_branch")
        vcs.delete_branch = recorder("delete_branch")
        deploy = AsyncMock()
        deploy.deploy = recorder("deploy", DeployHandle("eu_r1", "1"))
        deploy.validate = recorder("validate")
        classifier = AsyncMock()
        classifier.create_temp_group = recorder(
            "create_temp_group", GroupRecord("tmp-eu", environment="eu_r1")
        )
        classifier.pin_nodes = recorder("pin_nodes")
        classifier.delete_group = recorder("delete_group")
        runner = AsyncMock()
        runner.run = recorder("run", ApplyOutcome(failed_nodes=frozenset(failed_nodes)))
        use_case = BatchLifecycle(vcs, deploy, classifier, runner)
        return use_case, calls, vcs, deploy, classifier, runner

    async def _execute(self, use_case, noop=True):
        return await use_case.execute(BATCH, TARGET, REVISION, "r1", noop=noop)

    @pytest.mark.asyncio
    async def test_successful_batch_runs_steps_in_order(self):
        use_case, calls, vcs, deploy, classifier, runner = self._make_use_case()

        outcome = await self._execute(use_case)

        assert outcome.succeeded
        assert outcome.batch_key == "eu"
        assert calls == [
            "create_branch",
            "deploy",
            "validate",
            "create_temp_group",
            "pin_nodes",
            "run",
            "delete_group",
            "delete_branch",
        ]
        vcs.create_branch.assert_awaited_once_with(
            "control", "eu_r1", "3f2a9c1", from_existing=False
        )
        deploy.deploy.assert_awaited_once_with("eu_r1", environment="production")
        classifier.create_temp_group.assert_awaited_once_with("web", "eu_r1", pinned=True)
        classifier.pin_nodes.assert_awaited_once_with(["c", "d"], "tmp-eu")
        runner.run.assert_awaited_once_with(["c", "d"], noop=True, environment="eu_r1")
        classifier.delete_group.assert_awaited_once_with("tmp-eu")
        vcs.delete_branch.assert_awaited_once_with("control", "eu_r1")

    @pytest.mark.asyncio
    async def test_agent_uses_environment_of_temp_group(self):
        use_case, _, _, deploy, classifier, runner = self._make_use_case()
        classifier.create_temp_group = AsyncMock(
            return_value=GroupRecord("tmp-eu", environment="env_eu_r1")
        )

        await self._execute(use_case)

        deploy.deploy.assert_awaited_once_with("eu_r1", environment="production")
        assert runner.run.await_args.kwargs["environment"] == "env_eu_r1"

    @pytest.mark.asyncio
    async def test_agent_falls_back_to_branch_environment(self):
        use_case, _, _, _, classifier, runner = self._make_use_case()
        classifier.create_temp_group = AsyncMock(return_value=GroupRecord("tmp-eu"))

        await self._execute(use_case)

        assert runner.run.await_args.kwargs["environment"] == "eu_r1"

    @pytest.mark.asyncio
    async def test_noop_flag_passed_through(self):
        use_case, _, _, _, _, runner = self._make_use_case()
        await self._execute(use_case, noop=False)
        assert runner.run.await_args.kwargs["noop"] is False

    @pytest.mark.asyncio
    async def test_failed_nodes_clean_up_and_raise(self):
        use_case, calls, vcs, _, classifier, _ = self._make_use_case(failed_nodes={"d"})

        with pytest.raises(BatchApplyError) as exc_info:
            await self._execute(use_case)

        err = exc_info.value
        assert err.batch_key == "eu"
        assert err.nodes == ("d",)
        assert "eu" in str(err) and "d" in str(err)
        assert err.cleanup_errors == []
        classifier.delete_group.assert_awaited_once_with("tmp-eu")
        vcs.delete_branch.assert_awaited_once_with("control", "eu_r1")

    @pytest.mark.asyncio
    async def test_failed_nodes_with_cleanup_failure_reports_both(self):
        use_case, _, vcs, _, classifier, _ = self._make_use_case(failed_nodes={"d"})
        classifier.delete_group = AsyncMock(side_effect=RuntimeError("classifier 503"))
        vcs.delete_branch = AsyncMock(side_effect=RuntimeError("push rejected"))

        with pytest.raises(BatchApplyError) as exc_info:
            await self._execute(use_case)

        text = str(exc_info.value)
        assert "1 node(s) failed in batch 'eu'" in text
        assert "classifier 503" in text
        assert "push rejected" in text
        assert len(exc_info.value.cleanup_errors) == 2
        # each deletion attempted independently
        vcs.delete_branch.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_branch_create_failure_has_nothing_to_clean(self):
        use_case, calls, vcs, deploy, classifier, _ = self._make_use_case()
        vcs.create_branch = AsyncMock(side_effect=RuntimeError("exists"))

        with pytest.raises(BranchCreateError, match="exists"):
            await self._execute(use_case)

        deploy.deploy.assert_not_awaited()
        vcs.delete_branch.assert_not_awaited()
        classifier.delete_group.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_code_deploy_failure_carries_message_and_deletes_branch(self):
        use_case, _, vcs, deploy, classifier, _ = self._make_use_case()
        deploy.validate = AsyncMock(side_effect=DeployValidationError("syntax error in site.pp"))

        with pytest.raises(CodeDeployError, match="syntax error in site.pp") as exc_info:
            await self._execute(use_case)

        assert exc_info.value.batch_key == "eu"
        classifier.create_temp_group.assert_not_awaited()
        classifier.delete_group.assert_not_awaited()
        vcs.delete_branch.assert_awaited_once_with("control", "eu_r1")

    @pytest.mark.asyncio
    async def test_group_create_failure(self):
        use_case, _, vcs, _, classifier, runner = self._make_use_case()
        classifier.create_temp_group = AsyncMock(side_effect=RuntimeError("conflict"))

        with pytest.raises(GroupCreateError, match="conflict"):
            await self._execute(use_case)

        runner.run.assert_not_awaited()
        classifier.delete_group.assert_not_awaited()
        vcs.delete_branch.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_pin_failure_deletes_group_and_branch(self):
        use_case, _, vcs, _, classifier, runner = self._make_use_case()
        classifier.pin_nodes = AsyncMock(side_effect=RuntimeError("unknown node"))

        with pytest.raises(PinError, match="unknown node"):
            await self._execute(use_case)

        runner.run.assert_not_awaited()
        classifier.delete_group.assert_awaited_once_with("tmp-eu")
        vcs.delete_branch.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_run_dispatch_failure(self):
        use_case, _, vcs, _, classifier, runner = self._make_use_case()
        runner.run = AsyncMock(side_effect=RunDispatchError("orchestrator offline"))

        with pytest.raises(RunOrchestrationError, match="orchestrator offline"):
            await self._execute(use_case)

        classifier.delete_group.assert_awaited_once()
        vcs.delete_branch.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_cleanup_failure_after_success(self):
        use_case, _, vcs, _, classifier, _ = self._make_use_case()
        classifier.delete_group = AsyncMock(side_effect=RuntimeError("locked"))

        with pytest.raises(CleanupError, match="locked") as exc_info:
            await self._execute(use_case)

        assert exc_info.value.batch_key == "eu"
        # branch deletion still attempted
        vcs.delete_branch.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_branch_cleanup_failure_after_success(self):
        use_case, _, vcs, _, _, _ = self._make_use_case()
        vcs.delete_branch = AsyncMock(side_effect=RuntimeError("protected"))

        with pytest.raises(CleanupError, match="protected"):
            await self._execute(use_case)

    @pytest.mark.asyncio
    async def test_run_agent_without_environment(self):
        use_case, _, _, _, _, runner = self._make_use_case()
        outcome = await use_case.run_agent(BATCH, noop=False)
        runner.run.assert_awaited_once_with(["c", "d"], noop=False, environment=None)
        assert outcome.batch_key == "eu"
