"""
Domain Layer Tests

Architectural Intent:
- Unit tests for value objects
- No mocks needed - pure domain logic testing
"""

import pytest
from factroll.domain.value_objects.revision import Revision
from factroll.domain.value_objects.target_group import TargetGroup
from factroll.domain.value_objects.batch import Batch, EphemeralScope
from factroll.domain.value_objects.apply_outcome import ApplyOutcome
from factroll.domain.value_objects.rollout_result import BatchReport, RolloutResult


class TestRevision:
    def test_valid_revision(self):
        revision = Revision(commit="3f2a9c1d", target_branch="production")
        assert revision.repo == "origin"
        assert revision.short == "3f2a9c1d"
        assert str(revision) == "origin:production@3f2a9c1d"

    def test_full_sha(self):
        sha = "a" * 40
        assert Revision(commit=sha, target_branch="main").commit == sha

    @pytest.mark.parametrize("commit", ["", "xyz1234", "abc", "a" * 41])
    def test_invalid_commit(self, commit):
        with pytest.raises(ValueError, match="Invalid commit"):
            Revision(commit=commit, target_branch="production")

    def test_empty_branch(self):
        with pytest.raises(ValueError, match="Target branch"):
            Revision(commit="3f2a9c1", target_branch=" ")

    def test_immutability(self):
        revision = Revision(commit="3f2a9c1", target_branch="production")
        with pytest.raises(AttributeError):
            revision.commit = "0000000"


class TestTargetGroup:
    def test_nodes_become_tuple(self):
        group = TargetGroup(group_id="web", environment="production", nodes=["a", "b"])
        assert group.nodes == ("a", "b")
        assert not group.is_empty

    def test_empty_group(self):
        assert TargetGroup(group_id="web", environment="production").is_empty

    def test_missing_environment(self):
        with pytest.raises(ValueError, match="environment"):
            TargetGroup(group_id="web", environment="")


class TestBatch:
    def test_batch_len(self):
        batch = Batch(key="us", nodes=["a", "b"])
        assert len(batch) == 2
        assert str(batch) == "us (2 nodes)"

    def test_empty_batch_rejected(self):
        with pytest.raises(ValueError, match="no nodes"):
            Batch(key="us", nodes=())

    def test_empty_key_rejected(self):
        with pytest.raises(ValueError):
            Batch(key="", nodes=("a",))


class TestEphemeralScope:
    def test_branch_name_is_deterministic(self):
        first = EphemeralScope.branch_name_for("us", "r1")
        second = EphemeralScope.branch_name_for("us", "r1")
        assert first == second == "us_r1"

    def test_branch_name_sanitized(self):
        assert EphemeralScope.branch_name_for("US-East 1", "Ab.9") == "us_east_1_ab_9"

    def test_branch_name_differs_per_rollout(self):
        assert EphemeralScope.branch_name_for("us", "r1") != EphemeralScope.branch_name_for(
            "us", "r2"
        )

    def test_with_group(self):
        scope = EphemeralScope(branch="us_r1")
        assert not scope.has_group
        grouped = scope.with_group("tmp-us_r1", None)
        assert grouped.has_group
        assert grouped.environment == "us_r1"
        assert scope.group_id is None


class TestApplyOutcome:
    def test_success(self):
        assert ApplyOutcome().succeeded

    def test_failure(self):
        outcome = ApplyOutcome(failed_nodes={"d"})
        assert not outcome.succeeded
        assert outcome.failed_nodes == frozenset({"d"})


class TestRolloutResult:
    def test_describe_failure_lists_nodes(self):
        result = RolloutResult(
            rollout_id="r1",
            success=False,
            state="failed",
            cause="[apply] batch 'eu': boom",
            failed_nodes=("d",),
        )
        assert "failed nodes: d" in result.describe()

    def test_describe_failure_names_phase(self):
        result = RolloutResult(
            rollout_id="r1",
            success=False,
            state="failed",
            cause="[apply] batch 'eu': boom",
            phase="apply",
        )
        assert result.describe() == "Rollout r1 failed during apply: [apply] batch 'eu': boom"

    def test_to_dict(self):
        result = RolloutResult(
            rollout_id="r1",
            success=True,
            state="done",
            batch_reports=(BatchReport(key="us", nodes=("a",), phase="apply"),),
        )
        data = result.to_dict()
        assert data["success"] is True
        assert data["batches"][0]["key"] == "us"
        assert data["batches"][0]["nodes"] == ["a"]
