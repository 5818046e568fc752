"""
Simulated Platform Adapter

Architectural Intent:
- In-memory stand-in for the platform services a rollout talks to: node
  groups, approvals, facts, branches, code deploys, the classifier and agent
  runs
- Loaded from a JSON inventory file so a rollout can be rehearsed end to end
  before pointing it at real services
- Records every collaborator call in order for inspection

Design Decisions:
- Deterministic ids (temporary groups are named after their branch, deploys
  are numbered) for testability
- Failure injection through the inventory: `failing_nodes` fail agent runs,
  `failing_deploys` fail code deploy validation
- Environments listed in `pending_approvals` block await_approval() until
  approve() is called

Inventory format:
    {
      "groups": {"web": {"environment": "production", "nodes": ["a", "b"]}},
      "facts": {"a": {"region": "us"}, "b": {"region": "eu"}},
      "branches": {"production": "3f2a9c1"},
      "failing_nodes": [],
      "failing_deploys": [],
      "pending_approvals": []
    }
"""

from __future__ import annotations
import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Optional, Sequence
from factroll.domain.errors import DeployValidationError
from factroll.domain.ports.agent_runner_port import AgentRunnerPort
from factroll.domain.ports.classifier_port import ClassifierPort
from factroll.domain.ports.code_deploy_port import CodeDeployPort
from factroll.domain.ports.fact_port import FactPort
from factroll.domain.ports.inventory_port import ApprovalPort, InventoryPort
from factroll.domain.ports.version_control_port import VersionControlPort
from factroll.domain.value_objects.apply_outcome import ApplyOutcome
from factroll.domain.value_objects.group_record import DeployHandle, GroupRecord

logger = logging.getLogger(__name__)


class SimulatedPlatformAdapter(
    InventoryPort,
    ApprovalPort,
    FactPort,
    VersionControlPort,
    CodeDeployPort,
    ClassifierPort,
    AgentRunnerPort,
):
    """In-memory platform (simulation)."""

    def __init__(
        self,
        groups: Optional[dict[str, dict[str, Any]]] = None,
        facts: Optional[dict[str, dict[str, Any]]] = None,
        branches: Optional[dict[str, str]] = None,
        failing_nodes: Sequence[str] = (),
        failing_deploys: Sequence[str] = (),
        pending_approvals: Sequence[str] = (),
    ) -> None:
        self.groups: dict[str, dict[str, Any]] = {
            gid: {
                "environment": g.get("environment"),
                "nodes": list(g.get("nodes", [])),
                "parent": g.get("parent"),
                "pinned": list(g.get("pinned", [])),
            }
            for gid, g in (groups or {}).items()
        }
        self.facts = {node: dict(values) for node, values in (facts or {}).items()}
        self.branches = dict(branches or {})
        self.failing_nodes = set(failing_nodes)
        self.failing_deploys = set(failing_deploys)
        self.calls: list[tuple] = []
        self.agent_runs: list[dict[str, Any]] = []
        self._deploy_counter = 0
        self._approvals = {env: asyncio.Event() for env in pending_approvals}

    @classmethod
    def from_file(cls, path: str) -> "SimulatedPlatformAdapter":
        with open(Path(path)) as f:
            data = json.load(f)
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SimulatedPlatformAdapter":
        return cls(
            groups=data.get("groups"),
            facts=data.get("facts"),
            branches=data.get("branches"),
            failing_nodes=data.get("failing_nodes", ()),
            failing_deploys=data.get("failing_deploys", ()),
            pending_approvals=data.get("pending_approvals", ()),
        )

    def _record(self, *call: Any) -> None:
        logger.debug("Simulated call: %s", call)
        self.calls.append(call)

    def call_names(self) -> list[str]:
        return [c[0] for c in self.calls]

    # InventoryPort / ApprovalPort

    async def resolve_group(self, group_id: str) -> GroupRecord:
        self._record("resolve_group", group_id)
        if group_id not in self.groups:
            raise LookupError(f"No such group: {group_id}")
        group = self.groups[group_id]
        return GroupRecord(
            group_id=group_id,
            environment=group["environment"],
            nodes=tuple(group["nodes"]),
            parent_id=group["parent"],
        )

    async def await_approval(self, environment: str) -> None:
        self._record("await_approval", environment)
        event = self._approvals.get(environment)
        if event is not None:
            logger.info("Environment %s awaiting approval", environment)
            await event.wait()

    def approve(self, environment: str) -> None:
        self._approvals.setdefault(environment, asyncio.Event()).set()

    # FactPort

    async def distinct_values(self, nodes: Sequence[str], fact: str) -> list[str]:
        self._record("distinct_values", tuple(nodes), fact)
        values = [
            self.facts[node][fact]
            for node in nodes
            if fact in self.facts.get(node, {})
        ]
        return list(dict.fromkeys(values))

    async def node_values(self, nodes: Sequence[str], fact: str) -> dict[str, str]:
        self._record("node_values", tuple(nodes), fact)
        return {
            node: self.facts[node][fact]
            for node in nodes
            if fact in self.facts.get(node, {})
        }

    # VersionControlPort

    async def create_branch(
        self, repo: str, name: str, revision: str, from_existing: bool = False
    ) -> None:
        self._record("create_branch", repo, name, revision)
        if name in self.branches and not from_existing:
            raise ValueError(f"Branch {name} already exists")
        self.branches.setdefault(name, revision)

    async def delete_branch(self, repo: str, name: str) -> None:
        self._record("delete_branch", repo, name)
        if name not in self.branches:
            raise LookupError(f"No such branch: {name}")
        del self.branches[name]

    async def update_branch(self, repo: str, name: str, revision: str) -> None:
        self._record("update_branch", repo, name, revision)
        self.branches[name] = revision

    # CodeDeployPort

    async def deploy(
        self, branch: str, environment: Optional[str] = None
    ) -> DeployHandle:
        self._record("deploy", branch, environment)
        self._deploy_counter += 1
        return DeployHandle(environment=branch, deploy_id=str(self._deploy_counter))

    async def validate(self, handle: DeployHandle) -> None:
        self._record("validate", handle.environment)
        if handle.environment in self.failing_deploys:
            raise DeployValidationError(
                f"Deployment {handle.deploy_id} of {handle.environment} failed"
            )

    # ClassifierPort

    async def create_temp_group(
        self, parent_group_id: str, branch: str, pinned: bool = True
    ) -> GroupRecord:
        self._record("create_temp_group", parent_group_id, branch)
        if parent_group_id not in self.groups:
            raise LookupError(f"No such group: {parent_group_id}")
        group_id = f"tmp-{branch}"
        self.groups[group_id] = {
            "environment": branch,
            "nodes": [],
            "parent": parent_group_id,
            "pinned": [],
        }
        return GroupRecord(
            group_id=group_id, environment=branch, parent_id=parent_group_id
        )

    async def delete_group(self, group_id: str) -> None:
        self._record("delete_group", group_id)
        if group_id not in self.groups:
            raise LookupError(f"No such group: {group_id}")
        del self.groups[group_id]

    async def pin_nodes(self, nodes: Sequence[str], group_id: str) -> None:
        self._record("pin_nodes", tuple(nodes), group_id)
        if group_id not in self.groups:
            raise LookupError(f"No such group: {group_id}")
        self.groups[group_id]["pinned"].extend(nodes)

    # AgentRunnerPort

    async def run(
        self, nodes: Sequence[str], noop: bool, environment: Optional[str] = None
    ) -> ApplyOutcome:
        self._record("run", tuple(nodes), noop, environment)
        failed = frozenset(n for n in nodes if n in self.failing_nodes)
        job_id = str(len(self.agent_runs) + 1)
        self.agent_runs.append(
            {
                "job_id": job_id,
                "nodes": list(nodes),
                "noop": noop,
                "environment": environment,
                "failed": sorted(failed),
            }
        )
        return ApplyOutcome(failed_nodes=failed, job_id=job_id)
