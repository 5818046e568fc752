"""
Composition Root

Architectural Intent:
- Dependency injection composition root for factroll
- Single place where all adapters and use cases are wired together
- No adapter instantiation should occur outside this module (except tests)

Design Decisions:
- Uses a simple dataclass container instead of a DI framework
- Platform collaborators are served by the simulated platform; git and the
  Fabric agent runner replace their simulated counterparts when configured
"""

from dataclasses import dataclass
from typing import Optional
from factroll.application.use_cases.batch_lifecycle import BatchLifecycle
from factroll.application.use_cases.plan_rollout import PlanRollout
from factroll.application.use_cases.resolve_target import ResolveTarget
from factroll.application.use_cases.run_rollout import RunRollout
from factroll.domain.ports.agent_runner_port import AgentRunnerPort
from factroll.domain.ports.version_control_port import VersionControlPort
from factroll.infrastructure.adapters.fabric_agent_adapter import FabricAgentAdapter
from factroll.infrastructure.adapters.git_adapter import GitAdapter
from factroll.infrastructure.adapters.simulated_platform import SimulatedPlatformAdapter
from factroll.infrastructure.clock import AsyncioClock
from factroll.infrastructure.config import FactrollConfig
from factroll.infrastructure.event_bus import EventBus
from factroll.infrastructure.telemetry.otel_exporter import OTELExporter, create_exporter


@dataclass
class FactrollContainer:
    """DI container holding all wired dependencies."""

    platform: SimulatedPlatformAdapter
    version_control: VersionControlPort
    agent_runner: AgentRunnerPort
    clock: AsyncioClock
    event_bus: EventBus
    telemetry: OTELExporter
    resolve_target: ResolveTarget
    batch_lifecycle: BatchLifecycle
    run_rollout: RunRollout
    plan_rollout: PlanRollout


def create_container(
    config: Optional[FactrollConfig] = None,
    platform: Optional[SimulatedPlatformAdapter] = None,
) -> FactrollContainer:
    """Create and wire all dependencies."""
    config = config or FactrollConfig()
    if platform is None:
        platform = SimulatedPlatformAdapter.from_file(config.platform.inventory_file)

    version_control: VersionControlPort = platform
    if config.git.workdir:
        version_control = GitAdapter(config.git.workdir, timeout=config.git.push_timeout)

    agent_runner: AgentRunnerPort = platform
    if config.agent.runner == "fabric":
        agent_runner = FabricAgentAdapter(
            command=config.agent.command,
            user=config.agent.ssh_user,
            port=config.agent.ssh_port,
            connect_timeout=config.agent.connect_timeout,
        )
    elif config.agent.runner != "simulated":
        raise ValueError(f"Unknown agent runner: {config.agent.runner!r}")

    clock = AsyncioClock()
    event_bus = EventBus()
    telemetry = create_exporter(
        endpoint=config.telemetry.endpoint,
        service_name=config.telemetry.service_name,
        insecure=config.telemetry.insecure,
    )

    resolve_target = ResolveTarget(platform, platform)
    batch_lifecycle = BatchLifecycle(version_control, platform, platform, agent_runner)
    run_rollout = RunRollout(
        resolve_target,
        platform,
        batch_lifecycle,
        version_control,
        clock,
        event_bus=event_bus,
        telemetry=telemetry,
    )
    plan_rollout = PlanRollout(resolve_target, platform)

    return FactrollContainer(
        platform=platform,
        version_control=version_control,
        agent_runner=agent_runner,
        clock=clock,
        event_bus=event_bus,
        telemetry=telemetry,
        resolve_target=resolve_target,
        batch_lifecycle=batch_lifecycle,
        run_rollout=run_rollout,
        plan_rollout=plan_rollout,
    )
