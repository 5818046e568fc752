"""
Domain Ports Package

Architectural Intent:
- Contains port interfaces (abstract contracts) for external collaborators
- Ports define what the rollout needs, adapters implement how
- Follows Hexagonal Architecture principles
"""

from factroll.domain.ports.inventory_port import InventoryPort, ApprovalPort
from factroll.domain.ports.fact_port import FactPort
from factroll.domain.ports.version_control_port import VersionControlPort
from factroll.domain.ports.code_deploy_port import CodeDeployPort
from factroll.domain.ports.classifier_port import ClassifierPort
from factroll.domain.ports.agent_runner_port import AgentRunnerPort, ClockPort
from factroll.domain.ports.event_bus_port import EventBusPort
from factroll.domain.ports.telemetry_port import TelemetryPort

__all__ = [
    "InventoryPort",
    "ApprovalPort",
    "FactPort",
    "VersionControlPort",
    "CodeDeployPort",
    "ClassifierPort",
    "AgentRunnerPort",
    "ClockPort",
    "EventBusPort",
    "TelemetryPort",
]
