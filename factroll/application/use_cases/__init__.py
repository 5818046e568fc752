"""
Application Use Cases Package

Architectural Intent:
- One class per user-facing operation, each with a single execute() entry point
"""

from factroll.application.use_cases.resolve_target import ResolveTarget
from factroll.application.use_cases.batch_lifecycle import BatchLifecycle
from factroll.application.use_cases.run_rollout import RunRollout, RolloutRun
from factroll.application.use_cases.plan_rollout import PlanRollout

__all__ = [
    "ResolveTarget",
    "BatchLifecycle",
    "RunRollout",
    "RolloutRun",
    "PlanRollout",
]
