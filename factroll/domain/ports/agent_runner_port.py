"""
Agent Runner Port

Architectural Intent:
- Port interface for running the configuration agent on a set of nodes
- Implemented by FabricAgentAdapter (SSH) or the simulated platform
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence
from factroll.domain.value_objects.apply_outcome import ApplyOutcome


class AgentRunnerPort(ABC):
    """
    Port interface for configuration agent runs.
    """

    @abstractmethod
    async def run(
        self, nodes: Sequence[str], noop: bool, environment: Optional[str] = None
    ) -> ApplyOutcome:
        """
        Runs the agent on the nodes, optionally against a specific environment.
        Returns the set of nodes whose run failed.
        Raises RunDispatchError if the run could not be started at all.
        """
        pass


class ClockPort(ABC):
    @abstractmethod
    async def sleep(self, seconds: float) -> None:
        pass
