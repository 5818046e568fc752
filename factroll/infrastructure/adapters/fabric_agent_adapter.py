"""
Fabric Agent Adapter

Architectural Intent:
- Infrastructure adapter implementing AgentRunnerPort via Fabric/SSH
- Runs the configuration agent on every node of a batch in parallel with
  ThreadingGroup and reports which nodes failed
- Agent exit codes follow --detailed-exitcodes: 0 (no changes) and 2 (changes
  applied) are success, everything else is a failed node

Security:
- environment names are quoted via shlex.quote() before reaching the shell
- SSH connections use connect_timeout, allow_agent, look_for_keys
"""

import asyncio
import logging
import shlex
from functools import partial
from typing import Optional, Sequence
from factroll.domain.errors import RunDispatchError
from factroll.domain.ports.agent_runner_port import AgentRunnerPort
from factroll.domain.value_objects.apply_outcome import ApplyOutcome

logger = logging.getLogger(__name__)

SUCCESS_EXIT_CODES = (0, 2)


class FabricAgentAdapter(AgentRunnerPort):
    """Adapter implementing AgentRunnerPort via Fabric/SSH."""

    def __init__(
        self,
        command: str = "puppet agent --test",
        user: str = "root",
        port: int = 22,
        connect_timeout: int = 30,
    ):
        self.command = command
        self.user = user
        self.port = port
        self.connect_timeout = connect_timeout

    def build_command(self, noop: bool, environment: Optional[str] = None) -> str:
        parts = [self.command]
        if noop:
            parts.append("--noop")
        if environment:
            parts.append(f"--environment {shlex.quote(environment)}")
        return " ".join(parts)

    async def run(
        self, nodes: Sequence[str], noop: bool, environment: Optional[str] = None
    ) -> ApplyOutcome:
        if not nodes:
            return ApplyOutcome()
        command = self.build_command(noop, environment)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, partial(self._run_group, list(nodes), command)
        )

    def _run_group(self, nodes: list[str], command: str) -> ApplyOutcome:
        from fabric import ThreadingGroup
        from fabric.exceptions import GroupException

        try:
            group = ThreadingGroup(
                *nodes,
                user=self.user,
                port=self.port,
                connect_timeout=self.connect_timeout,
                connect_kwargs={
                    "allow_agent": True,
                    "look_for_keys": True,
                },
            )
        except Exception as e:
            raise RunDispatchError(f"Could not prepare SSH group: {e}") from e

        logger.info("Running '%s' on %d node(s)", command, len(nodes))
        try:
            results = group.run(command, hide=True, warn=True)
        except GroupException as e:
            # Connection-level failures; per-host values are exceptions
            results = e.result

        failed = set()
        for connection, result in results.items():
            if isinstance(result, Exception):
                logger.error("Agent run on %s did not complete: %s", connection.host, result)
                failed.add(connection.host)
            elif result.exited not in SUCCESS_EXIT_CODES:
                logger.error(
                    "Agent run on %s exited %s: %s",
                    connection.host,
                    result.exited,
                    result.stderr.strip(),
                )
                failed.add(connection.host)

        missing = set(nodes) - {c.host for c in results}
        if missing:
            logger.error("No agent result for: %s", ", ".join(sorted(missing)))
        return ApplyOutcome(failed_nodes=failed | missing)
