"""
Resolve Target Use Case

Architectural Intent:
- Resolves a node group identifier into its environment and member nodes
- Gates the rollout on the environment's approval
- Collaborator failures and incomplete records surface as ResolutionError
"""

import logging
from factroll.domain.errors import ResolutionError
from factroll.domain.ports.inventory_port import InventoryPort, ApprovalPort
from factroll.domain.value_objects.target_group import TargetGroup

logger = logging.getLogger(__name__)


class ResolveTarget:
    def __init__(self, inventory: InventoryPort, approvals: ApprovalPort):
        self.inventory = inventory
        self.approvals = approvals

    async def execute(self, group_id: str) -> TargetGroup:
        try:
            record = await self.inventory.resolve_group(group_id)
        except LookupError as e:
            raise ResolutionError(f"Unknown node group '{group_id}'") from e
        except Exception as e:
            raise ResolutionError(f"Failed to look up node group '{group_id}': {e}") from e

        if record is None:
            raise ResolutionError(f"Unknown node group '{group_id}'")
        if not record.environment:
            raise ResolutionError(f"Node group '{group_id}' has no environment")

        target = TargetGroup(
            group_id=record.group_id or group_id,
            environment=record.environment,
            nodes=tuple(dict.fromkeys(record.nodes)),
        )
        logger.info("Resolved target group %s", target)
        return target

    async def await_approval(self, target: TargetGroup) -> None:
        logger.info("Waiting for approval of environment %s", target.environment)
        try:
            await self.approvals.await_approval(target.environment)
        except Exception as e:
            raise ResolutionError(
                f"Approval check for environment '{target.environment}' failed: {e}"
            ) from e
        logger.info("Environment %s approved", target.environment)
