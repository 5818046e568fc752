"""
Inventory Port

Architectural Intent:
- Port interface for node group metadata and release approvals
- Implemented by the classifier/inventory service adapter
"""

from abc import ABC, abstractmethod
from factroll.domain.value_objects.group_record import GroupRecord


class InventoryPort(ABC):
    """
    Port interface for looking up node groups.
    """

    @abstractmethod
    async def resolve_group(self, group_id: str) -> GroupRecord:
        """
        Returns the group record (environment and member nodes).
        Raises LookupError if the group is unknown.
        """
        pass


class ApprovalPort(ABC):
    """
    Port interface for deployment approval gates.
    """

    @abstractmethod
    async def await_approval(self, environment: str) -> None:
        """
        Suspends until deployments to the environment are approved.
        No timeout is applied here; callers wrap the call if they need one.
        """
        pass
