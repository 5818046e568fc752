"""
Classifier Port

Architectural Intent:
- Port interface for node groups used to scope a batch to its branch
- Temporary groups are children of the target group, pinned to a branch
  environment
"""

from abc import ABC, abstractmethod
from typing import Sequence
from factroll.domain.value_objects.group_record import GroupRecord


class ClassifierPort(ABC):
    @abstractmethod
    async def create_temp_group(
        self, parent_group_id: str, branch: str, pinned: bool = True
    ) -> GroupRecord:
        """
        Creates a temporary node group under `parent_group_id` whose
        environment is `branch`. Returns the created record.
        """
        pass

    @abstractmethod
    async def delete_group(self, group_id: str) -> None:
        """
        Deletes a node group.
        """
        pass

    @abstractmethod
    async def pin_nodes(self, nodes: Sequence[str], group_id: str) -> None:
        """
        Pins nodes to a group so they receive its environment.
        """
        pass
