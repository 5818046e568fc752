"""
Fact Port

Architectural Intent:
- Port interface for querying node facts (attributes)
- Queries are always scoped to an explicit node set
"""

from abc import ABC, abstractmethod
from typing import Sequence


class FactPort(ABC):
    """
    Port interface for querying facts across a set of nodes.
    """

    @abstractmethod
    async def distinct_values(self, nodes: Sequence[str], fact: str) -> list[str]:
        """
        Returns the distinct values of a fact across exactly the given nodes,
        in the order the fact store reports them.
        """
        pass

    @abstractmethod
    async def node_values(self, nodes: Sequence[str], fact: str) -> dict[str, str]:
        """
        Returns a mapping node -> fact value. Nodes without the fact are absent.
        """
        pass
