"""
Version Control Port

Architectural Intent:
- Port interface for branch manipulation in the control repository
- Implemented by GitAdapter (git push) or the simulated platform
"""

from abc import ABC, abstractmethod


class VersionControlPort(ABC):
    """
    Port interface for creating, deleting and moving branches.
    """

    @abstractmethod
    async def create_branch(
        self, repo: str, name: str, revision: str, from_existing: bool = False
    ) -> None:
        """
        Creates branch `name` pointing at `revision`.
        With from_existing=True an existing branch of that name is reused.
        """
        pass

    @abstractmethod
    async def delete_branch(self, repo: str, name: str) -> None:
        """
        Deletes branch `name`.
        """
        pass

    @abstractmethod
    async def update_branch(self, repo: str, name: str, revision: str) -> None:
        """
        Moves branch `name` to `revision`.
        """
        pass
