"""
Code Deploy Port

Architectural Intent:
- Port interface for the code deployment pipeline that turns a branch into an
  environment on the configuration servers
"""

from abc import ABC, abstractmethod
from typing import Optional
from factroll.domain.value_objects.group_record import DeployHandle


class CodeDeployPort(ABC):
    @abstractmethod
    async def deploy(
        self, branch: str, environment: Optional[str] = None
    ) -> DeployHandle:
        """
        Triggers a code deployment of a branch. When environment is given the
        code lands there, otherwise in the environment named after the branch.
        Returns a handle.
        """
        pass

    @abstractmethod
    async def validate(self, handle: DeployHandle) -> None:
        """
        Waits for the deployment to finish.
        Raises DeployValidationError carrying the pipeline's message on failure.
        """
        pass
