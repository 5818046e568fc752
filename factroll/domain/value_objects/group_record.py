from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class GroupRecord:
    """
    Raw node group record as returned by the classifier collaborator.
    environment may be missing; validation happens in the resolver.
    """
    group_id: str
    environment: Optional[str] = None
    nodes: tuple[str, ...] = ()
    parent_id: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "nodes", tuple(self.nodes))


@dataclass(frozen=True)
class DeployHandle:
    """Opaque reference to a code deployment started by the pipeline."""
    environment: str
    deploy_id: str = ""

    def __str__(self) -> str:
        return f"{self.environment}#{self.deploy_id}" if self.deploy_id else self.environment
