from dataclasses import dataclass


@dataclass(frozen=True)
class TargetGroup:
    """
    Value Object for a resolved node group: its environment and member nodes.
    """
    group_id: str
    environment: str
    nodes: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.group_id:
            raise ValueError("Group id cannot be empty")
        if not self.environment:
            raise ValueError("Group environment cannot be empty")
        object.__setattr__(self, "nodes", tuple(self.nodes))

    @property
    def is_empty(self) -> bool:
        return not self.nodes

    def __str__(self) -> str:
        return f"{self.group_id} ({self.environment}, {len(self.nodes)} nodes)"
