from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class ApplyOutcome:
    """
    Value Object for the result of one agent run over a set of nodes.
    """
    failed_nodes: frozenset[str] = field(default_factory=frozenset)
    job_id: Optional[str] = None
    batch_key: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "failed_nodes", frozenset(self.failed_nodes))

    @property
    def succeeded(self) -> bool:
        return not self.failed_nodes
