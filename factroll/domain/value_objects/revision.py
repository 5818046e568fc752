"""
Revision Value Object

Architectural Intent:
- Immutable description of what is being rolled out and where it must land
- Validates the commit identifier and target branch once, at construction
"""

import re
from dataclasses import dataclass

_COMMIT_RE = re.compile(r"^[0-9a-fA-F]{7,40}$")


@dataclass(frozen=True)
class Revision:
    """
    Value Object for the source-control commit being rolled out.
    """
    commit: str
    target_branch: str
    repo: str = "origin"

    def __post_init__(self) -> None:
        if not _COMMIT_RE.match(self.commit or ""):
            raise ValueError(f"Invalid commit identifier: {self.commit!r}")
        if not self.target_branch or not self.target_branch.strip():
            raise ValueError("Target branch cannot be empty")
        if not self.repo:
            raise ValueError("Repository reference cannot be empty")

    @property
    def short(self) -> str:
        return self.commit[:8]

    def __str__(self) -> str:
        return f"{self.repo}:{self.target_branch}@{self.short}"
