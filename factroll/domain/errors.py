"""
Rollout Errors

Architectural Intent:
- One exception class per failure kind so callers branch on type, not on fields
- Every error knows the phase it was raised in and, where relevant, the batch
- Cleanup failures are attached to the primary error additively instead of
  replacing it
"""

from __future__ import annotations
from typing import Iterable, Optional


class RolloutError(Exception):
    """Base class for every terminal rollout failure."""

    phase = "rollout"

    def __init__(
        self,
        message: str,
        batch_key: Optional[str] = None,
        nodes: Iterable[str] = (),
        cleanup_errors: Iterable[str] = (),
    ) -> None:
        super().__init__(message)
        self.message = message
        self.batch_key = batch_key
        self.nodes = tuple(sorted(nodes))
        self.cleanup_errors: list[str] = list(cleanup_errors)

    def add_cleanup_error(self, error: str) -> None:
        self.cleanup_errors.append(error)

    def describe(self) -> str:
        parts = [f"[{self.phase}]"]
        if self.batch_key is not None:
            parts.append(f"batch '{self.batch_key}':")
        parts.append(self.message)
        text = " ".join(parts)
        if self.__cause__ is not None:
            text += f" (caused by: {self.__cause__})"
        if self.cleanup_errors:
            text += "; cleanup also failed: " + "; ".join(self.cleanup_errors)
        return text

    def __str__(self) -> str:
        return self.describe()


class ResolutionError(RolloutError):
    phase = "resolve"


class EmptyTargetError(RolloutError):
    phase = "resolve"


class MissingFactError(RolloutError):
    phase = "group"


class FactQueryError(RolloutError):
    phase = "group"


class BranchCreateError(RolloutError):
    phase = "branch-create"


class CodeDeployError(RolloutError):
    phase = "code-deploy"


class GroupCreateError(RolloutError):
    phase = "group-create"


class PinError(RolloutError):
    phase = "pin"


class RunOrchestrationError(RolloutError):
    phase = "agent-run"


class BatchApplyError(RolloutError):
    """Agent run finished but reported failed nodes."""

    phase = "apply"


class CleanupError(RolloutError):
    phase = "cleanup"


class BranchUpdateError(RolloutError):
    phase = "branch-update"


class EnforceError(RolloutError):
    """One or more batches failed during the post-noop enforce pass."""

    phase = "enforce"

    def __init__(self, message: str, failed_batches: Iterable[str] = (), **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.failed_batches = tuple(failed_batches)


class DeployValidationError(Exception):
    """Raised by code deploy collaborators when a deployment ends unsuccessfully."""


class RunDispatchError(Exception):
    """Raised by agent runners when a run cannot be started at all."""
