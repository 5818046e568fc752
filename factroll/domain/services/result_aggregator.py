"""
Result Aggregation Service

Architectural Intent:
- Collects per-batch outcomes as the rollout progresses
- Builds the single terminal RolloutResult, success or failure
"""

from __future__ import annotations
import logging
from typing import Iterable, Optional
from factroll.domain.entities.rollout import Rollout
from factroll.domain.errors import RolloutError
from factroll.domain.value_objects.batch import Batch
from factroll.domain.value_objects.rollout_result import BatchReport, RolloutResult

logger = logging.getLogger(__name__)


class ResultAggregator:
    def __init__(self) -> None:
        self._reports: list[BatchReport] = []
        self._excluded: tuple[str, ...] = ()

    @property
    def reports(self) -> tuple[BatchReport, ...]:
        return tuple(self._reports)

    def set_excluded(self, nodes: Iterable[str]) -> None:
        self._excluded = tuple(nodes)

    def record_success(self, batch: Batch, phase: str = "apply") -> None:
        self._reports.append(BatchReport(key=batch.key, nodes=batch.nodes, phase=phase))

    def record_failure(
        self,
        batch: Batch,
        error: RolloutError,
        failed_nodes: Iterable[str] = (),
        phase: Optional[str] = None,
    ) -> None:
        report = BatchReport(
            key=batch.key,
            nodes=batch.nodes,
            phase=phase or error.phase,
            failed_nodes=tuple(sorted(tuple(failed_nodes) or error.nodes)),
            error=error.describe(),
        )
        logger.error("Batch %s failed: %s", batch.key, report.error)
        self._reports.append(report)

    def failed_reports(self, phase: Optional[str] = None) -> list[BatchReport]:
        return [
            r for r in self._reports
            if not r.succeeded and (phase is None or r.phase == phase)
        ]

    def success(self, rollout: Rollout, direct_deploy: bool = False) -> RolloutResult:
        return RolloutResult(
            rollout_id=rollout.rollout_id,
            success=True,
            state=rollout.state.value,
            batch_reports=self.reports,
            excluded_nodes=self._excluded,
            direct_deploy=direct_deploy,
        )

    def failure(self, rollout: Rollout, error: RolloutError) -> RolloutResult:
        return RolloutResult(
            rollout_id=rollout.rollout_id,
            success=False,
            state=rollout.state.value,
            cause=error.describe(),
            phase=error.phase,
            batch_key=error.batch_key,
            failed_nodes=error.nodes,
            batch_reports=self.reports,
            excluded_nodes=self._excluded,
            error=error,
        )
