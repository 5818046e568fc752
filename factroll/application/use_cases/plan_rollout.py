"""
Plan Rollout Use Case

Architectural Intent:
- Previews how a rollout would batch a group without touching anything
- Reads only: group lookup and fact queries, no approval wait, no branches
"""

import logging
from factroll.application.dtos.rollout_dtos import PlanRequest, PlanResponse
from factroll.application.use_cases.resolve_target import ResolveTarget
from factroll.domain.ports.fact_port import FactPort
from factroll.domain.services.fact_grouper import FactGrouper, Grouping

logger = logging.getLogger(__name__)


class PlanRollout:
    def __init__(self, resolve_target: ResolveTarget, fact_port: FactPort):
        self.resolve_target = resolve_target
        self.fact_port = fact_port

    async def execute(self, request: PlanRequest) -> PlanResponse:
        target = await self.resolve_target.execute(request.target_group)
        if target.is_empty:
            return PlanResponse(target=target, grouping=Grouping(batches=()))
        grouper = FactGrouper(self.fact_port, request.missing_fact_policy)
        grouping = await grouper.group(target.nodes, request.fact)
        return PlanResponse(target=target, grouping=grouping)
