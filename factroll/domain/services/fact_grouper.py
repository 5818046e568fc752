"""
Fact Grouping Service

Architectural Intent:
- Partitions a node set into batches keyed by the value of one fact
- Batch order follows the first-seen order of the distinct values reported
  by the fact store; it is not stable across a changing inventory
- Nodes lacking the fact are never dropped silently: MissingFactPolicy decides
  whether they abort the rollout or are excluded and reported

Partition invariant:
- Every node that has the fact lands in exactly one batch
- Batches are pairwise disjoint and never empty
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence
from factroll.domain.errors import FactQueryError, MissingFactError
from factroll.domain.ports.fact_port import FactPort
from factroll.domain.value_objects.batch import Batch

logger = logging.getLogger(__name__)


def _fact_key(value: object) -> Optional[str]:
    # An empty value counts as no value
    if value is None:
        return None
    key = str(value)
    return key or None


class MissingFactPolicy(Enum):
    FAIL = "fail"
    EXCLUDE = "exclude"


@dataclass(frozen=True)
class Grouping:
    batches: tuple[Batch, ...]
    excluded: tuple[str, ...] = ()

    @property
    def node_count(self) -> int:
        return sum(len(b) for b in self.batches)


class FactGrouper:
    def __init__(
        self,
        fact_port: FactPort,
        missing_policy: MissingFactPolicy = MissingFactPolicy.FAIL,
    ) -> None:
        self.fact_port = fact_port
        self.missing_policy = missing_policy

    async def group(self, nodes: Sequence[str], fact: str) -> Grouping:
        nodes = list(dict.fromkeys(nodes))
        if not nodes:
            return Grouping(batches=())

        try:
            distinct = await self.fact_port.distinct_values(nodes, fact)
            per_node = await self.fact_port.node_values(nodes, fact)
        except Exception as e:
            raise FactQueryError(f"Failed to query fact '{fact}': {e}") from e

        return self.partition(nodes, fact, distinct, per_node)

    def partition(
        self,
        nodes: Sequence[str],
        fact: str,
        distinct: Sequence[object],
        per_node: dict[str, object],
    ) -> Grouping:
        # Fact values may come back as non-strings (numbers, booleans)
        keys = list(dict.fromkeys(k for k in map(_fact_key, distinct) if k is not None))
        members: dict[str, list[str]] = {key: [] for key in keys}
        missing: list[str] = []

        for node in nodes:
            key = _fact_key(per_node.get(node))
            if key is None or key not in members:
                missing.append(node)
                continue
            members[key].append(node)

        if missing:
            if self.missing_policy is MissingFactPolicy.FAIL:
                raise MissingFactError(
                    f"{len(missing)} node(s) have no value for fact '{fact}'",
                    nodes=missing,
                )
            logger.warning(
                "Excluding %d node(s) without fact '%s': %s",
                len(missing),
                fact,
                ", ".join(missing),
            )

        batches = tuple(
            Batch(key=key, nodes=tuple(members[key])) for key in keys if members[key]
        )
        logger.info(
            "Grouped %d node(s) by '%s' into %d batch(es): %s",
            len(nodes) - len(missing),
            fact,
            len(batches),
            ", ".join(str(b) for b in batches),
        )
        return Grouping(batches=batches, excluded=tuple(missing))
