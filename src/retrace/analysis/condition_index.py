"""
Condition match index.

Collects, for every declared condition, the facts currently held by the
network nodes implementing it. Nodes that share a condition (rules with a
common pattern) contribute to the same entry; their facts are concatenated,
not deduplicated, so repeated matches stay visible.
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List

from ..core.session import WorkingMemory
from ..core.types import Condition, ConditionKind, NetworkNode
from .classify import classify_node

logger = logging.getLogger(__name__)


class ConditionMatchIndex:
    """Builds condition -> facts mappings from a node table and memory."""

    def __init__(self, memory: WorkingMemory):
        self.memory = memory

    def condition_key(self, node: NetworkNode) -> Condition | None:
        """
        Key a node under its declared condition.

        Negation nodes are keyed under the negated form of their condition so
        they never collide with a positive join on the same pattern.
        """
        kind = classify_node(node)
        if kind is ConditionKind.UNSUPPORTED:
            return None
        if node.condition is None:
            logger.warning(f"{kind} node {node.id} carries no condition; skipping")
            return None
        if kind is ConditionKind.NEGATION:
            return node.condition.negation()
        return node.condition

    def build(self, nodes: Iterable[NetworkNode]) -> Dict[Condition, List]:
        matches: Dict[Condition, List] = defaultdict(list)
        for node in nodes:
            key = self.condition_key(node)
            if key is None:
                continue
            matches[key].extend(self.memory.get_elements(node.id))
        return dict(matches)


def build_condition_matches(nodes: Iterable[NetworkNode], memory: WorkingMemory) -> Dict[Condition, List]:
    """Convenience wrapper around ConditionMatchIndex.build."""
    return ConditionMatchIndex(memory).build(nodes)
