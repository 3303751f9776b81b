"""
Node classification.

Maps network node handles onto the condition kinds explanations care about.
Only a fixed set of variants is recognised. Everything else, including kinds
added to the engine later, classifies as UNSUPPORTED and is left out of the
condition index.
"""

import logging
from typing import Dict

from ..core.types import ConditionKind, NetworkNode, NodeKind

logger = logging.getLogger(__name__)

NODE_KIND_TO_CONDITION_KIND: Dict[str, ConditionKind] = {
    NodeKind.JOIN: ConditionKind.JOIN,
    NodeKind.HASH_JOIN: ConditionKind.JOIN,
    NodeKind.ROOT_JOIN: ConditionKind.JOIN,
    NodeKind.NEGATION: ConditionKind.NEGATION,
    NodeKind.NEGATION_WITH_JOIN_FILTER: ConditionKind.NEGATION,
}


def classify_node(node: NetworkNode) -> ConditionKind:
    """Return the condition kind for a node; never raises."""
    kind = NODE_KIND_TO_CONDITION_KIND.get(node.kind, ConditionKind.UNSUPPORTED)
    if kind is ConditionKind.UNSUPPORTED:
        logger.debug(f"Node {node.id} of kind '{node.kind}' is not a join or negation")
    return kind
