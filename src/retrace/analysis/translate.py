"""
Token translation.

Turns raw match tokens into Explanation records. Each (fact, node id) pair
of a token becomes one ConditionMatch, in token order. Accumulator nodes get
special treatment: the token holds only the aggregation result, so the
facts that fed the aggregation are looked up in working memory.
"""

import logging
from typing import Any, Dict, Iterable, List

from ..config import INTERNAL_BINDING_PREFIX
from ..core.errors import StateInconsistencyError
from ..core.session import Session
from ..core.types import (
    Accumulator,
    Condition,
    ConditionMatch,
    Explanation,
    NetworkNode,
    Token,
)

logger = logging.getLogger(__name__)


class TokenTranslator:
    """
    Projects tokens from a session snapshot into explanations.

    Translation never mutates the session.
    """

    def __init__(self, session: Session, internal_prefix: str = INTERNAL_BINDING_PREFIX):
        self.session = session
        self.internal_prefix = internal_prefix

    def translate(self, tokens: Iterable[Token]) -> List[Explanation]:
        """Translate tokens in order, one Explanation per token."""
        explanations = [self.translate_token(token) for token in tokens]
        logger.debug(f"Translated {len(explanations)} token(s)")
        return explanations

    def translate_token(self, token: Token) -> Explanation:
        matches = tuple(
            self._condition_match(fact, self.session.rulebase.get_node(node_id), token)
            for fact, node_id in token.matches
        )
        return Explanation(matches=matches, bindings=self.user_bindings(token))

    def user_bindings(self, token: Token) -> Dict[str, Any]:
        """Bindings the rule author declared; engine-synthesized ones are dropped."""
        return {
            name: value
            for name, value in token.bindings.items()
            if name not in token.synthesized and not name.startswith(self.internal_prefix)
        }

    def _condition_match(self, fact: Any, node: NetworkNode, token: Token) -> ConditionMatch:
        if node.accumulator is not None:
            consumed = self.session.memory.get_accumulated(node.id, token)
            return ConditionMatch(
                fact=fact,
                condition=_accumulator_condition(node.accumulator),
                contributing_facts=tuple(consumed) if consumed else None,
            )

        if node.condition is None:
            raise StateInconsistencyError(
                f"Token matched node {node.id} ({node.kind}) which declares no condition",
                node_id=node.id,
            )
        return ConditionMatch(fact=fact, condition=_plain_condition(node.condition))


def _plain_condition(declared: Condition) -> Condition:
    return Condition(
        fact_type=declared.fact_type,
        constraints=declared.preferred_constraints(),
        negated=declared.negated,
    )


def _accumulator_condition(accumulator: Accumulator) -> Condition:
    return Condition(
        accumulator=Accumulator(
            function=accumulator.function,
            source=_plain_condition(accumulator.source),
        )
    )
