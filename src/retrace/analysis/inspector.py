"""
Session inspection.

Builds one InspectionSnapshot from a session: explanations for every rule and
query match, the condition index, rule insertions and the fact ->
justification map. The result depends only on the snapshot it was built from.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set

from pydantic import BaseModel

from ..config import INTERNAL_BINDING_PREFIX
from ..core.session import Session
from ..core.types import (
    Condition,
    ConditionMatch,
    Explanation,
    Fact,
    Insertion,
    Justification,
    Production,
    Query,
    hashable_key,
)
from .condition_index import ConditionMatchIndex
from .provenance import JustificationMultimap, ProvenanceIndex
from .translate import TokenTranslator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InspectionSnapshot:
    """
    Everything retrace can say about one session state.

    `fact_justifications` is keyed by `hashable_key(fact)`; for Facts and
    scalars that is the fact itself. `fact_values` maps those keys back to
    the inserted values.
    """

    rule_matches: Dict[Production, List[Explanation]] = field(default_factory=dict)
    query_matches: Dict[Query, List[Explanation]] = field(default_factory=dict)
    condition_matches: Dict[Condition, List[Any]] = field(default_factory=dict)
    insertions: Dict[Production, List[Insertion]] = field(default_factory=dict)
    fact_justifications: Dict[Any, List[Justification]] = field(default_factory=dict)
    fact_values: Dict[Any, Any] = field(default_factory=dict)

    def justifications_for(self, fact: Any) -> List[Justification]:
        return list(self.fact_justifications.get(hashable_key(fact), []))

    def to_dict(self, rule_filter: Optional[Callable[[Any], bool]] = None) -> Dict[str, Any]:
        """
        Export to plain JSON-compatible structures.

        Rules and queries are exported as records rather than keyed by label,
        since unnamed declarations with identical conditions share a label.
        `rule_filter` restricts rule, query, insertion and justification
        output the same way it restricts the text report.
        """
        accept = rule_filter or (lambda _: True)

        fact_justifications = []
        for key, justifications in self.fact_justifications.items():
            kept = [j for j in justifications if accept(j.rule)]
            if not kept:
                continue
            fact_justifications.append({
                "fact": _dump_value(self.fact_values.get(key, key)),
                "justifications": [
                    {"rule": j.rule.label, "explanation": _dump_explanation(j.explanation)}
                    for j in kept
                ],
            })

        return {
            "rule_matches": [
                {
                    "rule": rule.label,
                    "action": rule.action,
                    "explanations": [_dump_explanation(e) for e in explanations],
                }
                for rule, explanations in self.rule_matches.items()
                if accept(rule)
            ],
            "query_matches": [
                {
                    "query": query.label,
                    "explanations": [_dump_explanation(e) for e in explanations],
                }
                for query, explanations in self.query_matches.items()
                if accept(query)
            ],
            "condition_matches": [
                {"condition": _dump_value(condition), "facts": [_dump_value(f) for f in facts]}
                for condition, facts in self.condition_matches.items()
            ],
            "insertions": [
                {
                    "rule": rule.label,
                    "action": rule.action,
                    "inserted": [
                        {"fact": _dump_value(i.fact), "explanation": _dump_explanation(i.explanation)}
                        for i in inserted
                    ],
                }
                for rule, inserted in self.insertions.items()
                if accept(rule)
            ],
            "fact_justifications": fact_justifications,
        }


class SessionInspector:
    """Orchestrates translation, indexing and provenance over a session."""

    def __init__(self, session: Session, internal_prefix: str = INTERNAL_BINDING_PREFIX):
        self.session = session
        self.translator = TokenTranslator(session, internal_prefix=internal_prefix)

    def inspect(self) -> InspectionSnapshot:
        rulebase = self.session.rulebase
        memory = self.session.memory

        rule_matches = {
            rule: self.translator.translate(memory.get_tokens(node_id))
            for rule, node_id in rulebase.productions.items()
        }
        query_matches = {
            query: self.translator.translate(memory.get_tokens(node_id))
            for query, node_id in rulebase.queries.items()
        }
        condition_matches = ConditionMatchIndex(memory).build(rulebase.iter_nodes())

        insertions: Dict[Production, List[Insertion]] = {rule: [] for rule in rulebase.productions}
        justifications = JustificationMultimap()
        provenance = ProvenanceIndex(self.session, translator=self.translator)
        for rule, explanation, fact in provenance.iter_insertions():
            insertions[rule].append(Insertion(explanation=explanation, fact=fact))
            justifications.add(fact, Justification(rule=rule, explanation=explanation))

        logger.debug(
            f"Inspected {len(rule_matches)} rule(s), {len(query_matches)} query(ies), "
            f"{len(condition_matches)} condition(s)"
        )
        return InspectionSnapshot(
            rule_matches=rule_matches,
            query_matches=query_matches,
            condition_matches=condition_matches,
            insertions=insertions,
            fact_justifications=justifications.as_dict(),
            fact_values=justifications.fact_values(),
        )

    def conditions_and_rules(self) -> Dict[Condition, Set[str]]:
        """Map each declared condition to the labels of the rules and queries using it."""
        usage: Dict[Condition, Set[str]] = defaultdict(set)
        rulebase = self.session.rulebase
        for declaration in [*rulebase.productions, *rulebase.queries]:
            for condition in declaration.conditions:
                usage[condition].add(declaration.label)
        return dict(usage)


def inspect(session: Session, internal_prefix: str = INTERNAL_BINDING_PREFIX) -> InspectionSnapshot:
    """Inspect a session snapshot."""
    return SessionInspector(session, internal_prefix=internal_prefix).inspect()


def conditions_and_rules(session: Session) -> Dict[Condition, Set[str]]:
    return SessionInspector(session).conditions_and_rules()


# =============================================================================
# Export helpers
# =============================================================================


def _dump_value(value: Any) -> Any:
    if isinstance(value, Fact):
        return {"type": value.type, **{k: _dump_value(v) for k, v in value.attributes.items()}}
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", exclude_none=True)
    if isinstance(value, (list, tuple)):
        return [_dump_value(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _dump_value(v) for k, v in value.items()}
    return value


def _dump_match(match: ConditionMatch) -> Dict[str, Any]:
    data = {"fact": _dump_value(match.fact), "condition": _dump_value(match.condition)}
    if match.contributing_facts is not None:
        data["contributing_facts"] = [_dump_value(f) for f in match.contributing_facts]
    return data


def _dump_explanation(explanation: Explanation) -> Dict[str, Any]:
    return {
        "matches": [_dump_match(m) for m in explanation.matches],
        "bindings": _dump_value(explanation.bindings),
    }
