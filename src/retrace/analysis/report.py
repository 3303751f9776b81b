"""
Explanation rendering.

Produces a readable trace of why each rule fired and why each query
qualified. The layout is advisory; what is stable is the content and its
order, which follows the inspection snapshot.
"""

from typing import Any, Callable, Dict, List, Optional, Union

import click

from ..core.session import Session
from ..core.types import Condition, ConditionMatch, Explanation, Production, Query
from .inspector import InspectionSnapshot, inspect

RuleFilter = Callable[[Union[Production, Query]], bool]


def _accept_all(_: Union[Production, Query]) -> bool:
    return True


def format_bindings(bindings: Dict[str, Any]) -> str:
    return "{" + ", ".join(f"{name} {value}" for name, value in bindings.items()) + "}"


def format_constraints(condition: Condition) -> str:
    return "[" + " ".join(condition.preferred_constraints()) + "]"


def format_match(match: ConditionMatch) -> str:
    condition = match.condition
    if condition.accumulator is not None:
        source = condition.accumulator.source
        return (
            f"{match.fact} accumulated with {condition.accumulator.function} "
            f"from {source.fact_type} where {format_constraints(source)}"
        )
    verb = "is not a" if condition.negated else "is a"
    return f"{match.fact} {verb} {condition.fact_type} where {format_constraints(condition)}"


def _explanation_lines(explanation: Explanation, reason: str) -> List[str]:
    lines = ["  with bindings", f"     {format_bindings(explanation.bindings)}", f"  {reason}"]
    lines.extend(f"      {format_match(m)}" for m in explanation.matches)
    return lines


def render(snapshot: InspectionSnapshot, rule_filter: Optional[RuleFilter] = None) -> str:
    """
    Render rule activations and query results as text.

    Rules and queries without explanations, or rejected by `rule_filter`,
    are omitted.
    """
    accept = rule_filter or _accept_all
    lines: List[str] = []

    for rule, explanations in snapshot.rule_matches.items():
        if not explanations or not accept(rule):
            continue
        lines.append(f"rule {rule.label}")
        lines.append("  executed")
        lines.append(f"    {rule.action}")
        for explanation in explanations:
            lines.extend(_explanation_lines(explanation, "because"))
        lines.append("")

    for query, explanations in snapshot.query_matches.items():
        if not explanations or not accept(query):
            continue
        lines.append(f"query {query.label}")
        for explanation in explanations:
            lines.extend(_explanation_lines(explanation, "qualified because"))
        lines.append("")

    return "\n".join(lines)


def explain_activations(
    session: Session,
    rule_filter: Optional[RuleFilter] = None,
) -> None:
    """Inspect a session and print its activations to stdout."""
    text = render(inspect(session), rule_filter=rule_filter)
    if text:
        click.echo(text)
