"""
Why Command - Show which rule matches inserted each fact.
"""

import sys
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from ...analysis.inspector import inspect
from ...analysis.report import format_bindings, format_match
from ...core.errors import RetraceError
from ...core.types import Fact
from ..utils import echo_error, load_or_exit

console = Console()


@click.command()
@click.argument("snapshot", required=False)
@click.option("-t", "--type", "fact_type", default=None,
              help="Only show inserted facts of this type")
def why(snapshot: Optional[str], fact_type: Optional[str]) -> None:
    """
    Explain why facts exist.

    Shows each fact inserted by a rule, the rules that inserted it and the
    match that justified each insertion.
    """
    session, config = load_or_exit(snapshot)

    try:
        result = inspect(session, internal_prefix=config.internal_binding_prefix)
    except RetraceError as e:
        echo_error(str(e))
        sys.exit(1)

    shown = 0
    for key, justifications in result.fact_justifications.items():
        fact = result.fact_values.get(key, key)
        if fact_type and not (isinstance(fact, Fact) and fact.type == fact_type):
            continue
        shown += 1

        tree = Tree(f"📌 [bold]{escape(str(fact))}[/bold]")
        for justification in justifications:
            branch = tree.add(f"inserted by [cyan]{escape(justification.rule.label)}[/cyan]")
            explanation = justification.explanation
            branch.add(f"[dim]bindings {escape(format_bindings(explanation.bindings))}[/dim]")
            for match in explanation.matches:
                branch.add(escape(format_match(match)))
        console.print(tree)

    if shown == 0:
        console.print("[yellow]No rule-inserted facts found[/yellow]")
