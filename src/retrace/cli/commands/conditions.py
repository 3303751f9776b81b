"""
Conditions Command - Show facts held per declared condition.
"""

import sys
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ...analysis.inspector import SessionInspector
from ...core.errors import RetraceError
from ..utils import echo_error, load_or_exit

console = Console()


@click.command()
@click.argument("snapshot", required=False)
def conditions(snapshot: Optional[str]) -> None:
    """
    Summarise condition matches.

    For each condition implemented by a join or negation node, shows how
    many facts currently satisfy it and which rules declare it.
    """
    session, config = load_or_exit(snapshot)
    inspector = SessionInspector(session, internal_prefix=config.internal_binding_prefix)

    try:
        result = inspector.inspect()
    except RetraceError as e:
        echo_error(str(e))
        sys.exit(1)

    usage = inspector.conditions_and_rules()

    table = Table(title="Condition matches")
    table.add_column("Condition")
    table.add_column("Facts", justify="right")
    table.add_column("Used by")

    for condition, facts in result.condition_matches.items():
        # Negation keys are indexed separately from the declared positive form
        declared = condition.model_copy(update={"negated": False}) if condition.negated else condition
        users = sorted(usage.get(condition, set()) | usage.get(declared, set()))
        table.add_row(escape(str(condition)), str(len(facts)), escape(", ".join(users)))

    console.print(table)
