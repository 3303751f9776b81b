"""
Explain Command - Show why rules fired and queries matched.
"""

import json
import sys
from typing import Optional, Tuple

import click

from ...analysis.inspector import inspect
from ...analysis.report import render
from ...core.errors import RetraceError
from ..utils import echo_error, echo_warning, load_or_exit


@click.command()
@click.argument("snapshot", required=False)
@click.option("-r", "--rule", "rules", multiple=True,
              help="Only explain rules or queries with this name (repeatable)")
@click.option("--json", "as_json", is_flag=True, help="Output the full inspection as JSON")
def explain(snapshot: Optional[str], rules: Tuple[str, ...], as_json: bool) -> None:
    """
    Explain rule activations in a session snapshot.

    Lists every rule with at least one match, its action, and for each match
    the bindings and the facts satisfying each condition.
    """
    session, config = load_or_exit(snapshot)

    try:
        result = inspect(session, internal_prefix=config.internal_binding_prefix)
    except RetraceError as e:
        echo_error(str(e))
        sys.exit(1)

    selected = set(rules)
    rule_filter = (lambda r: r.name in selected) if selected else None

    if as_json:
        click.echo(json.dumps(result.to_dict(rule_filter=rule_filter), indent=2, default=str))
        return

    text = render(result, rule_filter=rule_filter)

    if not text:
        echo_warning("No matching rule activations or query results")
        return
    click.echo(text)
