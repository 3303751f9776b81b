"""
retrace: explanations for forward-chaining rule engine sessions.

Given a snapshot of a session (compiled rules plus working memory), retrace
answers which facts, conditions and bindings caused each rule or query match,
and which matches justified each fact a rule inserted.

Example:
    from retrace import inspect, load_session, render

    snapshot = inspect(load_session("session.json"))
    print(render(snapshot))
"""

from .analysis import (
    InspectionSnapshot,
    SessionInspector,
    conditions_and_rules,
    explain_activations,
    inspect,
    render,
)
from .core import Session, StateInconsistencyError, load_session

__version__ = "0.1.0"

__all__ = [
    "InspectionSnapshot",
    "Session",
    "SessionInspector",
    "StateInconsistencyError",
    "conditions_and_rules",
    "explain_activations",
    "inspect",
    "load_session",
    "render",
]
