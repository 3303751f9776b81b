"""Core types, session model and errors for retrace."""

from .errors import ConfigError, RetraceError, SnapshotFormatError, StateInconsistencyError
from .session import RuleBase, Session, SnapshotMemory, WorkingMemory, load_session
from .types import (
    Accumulator,
    Condition,
    ConditionKind,
    ConditionMatch,
    Explanation,
    Fact,
    Insertion,
    Justification,
    NetworkNode,
    NodeKind,
    Production,
    Query,
    Token,
)

__all__ = [
    "Accumulator",
    "Condition",
    "ConditionKind",
    "ConditionMatch",
    "ConfigError",
    "Explanation",
    "Fact",
    "Insertion",
    "Justification",
    "NetworkNode",
    "NodeKind",
    "Production",
    "Query",
    "RetraceError",
    "RuleBase",
    "Session",
    "SnapshotFormatError",
    "SnapshotMemory",
    "StateInconsistencyError",
    "Token",
    "WorkingMemory",
    "load_session",
]
