"""Explanation reconstruction over session snapshots."""

from .classify import classify_node
from .condition_index import ConditionMatchIndex, build_condition_matches
from .inspector import InspectionSnapshot, SessionInspector, conditions_and_rules, inspect
from .provenance import JustificationMultimap, ProvenanceIndex
from .report import explain_activations, render
from .translate import TokenTranslator

__all__ = [
    "ConditionMatchIndex",
    "InspectionSnapshot",
    "JustificationMultimap",
    "ProvenanceIndex",
    "SessionInspector",
    "TokenTranslator",
    "build_condition_matches",
    "classify_node",
    "conditions_and_rules",
    "explain_activations",
    "inspect",
    "render",
]
