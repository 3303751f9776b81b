"""
Core type definitions for retrace.

These models describe both sides of the engine boundary: the declarations and
match tokens an engine hands us, and the explanation records we build from
them. Everything that can key a mapping (facts, conditions, rules, tokens) is
frozen and hashable.
"""

from enum import StrEnum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


def hashable_key(value: Any) -> Any:
    """
    Project a value onto a hashable equivalent.

    Hashable values map to themselves (tuples element-wise). Dicts and lists
    are tagged with their type so they never collide with a plain tuple.
    """
    if isinstance(value, dict):
        return (dict, tuple(sorted((k, hashable_key(v)) for k, v in value.items())))
    if isinstance(value, list):
        return (list, tuple(hashable_key(v) for v in value))
    if isinstance(value, tuple):
        return tuple(hashable_key(v) for v in value)
    if isinstance(value, set):
        return frozenset(hashable_key(v) for v in value)
    return value


class NodeKind(StrEnum):
    """Network node variants recognised in engine snapshots."""
    ROOT_JOIN = "root-join"
    JOIN = "join"
    HASH_JOIN = "hash-join"
    NEGATION = "negation"
    NEGATION_WITH_JOIN_FILTER = "negation-with-join-filter"
    ACCUMULATE = "accumulate"
    ACCUMULATE_WITH_JOIN_FILTER = "accumulate-with-join-filter"
    TEST = "test"
    PRODUCTION = "production"
    QUERY = "query"


class ConditionKind(StrEnum):
    """Semantic kind of condition a network node implements."""
    JOIN = "join"
    NEGATION = "negation"
    UNSUPPORTED = "unsupported"


class Fact(BaseModel):
    """
    A working memory fact as exported by the engine.

    Hashes by value so it can key the fact -> justification map.
    """
    type: str
    attributes: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    def __hash__(self):
        return hash((self.type, hashable_key(self.attributes)))

    def __eq__(self, other):
        if isinstance(other, Fact):
            return self.type == other.type and self.attributes == other.attributes
        return False

    def __str__(self) -> str:
        attrs = ", ".join(f"{k}={v!r}" for k, v in self.attributes.items())
        return f"{self.type}({attrs})"


class Accumulator(BaseModel):
    """Aggregation function applied over the facts matching `source`."""
    function: str
    source: "Condition"

    model_config = ConfigDict(frozen=True)


class Condition(BaseModel):
    """
    One declared pattern condition.

    `constraints` is the compiled form and is always present (possibly empty).
    `original_constraints` is the form the rule author wrote, when the engine
    kept it. Readers should go through `preferred_constraints()`.
    """
    fact_type: Optional[str] = None
    constraints: Tuple[str, ...] = ()
    original_constraints: Optional[Tuple[str, ...]] = None
    negated: bool = False
    accumulator: Optional[Accumulator] = None

    model_config = ConfigDict(frozen=True)

    def preferred_constraints(self) -> Tuple[str, ...]:
        if self.original_constraints:
            return self.original_constraints
        return self.constraints

    def negation(self) -> "Condition":
        """Return this condition wrapped as an explicit negation."""
        return self.model_copy(update={"negated": True})

    def __str__(self) -> str:
        if self.accumulator is not None:
            source = self.accumulator.source
            body = f"{self.accumulator.function} from {source}"
        else:
            constraints = " ".join(self.preferred_constraints())
            body = f"[{self.fact_type}{' ' + constraints if constraints else ''}]"
        return f"[:not {body}]" if self.negated else body


Accumulator.model_rebuild()
Condition.model_rebuild()


def _derived_label(conditions: Tuple[Condition, ...]) -> str:
    return "<" + " ".join(str(c) for c in conditions) + ">"


class Production(BaseModel):
    """A rule: ordered conditions and the action body run on a match."""
    name: Optional[str] = None
    conditions: Tuple[Condition, ...] = ()
    action: str = ""

    model_config = ConfigDict(frozen=True)

    @property
    def label(self) -> str:
        return self.name or _derived_label(self.conditions)


class Query(BaseModel):
    """A named query over working memory."""
    name: Optional[str] = None
    conditions: Tuple[Condition, ...] = ()
    parameters: Tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True)

    @property
    def label(self) -> str:
        return self.name or _derived_label(self.conditions)


class NetworkNode(BaseModel):
    """
    Handle to a node of the engine's network.

    `kind` is kept as a plain string: engines may report variants this
    library has never heard of, and those must load without complaint.
    """
    id: int
    kind: str
    condition: Optional[Condition] = None
    accumulator: Optional[Accumulator] = None

    model_config = ConfigDict(frozen=True)


class Token(BaseModel):
    """
    In-network record of a match.

    `matches` pairs each matched fact with the id of the node that matched
    it. `synthesized` names bindings the engine created itself.
    """
    matches: Tuple[Tuple[Any, int], ...] = ()
    bindings: Dict[str, Any] = Field(default_factory=dict)
    synthesized: FrozenSet[str] = frozenset()

    model_config = ConfigDict(frozen=True)

    def __hash__(self):
        return hash((hashable_key(self.matches), hashable_key(self.bindings)))

    def __eq__(self, other):
        if isinstance(other, Token):
            return self.matches == other.matches and self.bindings == other.bindings
        return False


class ConditionMatch(BaseModel):
    """A condition paired with what it matched."""
    fact: Any
    condition: Condition
    # Only set for accumulator conditions that consumed at least one fact.
    contributing_facts: Optional[Tuple[Any, ...]] = None

    model_config = ConfigDict(frozen=True)


class Explanation(BaseModel):
    """Why a rule or query matched: one ConditionMatch per condition."""
    matches: Tuple[ConditionMatch, ...] = ()
    bindings: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)


class Justification(BaseModel):
    """A rule match that caused a fact to be inserted."""
    rule: Production
    explanation: Explanation

    model_config = ConfigDict(frozen=True)


class Insertion(BaseModel):
    """A fact inserted by a rule together with the match that caused it."""
    explanation: Explanation
    fact: Any

    model_config = ConfigDict(frozen=True)


# Insertion groups recorded against one token: one list per insert call.
InsertionGroups = List[List[Any]]
