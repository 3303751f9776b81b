"""
Session snapshot model.

retrace never runs rules itself. It reads a snapshot of an engine session:
the compiled rule base (productions, queries and the network's node table)
plus the working memory each node currently holds.

Engines written in Python can implement `WorkingMemory` directly. Other
engines export a JSON document that `Session.from_dict` understands:

    {
      "nodes": [
        {"id": 1, "kind": "root-join",
         "condition": {"type": "Cold", "constraints": ["(< temperature 0)"]}},
        {"id": 2, "kind": "accumulate",
         "accumulator": {"function": "min",
                         "source": {"type": "Cold", "constraints": []}}}
      ],
      "productions": [
        {"node_id": 10, "name": "r1", "action": "(insert! ...)",
         "conditions": [{"type": "Cold", "constraints": [...]}]}
      ],
      "queries": [{"node_id": 11, "name": "q1", "conditions": [...]}],
      "memory": {
        "elements":    {"1": [<fact>, ...]},
        "tokens":      {"10": [<token>, ...]},
        "insertions":  {"10": [{"token": <token>, "groups": [[<fact>, ...]]}]},
        "accumulated": {"2": [{"token": <token>, "elements": [<fact>, ...]}]}
      }
    }

A fact is an object carrying a "type" key; anything else (for example an
aggregation result) is taken as a plain value. A token is
{"matches": [[<fact>, node_id], ...], "bindings": {...}, "synthesized": [...]}.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

from pydantic import ValidationError

from .errors import SnapshotFormatError, StateInconsistencyError
from .types import (
    Accumulator,
    Condition,
    Fact,
    InsertionGroups,
    NetworkNode,
    Production,
    Query,
    Token,
)

logger = logging.getLogger(__name__)


class RuleBase:
    """
    Compiled rules and queries with the network node table.

    Productions and queries map to the id of the terminal node holding their
    complete matches.
    """

    def __init__(
        self,
        productions: Optional[Dict[Production, int]] = None,
        queries: Optional[Dict[Query, int]] = None,
        nodes: Optional[List[NetworkNode]] = None,
    ):
        self.productions: Dict[Production, int] = dict(productions or {})
        self.queries: Dict[Query, int] = dict(queries or {})
        self.id_to_node: Dict[int, NetworkNode] = {n.id: n for n in nodes or []}

    def get_node(self, node_id: int) -> NetworkNode:
        """Resolve a node id, failing loudly for ids the table does not know."""
        node = self.id_to_node.get(node_id)
        if node is None:
            raise StateInconsistencyError(
                f"Node {node_id} is referenced by working memory but missing "
                f"from the rule base node table",
                node_id=node_id,
            )
        return node

    def iter_nodes(self) -> Iterator[NetworkNode]:
        return iter(self.id_to_node.values())


class WorkingMemory(ABC):
    """Read-only view of an engine's working memory."""

    @abstractmethod
    def get_elements(self, node_id: int) -> List[Any]:
        """Facts currently held by a node."""

    @abstractmethod
    def get_tokens(self, node_id: int) -> List[Token]:
        """Complete match tokens held by a production or query node."""

    @abstractmethod
    def get_insertions(self, node_id: int) -> List[Tuple[Token, InsertionGroups]]:
        """Insertion groups attributed to each token of a production node."""

    @abstractmethod
    def get_accumulated(self, node_id: int, token: Token) -> List[Any]:
        """Facts an accumulator node consumed for one token, in order."""


class SnapshotMemory(WorkingMemory):
    """WorkingMemory backed by plain in-memory collections."""

    def __init__(self):
        self._elements: Dict[int, List[Any]] = defaultdict(list)
        self._tokens: Dict[int, List[Token]] = defaultdict(list)
        self._insertions: Dict[int, List[Tuple[Token, InsertionGroups]]] = defaultdict(list)
        self._accumulated: Dict[Tuple[int, Token], List[Any]] = {}

    def add_elements(self, node_id: int, facts: List[Any]) -> None:
        self._elements[node_id].extend(facts)

    def add_token(self, node_id: int, token: Token) -> None:
        self._tokens[node_id].append(token)

    def add_insertions(self, node_id: int, token: Token, groups: InsertionGroups) -> None:
        self._insertions[node_id].append((token, [list(g) for g in groups]))

    def set_accumulated(self, node_id: int, token: Token, facts: List[Any]) -> None:
        self._accumulated[(node_id, token)] = list(facts)

    def get_elements(self, node_id: int) -> List[Any]:
        return list(self._elements.get(node_id, []))

    def get_tokens(self, node_id: int) -> List[Token]:
        return list(self._tokens.get(node_id, []))

    def get_insertions(self, node_id: int) -> List[Tuple[Token, InsertionGroups]]:
        return list(self._insertions.get(node_id, []))

    def get_accumulated(self, node_id: int, token: Token) -> List[Any]:
        return list(self._accumulated.get((node_id, token), []))


class Session:
    """A rule base paired with the working memory it produced."""

    def __init__(self, rulebase: RuleBase, memory: WorkingMemory):
        self.rulebase = rulebase
        self.memory = memory

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Session":
        """Decode a snapshot document (see module docstring)."""
        if not isinstance(data, dict):
            raise SnapshotFormatError("Snapshot must be a JSON object")
        try:
            nodes = [_decode_node(n) for n in data.get("nodes", [])]
            productions: Dict[Production, int] = {}
            for p in data.get("productions", []):
                rule = Production(
                    name=p.get("name"),
                    conditions=tuple(_decode_condition(c) for c in p.get("conditions", [])),
                    action=p.get("action", ""),
                )
                _register(productions, rule, int(p["node_id"]), "production")
            queries: Dict[Query, int] = {}
            for q in data.get("queries", []):
                query = Query(
                    name=q.get("name"),
                    conditions=tuple(_decode_condition(c) for c in q.get("conditions", [])),
                    parameters=tuple(q.get("parameters", [])),
                )
                _register(queries, query, int(q["node_id"]), "query")
            memory = _decode_memory(data.get("memory", {}))
        # AttributeError covers lists or scalars where an object is expected
        except (AttributeError, KeyError, TypeError, ValueError, ValidationError) as e:
            raise SnapshotFormatError(f"Malformed session snapshot: {e}") from e

        logger.debug(
            f"Loaded snapshot with {len(nodes)} nodes, {len(productions)} "
            f"productions and {len(queries)} queries"
        )
        return cls(RuleBase(productions, queries, nodes), memory)


def load_session(path: str | Path) -> Session:
    """Load a session snapshot from a JSON file."""
    snapshot_path = Path(path)
    try:
        data = json.loads(snapshot_path.read_text())
    except FileNotFoundError as e:
        raise SnapshotFormatError(f"Snapshot file not found: {snapshot_path}") from e
    except json.JSONDecodeError as e:
        raise SnapshotFormatError(f"Snapshot is not valid JSON: {e}") from e
    return Session.from_dict(data)


# =============================================================================
# Decoding helpers
# =============================================================================


def _register(table: Dict[Any, int], declaration: Any, node_id: int, label: str) -> None:
    """Add a declaration, warning when an identical one is already present."""
    if declaration in table:
        logger.warning(
            f"Duplicate {label} {declaration.label} on node {node_id}; keeping "
            f"node {table[declaration]}"
        )
        return
    table[declaration] = node_id


def decode_fact(value: Any) -> Any:
    """Objects with a "type" key become Facts; everything else passes through."""
    if isinstance(value, dict) and "type" in value:
        attrs = {k: v for k, v in value.items() if k != "type"}
        return Fact(type=value["type"], attributes=attrs)
    return value


def _decode_condition(data: Dict[str, Any]) -> Condition:
    accumulator = None
    if data.get("accumulator") is not None:
        accumulator = _decode_accumulator(data["accumulator"])
    original = data.get("original_constraints")
    return Condition(
        fact_type=data.get("type"),
        constraints=tuple(data.get("constraints", [])),
        original_constraints=tuple(original) if original is not None else None,
        negated=bool(data.get("negated", False)),
        accumulator=accumulator,
    )


def _decode_accumulator(data: Dict[str, Any]) -> Accumulator:
    return Accumulator(function=data["function"], source=_decode_condition(data["source"]))


def _decode_node(data: Dict[str, Any]) -> NetworkNode:
    return NetworkNode(
        id=int(data["id"]),
        kind=str(data["kind"]),
        condition=_decode_condition(data["condition"]) if data.get("condition") else None,
        accumulator=_decode_accumulator(data["accumulator"]) if data.get("accumulator") else None,
    )


def _decode_token(data: Dict[str, Any]) -> Token:
    return Token(
        matches=tuple((decode_fact(fact), int(node_id)) for fact, node_id in data.get("matches", [])),
        bindings={k: decode_fact(v) for k, v in data.get("bindings", {}).items()},
        synthesized=frozenset(data.get("synthesized", [])),
    )


def _decode_memory(data: Dict[str, Any]) -> SnapshotMemory:
    memory = SnapshotMemory()

    for node_id, facts in data.get("elements", {}).items():
        memory.add_elements(int(node_id), [decode_fact(f) for f in facts])

    for node_id, tokens in data.get("tokens", {}).items():
        for token in tokens:
            memory.add_token(int(node_id), _decode_token(token))

    for node_id, records in data.get("insertions", {}).items():
        for record in records:
            groups = [[decode_fact(f) for f in group] for group in record.get("groups", [])]
            memory.add_insertions(int(node_id), _decode_token(record["token"]), groups)

    for node_id, records in data.get("accumulated", {}).items():
        for record in records:
            memory.set_accumulated(
                int(node_id),
                _decode_token(record["token"]),
                [decode_fact(f) for f in record.get("elements", [])],
            )

    return memory
