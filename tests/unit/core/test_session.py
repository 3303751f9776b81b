"""Unit tests for snapshot decoding and the in-memory working memory."""

import json
import logging

import pytest

from retrace.core.errors import SnapshotFormatError, StateInconsistencyError
from retrace.core.session import RuleBase, Session, SnapshotMemory, decode_fact, load_session
from retrace.core.types import Fact, NetworkNode, Token


class TestDecodeFact:
    def test_typed_object_becomes_fact(self):
        fact = decode_fact({"type": "Cold", "temperature": -10})
        assert fact == Fact(type="Cold", attributes={"temperature": -10})

    def test_scalars_pass_through(self):
        assert decode_fact(-10) == -10
        assert decode_fact({"temperature": -10}) == {"temperature": -10}


class TestSessionFromDict:
    def test_loads_rulebase(self, session):
        rulebase = session.rulebase
        names = [rule.name for rule in rulebase.productions]

        assert names == ["r1", "r2", None, "calm"]
        assert [q.name for q in rulebase.queries] == ["cold-query"]
        assert set(rulebase.id_to_node) == {1, 2, 3, 4, 5, 6}

    def test_unknown_node_kind_is_tolerated(self, session):
        assert session.rulebase.get_node(5).kind == "quantum-join"

    def test_decodes_accumulator_node(self, session):
        node = session.rulebase.get_node(2)
        assert node.accumulator.function == "(acc/min :temperature)"
        assert node.accumulator.source.fact_type == "Cold"

    def test_decodes_memory(self, session):
        cold_10 = Fact(type="Cold", attributes={"temperature": -10})
        cold_5 = Fact(type="Cold", attributes={"temperature": -5})

        assert session.memory.get_elements(1) == [cold_10, cold_5]
        assert len(session.memory.get_tokens(12)) == 2
        token, groups = session.memory.get_insertions(11)[0]
        assert len(groups) == 2
        assert session.memory.get_accumulated(2, token) == [cold_10, cold_5]

    def test_missing_node_id_raises_format_error(self, snapshot_data):
        del snapshot_data["productions"][0]["node_id"]
        with pytest.raises(SnapshotFormatError):
            Session.from_dict(snapshot_data)

    def test_non_object_rejected(self):
        with pytest.raises(SnapshotFormatError):
            Session.from_dict([1, 2, 3])

    @pytest.mark.parametrize(
        "path, value",
        [
            (("memory", "elements"), [1, 2]),
            (("memory",), [1, 2]),
            (("productions", 0), ["r1"]),
            (("nodes", 0), "root-join"),
        ],
    )
    def test_wrong_shape_rejected(self, snapshot_data, path, value):
        target = snapshot_data
        for key in path[:-1]:
            target = target[key]
        target[path[-1]] = value

        with pytest.raises(SnapshotFormatError):
            Session.from_dict(snapshot_data)

    def test_duplicate_production_warns(self, snapshot_data, caplog):
        snapshot_data["productions"].append({**snapshot_data["productions"][0], "node_id": 99})

        with caplog.at_level(logging.WARNING, logger="retrace.core.session"):
            session = Session.from_dict(snapshot_data)

        assert "Duplicate production r1" in caplog.text
        assert len(session.rulebase.productions) == 4
        r1 = next(rule for rule in session.rulebase.productions if rule.name == "r1")
        assert session.rulebase.productions[r1] == 10

    def test_duplicate_query_warns(self, snapshot_data, caplog):
        snapshot_data["queries"].append({**snapshot_data["queries"][0], "node_id": 98})

        with caplog.at_level(logging.WARNING, logger="retrace.core.session"):
            session = Session.from_dict(snapshot_data)

        assert "Duplicate query cold-query" in caplog.text
        assert list(session.rulebase.queries.values()) == [12]


class TestRuleBase:
    def test_unknown_node_raises_state_inconsistency(self):
        rulebase = RuleBase(nodes=[NetworkNode(id=1, kind="join")])
        with pytest.raises(StateInconsistencyError) as exc:
            rulebase.get_node(99)
        assert exc.value.node_id == 99


class TestSnapshotMemory:
    def test_empty_lookups(self):
        memory = SnapshotMemory()
        assert memory.get_elements(1) == []
        assert memory.get_tokens(1) == []
        assert memory.get_insertions(1) == []
        assert memory.get_accumulated(1, Token()) == []

    def test_returned_lists_are_copies(self):
        memory = SnapshotMemory()
        memory.add_elements(1, ["a"])
        memory.get_elements(1).append("b")
        assert memory.get_elements(1) == ["a"]


class TestLoadSession:
    def test_load_from_file(self, tmp_path, snapshot_data):
        path = tmp_path / "session.json"
        path.write_text(json.dumps(snapshot_data))

        session = load_session(path)
        assert len(session.rulebase.productions) == 4

    def test_missing_file(self, tmp_path):
        with pytest.raises(SnapshotFormatError, match="not found"):
            load_session(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text("{not json")
        with pytest.raises(SnapshotFormatError, match="not valid JSON"):
            load_session(path)
