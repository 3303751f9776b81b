"""Unit tests for insertion provenance."""

from retrace.analysis.provenance import JustificationMultimap, ProvenanceIndex
from retrace.core.session import Session
from retrace.core.types import Explanation, Fact, Justification, Production

ALERT = Fact(type="Alert", attributes={"level": "high"})
COLDEST = Fact(type="Coldest", attributes={"temperature": -10})
COLD_10 = Fact(type="Cold", attributes={"temperature": -10})


class TestJustificationMultimap:
    def test_add_appends(self):
        index = JustificationMultimap()
        first = Justification(rule=Production(name="a"), explanation=Explanation())
        second = Justification(rule=Production(name="b"), explanation=Explanation())
        index.add("fact", first)
        index.add("fact", second)

        assert [j.rule.name for j in index.get("fact")] == ["a", "b"]
        assert len(index) == 1

    def test_merge_concatenates(self):
        left, right = JustificationMultimap(), JustificationMultimap()
        left.add("x", Justification(rule=Production(name="a"), explanation=Explanation()))
        right.add("x", Justification(rule=Production(name="b"), explanation=Explanation()))
        right.add("y", Justification(rule=Production(name="c"), explanation=Explanation()))

        merged = left.merge(right)
        assert [j.rule.name for j in merged.get("x")] == ["a", "b"]
        assert [j.rule.name for j in merged.get("y")] == ["c"]
        # Inputs untouched
        assert len(left.get("x")) == 1

    def test_missing_fact(self):
        index = JustificationMultimap()
        assert "nope" not in index
        assert index.get("nope") == []

    def test_unhashable_facts_indexed_by_value(self):
        index = JustificationMultimap()
        index.add([1, 2], Justification(rule=Production(name="a"), explanation=Explanation()))
        index.add([1, 2], Justification(rule=Production(name="b"), explanation=Explanation()))
        index.add({"level": "high"}, Justification(rule=Production(name="c"), explanation=Explanation()))

        assert [j.rule.name for j in index.get([1, 2])] == ["a", "b"]
        assert {"level": "high"} in index
        # A tuple with the same elements is a different fact
        assert (1, 2) not in index
        assert list(index.fact_values().values()) == [[1, 2], {"level": "high"}]


class TestProvenanceIndex:
    def test_fact_inserted_by_two_rules_keeps_both(self, session):
        index = ProvenanceIndex(session).build()
        names = [j.rule.name for j in index[ALERT]]
        assert names == ["r1", "r2"]

    def test_each_group_member_indexed(self, session):
        index = ProvenanceIndex(session).build()
        [justification] = index[COLDEST]

        assert justification.rule.name == "r2"
        assert justification.explanation.bindings == {"?min": -10}
        assert justification.explanation.matches[0].contributing_facts is not None

    def test_explanation_matches_causing_token(self, session):
        index = ProvenanceIndex(session).build()
        r1 = next(j for j in index[ALERT] if j.rule.name == "r1")

        assert r1.explanation.matches[0].fact == COLD_10
        assert r1.explanation.bindings == {"?t": -10}

    def test_directly_asserted_facts_absent(self, session):
        index = ProvenanceIndex(session).build()
        assert COLD_10 not in index
        assert set(index) == {ALERT, COLDEST}

    def test_iter_insertions_order(self, session):
        inserted = [(rule.name, fact) for rule, _, fact in ProvenanceIndex(session).iter_insertions()]
        assert inserted == [("r1", ALERT), ("r2", COLDEST), ("r2", ALERT)]

    def test_unhashable_inserted_value(self, snapshot_data):
        snapshot_data["memory"]["insertions"]["10"][0]["groups"] = [[[1, 2]]]
        index = ProvenanceIndex(Session.from_dict(snapshot_data)).build_multimap()

        assert [j.rule.name for j in index.get([1, 2])] == ["r1"]
