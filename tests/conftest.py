"""Shared fixtures: a small weather session exported as a snapshot document."""

import copy

import pytest

from retrace.core.session import Session

COLD_CONDITION = {
    "type": "Cold",
    "constraints": ["(< (:temperature this) 0)", "(= ?t (:temperature this))"],
    "original_constraints": ["(< temperature 0)", "(= ?t temperature)"],
}

WIND_CONDITION = {"type": "WindSpeed", "constraints": ["(> windspeed 30)"]}

MIN_ACCUMULATOR = {
    "function": "(acc/min :temperature)",
    "source": {"type": "Cold", "constraints": ["(< (:temperature this) 0)"]},
}

COLD_10 = {"type": "Cold", "temperature": -10}
COLD_5 = {"type": "Cold", "temperature": -5}
ALERT = {"type": "Alert", "level": "high"}
COLDEST = {"type": "Coldest", "temperature": -10}

R1_TOKEN = {
    "matches": [[COLD_10, 1]],
    "bindings": {"?t": -10, "?__gen__12": -10},
}
R2_TOKEN = {"matches": [[-10, 2]], "bindings": {"?min": -10}}

SNAPSHOT = {
    "nodes": [
        {"id": 1, "kind": "root-join", "condition": COLD_CONDITION},
        {"id": 2, "kind": "accumulate", "accumulator": MIN_ACCUMULATOR},
        {"id": 3, "kind": "negation", "condition": WIND_CONDITION},
        {"id": 4, "kind": "test"},
        {"id": 5, "kind": "quantum-join", "condition": COLD_CONDITION},
        {"id": 6, "kind": "hash-join", "condition": COLD_CONDITION},
    ],
    "productions": [
        {"node_id": 10, "name": "r1", "action": "(insert! (->Alert :high))",
         "conditions": [COLD_CONDITION]},
        {"node_id": 11, "name": "r2", "action": "(insert-all! [(->Coldest ?min) (->Alert :high)])",
         "conditions": [{"accumulator": MIN_ACCUMULATOR}]},
        {"node_id": 13, "action": "(println ?t)", "conditions": [COLD_CONDITION]},
        {"node_id": 14, "name": "calm", "action": "(println :calm)",
         "conditions": [{**WIND_CONDITION, "negated": True}]},
    ],
    "queries": [
        {"node_id": 12, "name": "cold-query", "conditions": [COLD_CONDITION]},
    ],
    "memory": {
        "elements": {
            "1": [COLD_10, COLD_5],
            "2": [COLD_10, COLD_5],
            "3": [{"type": "WindSpeed", "windspeed": 10}],
            "4": [COLD_10],
            "5": [COLD_5],
            "6": [COLD_10],
        },
        "tokens": {
            "10": [R1_TOKEN],
            "11": [R2_TOKEN],
            "12": [
                {"matches": [[COLD_10, 1]], "bindings": {"?t": -10}},
                {"matches": [[COLD_5, 1]], "bindings": {"?t": -5}},
            ],
        },
        "insertions": {
            "10": [{"token": R1_TOKEN, "groups": [[ALERT]]}],
            "11": [{"token": R2_TOKEN, "groups": [[COLDEST], [ALERT]]}],
        },
        "accumulated": {
            "2": [{"token": R2_TOKEN, "elements": [COLD_10, COLD_5]}],
        },
    },
}


@pytest.fixture
def snapshot_data():
    """A fresh copy of the weather snapshot document."""
    return copy.deepcopy(SNAPSHOT)


@pytest.fixture
def session(snapshot_data):
    return Session.from_dict(snapshot_data)
