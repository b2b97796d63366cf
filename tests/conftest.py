"""Shared fixtures: a small branching trace used by the trace and CLI tests."""

import json

import pytest


DIAMOND = {
    "symbols": [
        {"version": 1, "name": "x"},
        {"version": 2, "name": "y"},
        {"version": 3, "name": "z"},
    ],
    "exits": ["bb4"],
    "operations": [
        {"op": "copy", "point": "bb1", "target": 2, "source": 1},
        {"op": "arithmetic", "point": "bb1", "target": 3, "operator": "+",
         "lhs": {"sym": 2}, "rhs": 3},
        {"op": "branch", "point": "bb1",
         "condition": {"lhs": {"sym": 1}, "op": "<", "rhs": 5},
         "true": "bb2", "false": "bb3"},
        {"op": "join", "point": "bb4", "from": ["bb2", "bb3"]},
    ],
}


@pytest.fixture
def diamond():
    return json.loads(json.dumps(DIAMOND))


@pytest.fixture
def write_trace(tmp_path):
    def _write(data, name="trace.json"):
        path = tmp_path / name
        path.write_text(data if isinstance(data, str) else json.dumps(data))
        return str(path)
    return _write
