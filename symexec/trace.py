"""SYMEXEC Operation Traces: a JSON feed of abstract operations.

A trace lets the engine run without a host compiler: the translator (or
a test) writes down the operations it would have issued, and `replay`
feeds them into an ExplorationSession in order.

Format:
    {
      "symbols": [{"version": 1, "name": "x", "type": "int"}, ...],
      "exits": ["bb9"],
      "operations": [
        {"op": "define", "point": "bb1", "target": 1, "value": 5},
        {"op": "copy", "point": "bb1", "target": 2, "source": 1},
        {"op": "arithmetic", "point": "bb1", "target": 3, "operator": "+",
         "lhs": {"sym": 2}, "rhs": 3},
        {"op": "branch", "point": "bb1",
         "condition": {"lhs": {"sym": 1}, "op": "<", "rhs": 5},
         "true": "bb2", "false": "bb3"},
        {"op": "join", "point": "bb4", "from": ["bb2", "bb3"]}
      ]
    }

Operands are JSON numbers or {"sym": <version>}; targets and sources are
bare version numbers. Program points are strings.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from symexec.errors import TraceError, trace_error
from symexec.session import ExplorationSession
from symexec.state import State
from symexec.terms import Term
from symexec.values import Concrete, Op, Value, op_from_str


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------

@dataclass
class SymbolDecl:
    version: int
    name: Optional[str] = None
    type_tag: str = "int"


@dataclass
class OperandRef:
    """A literal, or a reference to a declared symbolic by version."""
    literal: Optional[Concrete] = None
    sym: Optional[int] = None

    def resolve(self, session: ExplorationSession) -> Value:
        if self.sym is not None:
            return Value.symbolic(session.symbol(self.sym))
        return Value.concrete(self.literal)  # type: ignore[arg-type]


@dataclass
class Define:
    point: str
    target: int
    value: Concrete

    def apply(self, session: ExplorationSession) -> None:
        session.define(self.point, session.symbol(self.target), self.value)


@dataclass
class Copy:
    point: str
    target: int
    source: int

    def apply(self, session: ExplorationSession) -> None:
        session.copy(self.point, session.symbol(self.target), session.symbol(self.source))


@dataclass
class Arithmetic:
    point: str
    target: int
    op: Op
    lhs: OperandRef
    rhs: OperandRef

    def apply(self, session: ExplorationSession) -> None:
        session.arithmetic(self.point, session.symbol(self.target), self.op,
                           self.lhs.resolve(session), self.rhs.resolve(session))


@dataclass
class Branch:
    point: str
    lhs: OperandRef
    op: Op
    rhs: OperandRef
    true_target: str
    false_target: str

    def apply(self, session: ExplorationSession) -> None:
        condition = Term.relation(self.lhs.resolve(session), self.op, self.rhs.resolve(session))
        session.branch(self.point, condition, self.true_target, self.false_target)


@dataclass
class Join:
    point: str
    sources: List[str] = field(default_factory=list)

    def apply(self, session: ExplorationSession) -> None:
        incoming: List[State] = []
        for src in self.sources:
            state = session.store.get(src)
            if state is None:
                raise TraceError(trace_error(f"join at '{self.point}': no state stored at '{src}'"))
            incoming.append(state)
        session.join(self.point, incoming)


Operation = Union[Define, Copy, Arithmetic, Branch, Join]


@dataclass
class Trace:
    symbols: List[SymbolDecl] = field(default_factory=list)
    exits: List[str] = field(default_factory=list)
    operations: List[Operation] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def _number(raw: Any, what: str, index: int) -> Concrete:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise TraceError(trace_error(f"{what} must be a number, got {raw!r}", index))
    return raw


def _version(raw: Any, what: str, index: Optional[int]) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise TraceError(trace_error(f"{what} must be a symbol version, got {raw!r}", index))
    return raw


def _operand(raw: Any, what: str, index: int) -> OperandRef:
    if isinstance(raw, dict):
        if "sym" not in raw:
            raise TraceError(trace_error(f"{what} object needs a 'sym' key", index))
        return OperandRef(sym=_version(raw["sym"], what, index))
    return OperandRef(literal=_number(raw, what, index))


def _operator(raw: Any, allowed: str, index: int) -> Op:
    try:
        return op_from_str(str(raw))
    except KeyError:
        raise TraceError(trace_error(f"unsupported {allowed} operator {raw!r}", index)) from None


def _require(entry: Dict[str, Any], keys: List[str], index: int) -> None:
    missing = [k for k in keys if k not in entry]
    if missing:
        raise TraceError(trace_error(
            f"operation '{entry.get('op')}' is missing {', '.join(missing)}", index))


def _parse_operation(entry: Any, index: int) -> Operation:
    if not isinstance(entry, dict) or "op" not in entry:
        raise TraceError(trace_error("operation must be an object with an 'op' key", index))

    kind = entry["op"]
    if kind == "define":
        _require(entry, ["point", "target", "value"], index)
        return Define(str(entry["point"]), _version(entry["target"], "target", index),
                      _number(entry["value"], "value", index))
    if kind == "copy":
        _require(entry, ["point", "target", "source"], index)
        return Copy(str(entry["point"]), _version(entry["target"], "target", index),
                    _version(entry["source"], "source", index))
    if kind == "arithmetic":
        _require(entry, ["point", "target", "operator", "lhs", "rhs"], index)
        return Arithmetic(str(entry["point"]), _version(entry["target"], "target", index),
                          _operator(entry["operator"], "arithmetic", index),
                          _operand(entry["lhs"], "lhs", index),
                          _operand(entry["rhs"], "rhs", index))
    if kind == "branch":
        _require(entry, ["point", "condition", "true", "false"], index)
        cond = entry["condition"]
        if not isinstance(cond, dict):
            raise TraceError(trace_error("branch condition must be an object", index))
        _require(cond, ["lhs", "op", "rhs"], index)
        return Branch(str(entry["point"]),
                      _operand(cond["lhs"], "condition lhs", index),
                      _operator(cond["op"], "relational", index),
                      _operand(cond["rhs"], "condition rhs", index),
                      str(entry["true"]), str(entry["false"]))
    if kind == "join":
        _require(entry, ["point", "from"], index)
        if not isinstance(entry["from"], list):
            raise TraceError(trace_error("join 'from' must be a list of points", index))
        return Join(str(entry["point"]), [str(p) for p in entry["from"]])

    raise TraceError(trace_error(f"unknown operation '{kind}'", index))


def parse_trace(data: Any) -> Trace:
    """Build a Trace from an already-decoded JSON document."""
    if not isinstance(data, dict):
        raise TraceError(trace_error("trace must be a JSON object"))

    trace = Trace()
    for raw in data.get("symbols", []):
        if not isinstance(raw, dict) or "version" not in raw:
            raise TraceError(trace_error(f"symbol declaration needs a version: {raw!r}"))
        trace.symbols.append(SymbolDecl(
            version=_version(raw["version"], "symbol version", None),
            name=raw.get("name"),
            type_tag=str(raw.get("type", "int")),
        ))
    trace.exits = [str(p) for p in data.get("exits", [])]

    operations = data.get("operations", [])
    if not isinstance(operations, list):
        raise TraceError(trace_error("'operations' must be a list"))
    trace.operations = [_parse_operation(entry, i) for i, entry in enumerate(operations)]
    return trace


def load_trace(path: str) -> Trace:
    try:
        with open(path, "r") as f:
            data = json.load(f)
    except (IOError, OSError) as e:
        raise TraceError(trace_error(f"cannot read trace '{path}': {e}")) from e
    except json.JSONDecodeError as e:
        raise TraceError(trace_error(f"invalid JSON in '{path}': {e}")) from e
    return parse_trace(data)


# ---------------------------------------------------------------------------
# Replay
# ---------------------------------------------------------------------------

def replay(trace: Trace, session: Optional[ExplorationSession] = None) -> ExplorationSession:
    """Feed every operation of `trace` into `session`, in order."""
    if session is None:
        session = ExplorationSession()

    for decl in trace.symbols:
        session.declare_symbolic(decl.version, decl.type_tag, decl.name)
    for point in trace.exits:
        session.mark_exit(point)
    for op in trace.operations:
        op.apply(session)

    return session
