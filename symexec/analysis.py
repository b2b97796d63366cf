"""SYMEXEC Path Condition Analyses: dependencies and per-conjunction ranges.

find_dependencies(sym, state)
    The set of symbolic variables that influence `sym` within a state's
    path condition. Only terms with `sym` alone on one side count: every
    symbolic on the other side, through any expression nesting, is a
    direct dependency. Terms that merely mention `sym` inside an
    expression, such as the definition of another symbol, contribute
    nothing. The result is closed transitively and never contains `sym`
    itself.

get_ranges(conjunction)
    For every symbolic on the left of a term, a Range built from that
    term. Later terms overwrite earlier ones: this is a snapshot of the
    last bound seen, not interval narrowing.

Both are read-only. Expression walks use an explicit stack and a visited
set, so deep expression DAGs can't exhaust the call stack.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Union

from symexec.path_condition import Conjunction, PathCondition
from symexec.state import State
from symexec.terms import Term
from symexec.values import Concrete, Op, SymbolicVariable, Value


# ---------------------------------------------------------------------------
# Dependency analysis
# ---------------------------------------------------------------------------

def _symbolics_in(value: Value) -> Set[SymbolicVariable]:
    """Every symbolic reachable from `value`."""
    found: Set[SymbolicVariable] = set()
    stack = [value]
    seen: Set[int] = set()
    while stack:
        v = stack.pop()
        if v.is_symbolic():
            found.add(v.get_symbolic())
        elif v.is_expr():
            e = v.get_expr()
            if id(e) in seen:
                continue
            seen.add(id(e))
            stack.extend(e.operands())
    return found


def _direct_dependencies(sym: SymbolicVariable, pc: PathCondition) -> Set[SymbolicVariable]:
    found: Set[SymbolicVariable] = set()
    for conj in pc:
        for term in conj:
            if term.lhs.is_symbolic() and term.lhs.get_symbolic() == sym:
                found |= _symbolics_in(term.rhs)
            if term.rhs.is_symbolic() and term.rhs.get_symbolic() == sym:
                found |= _symbolics_in(term.lhs)
    return found


def find_dependencies(sym: Union[SymbolicVariable, Value],
                      state: Union[State, PathCondition]) -> Set[SymbolicVariable]:
    """Return the symbols involved in the value of `sym`."""
    if isinstance(sym, Value):
        sym = sym.get_symbolic()
    pc = state.pc if isinstance(state, State) else state

    deps: Set[SymbolicVariable] = set()
    frontier = [sym]
    while frontier:
        current = frontier.pop()
        for dep in _direct_dependencies(current, pc):
            if dep != sym and dep not in deps:
                deps.add(dep)
                frontier.append(dep)
    return deps


# ---------------------------------------------------------------------------
# Ranges
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Range:
    """Bound on one symbolic, derived from a single term.

    `lower`/`upper` are only set when the other side of the term is a
    concrete literal; None means unbounded on that side.
    """
    sym: SymbolicVariable
    term: Term
    lower: Optional[Concrete] = None
    upper: Optional[Concrete] = None
    lower_inclusive: bool = True
    upper_inclusive: bool = True
    excluded: Optional[Concrete] = None

    @classmethod
    def make_range(cls, term: Term) -> Range:
        sym = term.lhs.get_symbolic()
        if not term.rhs.is_concrete():
            return cls(sym, term)

        c = term.rhs.get_concrete()
        if term.op == Op.EQ:
            return cls(sym, term, lower=c, upper=c)
        if term.op == Op.NE:
            return cls(sym, term, excluded=c)
        if term.op == Op.LT:
            return cls(sym, term, upper=c, upper_inclusive=False)
        if term.op == Op.LE:
            return cls(sym, term, upper=c)
        if term.op == Op.GT:
            return cls(sym, term, lower=c, lower_inclusive=False)
        if term.op == Op.GE:
            return cls(sym, term, lower=c)
        return cls(sym, term)

    def is_bounded(self) -> bool:
        return self.lower is not None or self.upper is not None

    def contains(self, literal: Concrete) -> bool:
        if self.excluded is not None and literal == self.excluded:
            return False
        if self.lower is not None:
            if literal < self.lower or (literal == self.lower and not self.lower_inclusive):
                return False
        if self.upper is not None:
            if literal > self.upper or (literal == self.upper and not self.upper_inclusive):
                return False
        return True

    def __str__(self) -> str:
        if self.excluded is not None:
            return f"{self.sym} != {self.excluded}"
        lo = "-inf" if self.lower is None else str(self.lower)
        hi = "+inf" if self.upper is None else str(self.upper)
        left = "[" if self.lower is not None and self.lower_inclusive else "("
        right = "]" if self.upper is not None and self.upper_inclusive else ")"
        return f"{self.sym} in {left}{lo}, {hi}{right}"


def get_ranges(conj: Conjunction) -> Dict[SymbolicVariable, Range]:
    ranges: Dict[SymbolicVariable, Range] = {}
    for term in conj:
        if term.lhs.is_symbolic():
            ranges[term.lhs.get_symbolic()] = Range.make_range(term)
    return ranges


def get_all_ranges(pc: Union[PathCondition, State]) -> List[Dict[SymbolicVariable, Range]]:
    """One range mapping per disjunct, in disjunct order."""
    if isinstance(pc, State):
        pc = pc.pc
    return [get_ranges(conj) for conj in pc]
