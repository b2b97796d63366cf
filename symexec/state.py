"""SYMEXEC State: a path condition bound to a program point.

States form a tree rooted at the entry of the analysed unit:

  - sequential operations grow the current state's path condition
  - a conditional branch copies the state twice, adds C to one copy and
    NOT C to the other, and retargets each copy at its successor point
  - a join merges the states arriving along each predecessor edge

The program point is an opaque hashable identifier supplied by the
control-flow provider. A State never owns it.
"""

from __future__ import annotations

from typing import Collection, Hashable, Iterable, Optional, Tuple

from symexec.errors import PreconditionViolation, precondition_error
from symexec.path_condition import PathCondition
from symexec.terms import Term, negate


class State:
    __slots__ = ("point", "pc")

    def __init__(self, point: Hashable, pc: Optional[PathCondition] = None):
        self.point = point
        self.pc = pc if pc is not None else PathCondition()

    def add_constraint(self, term: Term) -> None:
        self.pc.add_constraint(term)

    def copy(self, point: Optional[Hashable] = None) -> State:
        """Deep copy of the path condition, optionally at another point."""
        return State(self.point if point is None else point, self.pc.copy())

    def merge(self, other: State) -> None:
        """OR `other` into this state by appending its disjuncts."""
        self.pc.merge(other.pc)

    def branch(self, condition: Term, true_point: Hashable,
               false_point: Hashable) -> Tuple[State, State]:
        """Fork into (true child, false child). This state is left untouched."""
        negated = negate(condition)

        if_true = self.copy(true_point)
        if_false = self.copy(false_point)
        if_true.add_constraint(condition)
        if_false.add_constraint(negated)
        return if_true, if_false

    @classmethod
    def join(cls, point: Hashable, incoming: Iterable[State]) -> State:
        """Merge `incoming` left to right into a new state at `point`."""
        states = list(incoming)
        if not states:
            raise PreconditionViolation(precondition_error(
                "state.join", "no incoming states", point=point))
        merged = states[0].copy(point)
        for other in states[1:]:
            merged.merge(other)
        return merged

    def is_dead(self) -> bool:
        return self.pc.is_dead()

    def is_terminal(self, exit_points: Collection[Hashable] = ()) -> bool:
        return self.point in exit_points or self.pc.is_dead()

    def __str__(self) -> str:
        return f"<state {self.point}> {self.pc}"

    def __repr__(self) -> str:
        return f"State({self.point!r}, {self.pc})"
