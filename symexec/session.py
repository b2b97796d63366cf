"""SYMEXEC Exploration Session: the operation feed of the engine.

A session owns everything one analysis needs: the expression pool, the
state store, the worklist and its scheduler, and the counter that hands
out symbolic version numbers. Independent sessions share nothing, so
analyses (and tests) never contaminate each other.

The external instruction translator drives a session with five
operations, each carrying already-resolved operands:

  define(point, target, literal)              target == literal
  copy(point, target, source)                 target == source
  arithmetic(point, target, op, a, b)         target == (a op b)
  branch(point, cond, true_pt, false_pt)      fork on cond / NOT cond
  join(point, incoming)                       OR of incoming states

Arguments are validated here, where external data enters the engine;
a bad argument raises PreconditionViolation.

Usage:
    session = ExplorationSession()
    x = session.new_symbolic(name="x")
    y = session.new_symbolic(name="y")
    session.copy("bb1", y, x)
    session.branch("bb1", Term.relation(x, Op.LT, 5), "bb2", "bb3")
    for state in session.scheduler.drain():
        ...
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Hashable, Iterable, Optional, Set, Tuple, Union

from symexec.config import SymexecConfig
from symexec.errors import PreconditionViolation, precondition_error
from symexec.pool import ExpressionPool, Operand
from symexec.scheduler import Scheduler, StateStore, Worklist
from symexec.state import State
from symexec.terms import Term
from symexec.values import (
    ARITHMETIC_OPS, RELATIONAL_OPS, Concrete, Op, SymbolicVariable, Value,
)

logger = logging.getLogger(__name__)

Target = Union[SymbolicVariable, Value]
Driver = Callable[["ExplorationSession", State], None]


class ExplorationSession:
    """One analysis unit's pool, store, worklist and scheduler."""

    def __init__(self, config: Optional[SymexecConfig] = None):
        self.config = config or SymexecConfig()
        self.pool = ExpressionPool()
        self.store = StateStore(self.config.revisit_policy, self.config.max_visits)
        self.worklist = Worklist()
        self.exit_points: Set[Hashable] = set(self.config.exit_points)
        self.scheduler = Scheduler(self.worklist, self.exit_points)
        self._symbols: Dict[int, SymbolicVariable] = {}
        self._next_version = 1

    # -- symbolic variables --------------------------------------------------

    def new_symbolic(self, type_tag: str = "int", name: Optional[str] = None) -> SymbolicVariable:
        """Create a symbolic variable with the next free version number."""
        sym = SymbolicVariable(self._next_version, type_tag, name)
        self._symbols[sym.version] = sym
        self._next_version += 1
        return sym

    def declare_symbolic(self, version: int, type_tag: str = "int",
                         name: Optional[str] = None) -> SymbolicVariable:
        """Register a symbolic whose version was assigned by the translator."""
        if version in self._symbols:
            raise PreconditionViolation(precondition_error(
                "session.declare_symbolic", f"version {version} is already declared"))
        sym = SymbolicVariable(version, type_tag, name)
        self._symbols[version] = sym
        self._next_version = max(self._next_version, version + 1)
        return sym

    def symbol(self, version: int) -> SymbolicVariable:
        try:
            return self._symbols[version]
        except KeyError:
            raise PreconditionViolation(precondition_error(
                "session.symbol", f"no symbolic with version {version}")) from None

    # -- program points ------------------------------------------------------

    def mark_exit(self, point: Hashable) -> None:
        self.exit_points.add(point)

    def state_at(self, point: Hashable) -> State:
        """The state stored at `point`, created fresh on first use."""
        state = self.store.get(point)
        if state is None:
            state = State(point)
            self.store.replace(point, state)
        return state

    # -- sequential operations ----------------------------------------------

    def define(self, point: Hashable, target: Target, literal: Concrete) -> State:
        term = Term.definition(self._target(target, "define", point), Value.concrete(literal))
        state = self.state_at(point)
        state.add_constraint(term)
        return state

    def copy(self, point: Hashable, target: Target, source: Target) -> State:
        src = Value.of(source)
        if not src.is_symbolic():
            raise PreconditionViolation(precondition_error(
                "copy", f"source '{src}' is not symbolic", point=point))
        state = self.state_at(point)
        state.add_constraint(Term.definition(self._target(target, "copy", point), src))
        return state

    def arithmetic(self, point: Hashable, target: Target, op: Op,
                   operand_a: Operand, operand_b: Operand) -> State:
        if op not in ARITHMETIC_OPS:
            raise PreconditionViolation(precondition_error(
                "arithmetic", f"operator {op!r} is not one of + - *", point=point))
        lhs = self._target(target, "arithmetic", point)
        expr = self.pool.intern(operand_a, op, operand_b)
        state = self.state_at(point)
        state.add_constraint(Term.definition(lhs, expr))
        return state

    # -- control flow --------------------------------------------------------

    def branch(self, point: Hashable, condition: Term, true_target: Hashable,
               false_target: Hashable) -> Tuple[State, State]:
        """Fork the state at `point` on `condition`.

        The children are recorded at their targets under the revisit
        policy and pushed onto the worklist, true child first. The parent
        stays in the store at `point` as a snapshot and is not explored
        further. Returns the states now stored at the two targets, which
        are the existing states when a child was merged into them.
        """
        if not condition.is_relational() or condition.op not in RELATIONAL_OPS:
            raise PreconditionViolation(precondition_error(
                "branch", f"condition {condition} is not relational", point=point))

        parent = self.state_at(point)
        if_true, if_false = parent.branch(condition, true_target, false_target)
        self.store.record(point, parent)

        for target, child in ((true_target, if_true), (false_target, if_false)):
            pending = self.store.record(target, child)
            if pending is not None:
                self.worklist.push(pending)

        logger.debug("branch at %s on %s -> %s / %s", point, condition, true_target, false_target)
        return self.store[true_target], self.store[false_target]

    def join(self, point: Hashable, incoming: Iterable[State]) -> State:
        """Merge `incoming` into one state recorded at `point`.

        A state already stored at `point` is a revisit and is handled by
        the store's policy. Returns the state stored at `point` afterwards.
        """
        merged = State.join(point, incoming)
        self.store.record(point, merged)
        stored = self.store[point]
        logger.debug("join at %s: %d disjuncts", point, len(stored.pc))
        return stored

    # -- scheduling ----------------------------------------------------------

    def sched(self) -> Optional[State]:
        return self.scheduler.sched()

    def explore(self, driver: Driver) -> int:
        """Hand every scheduled state to `driver` until the worklist drains.

        Stops early after `config.max_steps` states. Returns the number of
        states handed out.
        """
        steps = 0
        while steps < self.config.max_steps:
            state = self.scheduler.sched()
            if state is None:
                return steps
            driver(self, state)
            steps += 1
        if self.worklist:
            logger.warning("step bound %d reached with %d states pending",
                           self.config.max_steps, len(self.worklist))
        return steps

    # -- helpers -------------------------------------------------------------

    @staticmethod
    def _target(target: Target, operation: str, point: Hashable) -> Value:
        value = Value.of(target)
        if not value.is_symbolic():
            raise PreconditionViolation(precondition_error(
                operation, f"target '{value}' is not symbolic", point=point))
        return value
