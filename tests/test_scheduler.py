"""SYMEXEC State Store & Scheduler Tests.

Tests for:
  - RevisitPolicy handling in StateStore.record
  - LIFO order of the Worklist
  - Scheduler skipping terminal states
"""

import pytest

from symexec.config import RevisitPolicy
from symexec.errors import ErrorKind, PreconditionViolation
from symexec.path_condition import Conjunction, PathCondition
from symexec.scheduler import Scheduler, StateStore, Worklist
from symexec.state import State
from symexec.terms import Term
from symexec.values import Op, SymbolicVariable

X = SymbolicVariable(1, name="x")


def _state(point, bound):
    return State(point, PathCondition([Conjunction([Term.relation(X, Op.LT, bound)])]))


# ===========================================================================
# StateStore
# ===========================================================================

class TestStateStore:

    def test_first_arrival_stored(self):
        store = StateStore()
        s = _state("p", 1)
        assert store.record("p", s) is s
        assert store["p"] is s
        assert store.visits("p") == 1
        assert "p" in store and len(store) == 1

    def test_same_state_is_not_a_revisit(self):
        store = StateStore(RevisitPolicy.REJECT)
        s = _state("p", 1)
        store.record("p", s)
        assert store.record("p", s) is s
        assert store.visits("p") == 1

    def test_bounded_merges_then_stops_requeueing(self):
        store = StateStore(RevisitPolicy.BOUNDED, max_visits=2)
        first = _state("p", 1)
        store.record("p", first)
        assert store.record("p", _state("p", 2)) is first
        assert store.record("p", _state("p", 3)) is None
        assert store["p"] is first
        assert len(first.pc) == 3
        assert store.visits("p") == 3

    def test_merge_always_requeues(self):
        store = StateStore(RevisitPolicy.MERGE, max_visits=1)
        first = _state("p", 1)
        store.record("p", first)
        for bound in range(2, 6):
            assert store.record("p", _state("p", bound)) is first
        assert len(first.pc) == 5

    def test_overwrite_last_writer_wins(self):
        store = StateStore(RevisitPolicy.OVERWRITE)
        store.record("p", _state("p", 1))
        second = _state("p", 2)
        assert store.record("p", second) is second
        assert store["p"] is second
        assert len(second.pc) == 1

    def test_reject_raises(self):
        store = StateStore(RevisitPolicy.REJECT)
        store.record("p", _state("p", 1))
        with pytest.raises(PreconditionViolation) as exc:
            store.record("p", _state("p", 2))
        err = exc.value.errors[0]
        assert err.kind is ErrorKind.REVISIT_REJECTED
        assert err.details["visits"] == 2

    def test_replace_is_unconditional(self):
        store = StateStore(RevisitPolicy.REJECT)
        store.replace("p", _state("p", 1))
        second = _state("p", 2)
        store.replace("p", second)
        assert store.get("p") is second
        assert store.visits("p") == 1

    def test_unknown_point(self):
        store = StateStore()
        assert store.get("nowhere") is None
        assert store.visits("nowhere") == 0

    def test_points_in_insertion_order(self):
        store = StateStore()
        for p in ["c", "a", "b"]:
            store.record(p, State(p))
        assert store.points() == ["c", "a", "b"]
        assert list(store) == ["c", "a", "b"]


# ===========================================================================
# Worklist & Scheduler
# ===========================================================================

class TestWorklist:

    def test_lifo(self):
        wl = Worklist()
        a, b, c = State("a"), State("b"), State("c")
        for s in (a, b, c):
            wl.push(s)
        assert wl.peek() is c
        assert [s.point for s in wl] == ["c", "b", "a"]
        assert wl.pop() is c
        assert wl.pop() is b
        assert len(wl) == 1

    def test_empty(self):
        wl = Worklist()
        assert not wl
        assert wl.peek() is None

    def test_duplicates_allowed(self):
        wl = Worklist()
        s = State("a")
        wl.push(s)
        wl.push(s)
        assert len(wl) == 2


class TestScheduler:

    def test_sched_pops_most_recent(self):
        wl = Worklist()
        wl.push(State("a"))
        wl.push(State("b"))
        sched = Scheduler(wl)
        assert sched.sched().point == "b"
        assert sched.sched().point == "a"
        assert sched.sched() is None
        assert sched.scheduled == 2

    def test_exit_points_skipped(self):
        wl = Worklist()
        wl.push(State("a"))
        wl.push(State("exit"))
        sched = Scheduler(wl, {"exit"})
        assert sched.sched().point == "a"
        assert sched.discarded == 1

    def test_dead_states_skipped(self):
        wl = Worklist()
        dead = State("dead")
        dead.pc[0].mark_unsatisfiable()
        wl.push(State("a"))
        wl.push(dead)
        assert [s.point for s in Scheduler(wl).drain()] == ["a"]

    def test_drain_sees_pushes_during_iteration(self):
        wl = Worklist()
        wl.push(State("a"))
        seen = []
        for s in Scheduler(wl).drain():
            seen.append(s.point)
            if s.point == "a":
                wl.push(State("b"))
        assert seen == ["a", "b"]
