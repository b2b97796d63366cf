"""SYMEXEC State Store and Worklist Scheduler.

The StateStore maps each program point to its current State. The Worklist
holds States waiting to be explored, and the Scheduler pops them in LIFO
order, which makes exploration a depth-first walk of the state tree.

Revisits
--------
A point can receive a second, different State, for example along a loop
back-edge. The store resolves this with an explicit RevisitPolicy:

  BOUNDED    merge the arrival into the stored state; re-explore it until
             the point has been reached `max_visits` times, then only merge
  MERGE      merge the arrival and always re-explore
  OVERWRITE  replace the stored state with the arrival
  REJECT     raise PreconditionViolation

Storing the same State object again is never a revisit.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Collection, Dict, Hashable, Iterator, List, Optional, Tuple

from symexec.config import RevisitPolicy
from symexec.errors import PreconditionViolation, revisit_error
from symexec.state import State

logger = logging.getLogger(__name__)


class StateStore:
    """Program point -> current State, for one exploration session."""

    def __init__(self, policy: RevisitPolicy = RevisitPolicy.BOUNDED, max_visits: int = 10):
        self.policy = policy
        self.max_visits = max_visits
        self._states: Dict[Hashable, State] = {}
        self._visits: Dict[Hashable, int] = defaultdict(int)

    def get(self, point: Hashable) -> Optional[State]:
        return self._states.get(point)

    def visits(self, point: Hashable) -> int:
        return self._visits.get(point, 0)

    def replace(self, point: Hashable, state: State) -> None:
        """Store `state` at `point` unconditionally."""
        if point not in self._states:
            self._visits[point] = 1
        self._states[point] = state

    def record(self, point: Hashable, state: State) -> Optional[State]:
        """Store a state arriving at `point`.

        Returns the state that should be explored from `point`, or None
        when the revisit bound says the point has been explored enough.
        """
        existing = self._states.get(point)
        if existing is None:
            self._states[point] = state
            self._visits[point] = 1
            return state
        if existing is state:
            return state

        self._visits[point] += 1
        visits = self._visits[point]

        if self.policy is RevisitPolicy.REJECT:
            raise PreconditionViolation(revisit_error(point, visits))

        if self.policy is RevisitPolicy.OVERWRITE:
            logger.info("overwriting state at %s (visit %d)", point, visits)
            self._states[point] = state
            return state

        existing.merge(state)
        if self.policy is RevisitPolicy.MERGE or visits <= self.max_visits:
            logger.debug("merged revisit into %s (visit %d)", point, visits)
            return existing

        logger.info("visit bound %d reached at %s, not re-queued", self.max_visits, point)
        return None

    def items(self) -> Iterator[Tuple[Hashable, State]]:
        return iter(self._states.items())

    def points(self) -> List[Hashable]:
        return list(self._states)

    def __getitem__(self, point: Hashable) -> State:
        return self._states[point]

    def __contains__(self, point: object) -> bool:
        return point in self._states

    def __len__(self) -> int:
        return len(self._states)

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._states)


class Worklist:
    """LIFO stack of States pending exploration. No deduplication."""

    def __init__(self) -> None:
        self._items: List[State] = []

    def push(self, state: State) -> None:
        self._items.append(state)

    def pop(self) -> State:
        return self._items.pop()

    def peek(self) -> Optional[State]:
        return self._items[-1] if self._items else None

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __iter__(self) -> Iterator[State]:
        """Iterate from the next state to be popped down to the oldest."""
        return reversed(self._items)


class Scheduler:
    """Decides which pending State is explored next."""

    def __init__(self, worklist: Worklist, exit_points: Collection[Hashable] = ()):
        self.worklist = worklist
        self.exit_points = exit_points
        self.scheduled = 0
        self.discarded = 0

    def sched(self) -> Optional[State]:
        """Pop the most recent non-terminal state, or None when drained."""
        while self.worklist:
            state = self.worklist.pop()
            if state.is_terminal(self.exit_points):
                self.discarded += 1
                logger.debug("discarding terminal state at %s", state.point)
                continue
            self.scheduled += 1
            return state
        return None

    def drain(self) -> Iterator[State]:
        while (state := self.sched()) is not None:
            yield state
