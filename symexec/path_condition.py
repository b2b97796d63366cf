"""SYMEXEC Path Condition: a DNF formula over Terms.

    PathCondition = C_1 OR C_2 OR ... OR C_n
    Conjunction   = t_1 AND t_2 AND ... AND t_k

Adding a constraint t to a PathCondition conjoins it into every disjunct,
which is distribution of AND over OR:

    (C_1 OR C_2) AND t  =  (C_1 AND t) OR (C_2 AND t)

Merging two path conditions concatenates their disjunct lists (OR). No
deduplication or simplification happens, so the number of disjuncts only
grows. A Conjunction marked unsatisfiable by a downstream solver stays in
place as a dead disjunct and absorbs any further additions.
"""

from __future__ import annotations

from typing import Iterable, Iterator, List, Optional

from symexec.terms import Term


class Conjunction:
    """An AND-clause of Terms plus the `unsatisfiable` flag."""

    __slots__ = ("terms", "unsatisfiable")

    def __init__(self, terms: Optional[Iterable[Term]] = None, unsatisfiable: bool = False):
        self.terms: List[Term] = list(terms) if terms is not None else []
        self.unsatisfiable = unsatisfiable

    def add_constraint(self, term: Term) -> None:
        if self.unsatisfiable:
            return
        self.terms.append(term)

    def mark_unsatisfiable(self) -> None:
        self.unsatisfiable = True

    def copy(self) -> Conjunction:
        return Conjunction(self.terms, self.unsatisfiable)

    def __len__(self) -> int:
        return len(self.terms)

    def __iter__(self) -> Iterator[Term]:
        return iter(self.terms)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Conjunction):
            return NotImplemented
        return self.unsatisfiable == other.unsatisfiable and self.terms == other.terms

    __hash__ = None  # type: ignore[assignment]

    def __str__(self) -> str:
        if self.unsatisfiable:
            return "[unsatisfiable]"
        if not self.terms:
            return "[empty]"
        return "[" + " AND ".join(str(t) for t in self.terms) + "]"

    def __repr__(self) -> str:
        return f"Conjunction({self})"


class PathCondition:
    """An OR of Conjunctions. Starts as a single empty (true) Conjunction."""

    __slots__ = ("conjunctions",)

    def __init__(self, conjunctions: Optional[Iterable[Conjunction]] = None):
        if conjunctions is None:
            self.conjunctions: List[Conjunction] = [Conjunction()]
        else:
            self.conjunctions = list(conjunctions)

    @classmethod
    def false(cls) -> PathCondition:
        """A path condition with no disjuncts at all."""
        return cls([])

    def add_constraint(self, term: Term) -> None:
        for conj in self.conjunctions:
            conj.add_constraint(term)

    def merge(self, other: PathCondition) -> None:
        # other may be self; snapshot before extending
        copies = [conj.copy() for conj in other.conjunctions]
        self.conjunctions.extend(copies)

    def copy(self) -> PathCondition:
        return PathCondition(conj.copy() for conj in self.conjunctions)

    def live(self) -> Iterator[Conjunction]:
        return (conj for conj in self.conjunctions if not conj.unsatisfiable)

    def is_dead(self) -> bool:
        """True when no disjunct can still be satisfied."""
        return all(conj.unsatisfiable for conj in self.conjunctions)

    def __len__(self) -> int:
        return len(self.conjunctions)

    def __iter__(self) -> Iterator[Conjunction]:
        return iter(self.conjunctions)

    def __getitem__(self, index: int) -> Conjunction:
        return self.conjunctions[index]

    def __str__(self) -> str:
        if not self.conjunctions:
            return "(empty)"
        return " OR ".join(str(c) for c in self.conjunctions)

    def __repr__(self) -> str:
        return f"PathCondition({self})"
