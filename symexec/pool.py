"""SYMEXEC Expression Pool: hash-consing of expression nodes.

The pool is both the arena that owns every Expression of an exploration
session and the index that maps a structural key to the canonical node.
`intern` is the only way an Expression is created, so two structurally
identical requests always yield the same instance and expression identity
can be compared in O(1).

Interning is structural, not algebraic: (a + b) and (b + a) are
distinct nodes.

Usage:
    pool = ExpressionPool()
    e1 = pool.intern(a, Op.PLUS, b)
    e2 = pool.intern(a, Op.PLUS, b)
    assert e1 is e2
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Union

from symexec.errors import PreconditionViolation, precondition_error
from symexec.values import Concrete, Expression, Op, SymbolicVariable, Value

logger = logging.getLogger(__name__)

Operand = Union[Value, Concrete, SymbolicVariable, Expression]


class ExpressionPool:
    """Arena of interned expressions. Grows monotonically; never evicts."""

    def __init__(self) -> None:
        self._arena: List[Expression] = []
        self._index: Dict[str, Expression] = {}
        self.hits = 0
        self.misses = 0

    @staticmethod
    def make_key(lhs: Value, op: Op, rhs: Value) -> str:
        return f"{lhs.key()}|{int(op)}|{rhs.key()}"

    def intern(self, lhs: Operand, op: Op, rhs: Operand) -> Expression:
        """Return the canonical Expression for `(lhs op rhs)`."""
        if not isinstance(op, Op):
            raise PreconditionViolation(precondition_error(
                "pool.intern", f"unsupported operator code {op!r}"))
        lv = Value.of(lhs)
        rv = Value.of(rhs)
        key = self.make_key(lv, op, rv)

        found = self._index.get(key)
        if found is not None:
            self.hits += 1
            return found

        expr = Expression(lhs=lv, op=op, rhs=rv, eid=len(self._arena))
        self._arena.append(expr)
        self._index[key] = expr
        self.misses += 1
        logger.debug("interned e%d = %s", expr.eid, expr)
        return expr

    def __getitem__(self, eid: int) -> Expression:
        return self._arena[eid]

    def __len__(self) -> int:
        return len(self._arena)

    def __iter__(self) -> Iterator[Expression]:
        return iter(self._arena)

    def __contains__(self, expr: object) -> bool:
        if not isinstance(expr, Expression):
            return False
        return expr.eid < len(self._arena) and self._arena[expr.eid] is expr

    def stats(self) -> Dict[str, int]:
        return {"size": len(self._arena), "hits": self.hits, "misses": self.misses}
