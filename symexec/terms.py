"""SYMEXEC Term Algebra: atomic constraints and their negation.

A Term is `lhs OP rhs` in one of two flavours:

  DEFINITIONAL  `target == value`, recorded for assignments
  RELATIONAL    `a < b`, `a <= b`, `a > b`, `a >= b`, `a == b`, `a != b`,
                recorded for branch conditions

Negation swaps each relational operator with its complement:

  <   <->  >=
  <=  <->  >
  ==  <->  !=

so negate(negate(t)) == t. A definitional term states a fact about the
program, not a choice, and has no negation.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Union

from symexec.errors import PreconditionViolation, precondition_error
from symexec.values import (
    RELATIONAL_OPS, Concrete, Expression, Op, SymbolicVariable, Value, op_to_str,
)

Operand = Union[Value, Concrete, SymbolicVariable, Expression]


class TermKind(Enum):
    RELATIONAL = "relational"
    DEFINITIONAL = "definitional"


_NEGATION = {
    Op.EQ: Op.NE,
    Op.NE: Op.EQ,
    Op.LT: Op.GE,
    Op.LE: Op.GT,
    Op.GT: Op.LE,
    Op.GE: Op.LT,
}


@dataclass(frozen=True)
class Term:
    lhs: Value
    op: Op
    rhs: Value
    kind: TermKind = TermKind.RELATIONAL

    @classmethod
    def relation(cls, lhs: Operand, op: Op, rhs: Operand) -> Term:
        return cls(Value.of(lhs), op, Value.of(rhs), TermKind.RELATIONAL)

    @classmethod
    def definition(cls, target: Operand, value: Operand) -> Term:
        return cls(Value.of(target), Op.EQ, Value.of(value), TermKind.DEFINITIONAL)

    def is_relational(self) -> bool:
        return self.kind is TermKind.RELATIONAL

    def is_definitional(self) -> bool:
        return self.kind is TermKind.DEFINITIONAL

    def negate(self) -> Term:
        return negate(self)

    def __invert__(self) -> Term:
        return negate(self)

    def __str__(self) -> str:
        return f"({self.lhs} {op_to_str(self.op)} {self.rhs})"


def negate(term: Term) -> Term:
    """Return `term` with its operator replaced by the complement."""
    if term.kind is TermKind.DEFINITIONAL:
        raise PreconditionViolation(precondition_error(
            "term.negate", f"definitional term {term} has no negation"))
    if term.op not in RELATIONAL_OPS:
        raise PreconditionViolation(precondition_error(
            "term.negate", f"operator of {term} is not relational"))
    return replace(term, op=_NEGATION[term.op])
