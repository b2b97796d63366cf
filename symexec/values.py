"""SYMEXEC Value Model: concrete literals, symbolic variables, expressions.

A Value is a closed sum over three kinds:

  CONCRETE  an int or float literal
  SYMBOLIC  a SymbolicVariable, identified by its SSA-style version number
  EXPR      a reference to an interned Expression node

Expressions are only ever built by ExpressionPool.intern (symexec.pool),
bottom-up from operands that already exist, so the expression graph is a
DAG. Values hold references to expressions; nothing is deep-copied.

Equality rules:
  - two concretes are equal iff they have the same numeric kind and value
    (so 5 != 5.0)
  - two symbolics are equal iff their versions are equal
  - two expression references are equal iff they name the same node
  - any other pairing is simply "not equal"

Ordering is only meaningful between concretes (with int/float promotion).
Ordering a symbolic or an expression raises PreconditionViolation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, IntEnum, auto
from typing import Optional, Union

from symexec.errors import PreconditionViolation, precondition_error, unknown_operator_error

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Operators
# ---------------------------------------------------------------------------

class Op(IntEnum):
    """Operator codes. The numeric code is part of the interning key."""
    LT = 1
    LE = 2
    GT = 3
    GE = 4
    EQ = 5
    NE = 6

    PLUS = 10
    MINUS = 11
    MULT = 12
    DIV = 13


RELATIONAL_OPS = frozenset({Op.LT, Op.LE, Op.GT, Op.GE, Op.EQ, Op.NE})
ARITHMETIC_OPS = frozenset({Op.PLUS, Op.MINUS, Op.MULT})

UNKNOWN_OPERATOR = "unknown-operator"

_OP_SYMBOLS = {
    Op.LT: "<",
    Op.LE: "<=",
    Op.GT: ">",
    Op.GE: ">=",
    Op.EQ: "==",
    Op.NE: "!=",
    Op.PLUS: "+",
    Op.MINUS: "-",
    Op.MULT: "*",
    Op.DIV: "/",
}

_SYMBOL_OPS = {text: op for op, text in _OP_SYMBOLS.items()}


def op_to_str(op: object) -> str:
    """Textual symbol for `op`, or the unknown-operator sentinel."""
    text = _OP_SYMBOLS.get(op)  # type: ignore[call-overload]
    if text is None:
        logger.warning("%s", unknown_operator_error(op))
        return UNKNOWN_OPERATOR
    return text


def op_from_str(text: str) -> Op:
    """Inverse of op_to_str. Raises KeyError for unsupported symbols."""
    return _SYMBOL_OPS[text]


# ---------------------------------------------------------------------------
# Symbolic variables
# ---------------------------------------------------------------------------

@dataclass(frozen=True, order=True)
class SymbolicVariable:
    """An unknown runtime value. Identity and order come from `version` alone."""
    version: int
    type_tag: str = field(default="int", compare=False)
    name: Optional[str] = field(default=None, compare=False)

    def __str__(self) -> str:
        if self.name:
            return self.name
        return f"var_{self.version}"


# ---------------------------------------------------------------------------
# Values
# ---------------------------------------------------------------------------

class ValueKind(Enum):
    CONCRETE = auto()
    SYMBOLIC = auto()
    EXPR = auto()


Concrete = Union[int, float]


class Value:
    """Tagged union over concrete / symbolic / expression-reference."""

    __slots__ = ("kind", "_payload")

    def __init__(self, kind: ValueKind, payload: Union[Concrete, SymbolicVariable, "Expression"]):
        self.kind = kind
        self._payload = payload

    # -- construction -------------------------------------------------------

    @classmethod
    def concrete(cls, literal: Concrete) -> Value:
        if isinstance(literal, bool) or not isinstance(literal, (int, float)):
            raise PreconditionViolation(precondition_error(
                "value.concrete", f"expected an int or float literal, got {literal!r}"))
        return cls(ValueKind.CONCRETE, literal)

    @classmethod
    def symbolic(cls, sym: SymbolicVariable) -> Value:
        return cls(ValueKind.SYMBOLIC, sym)

    @classmethod
    def of_expr(cls, expr: Expression) -> Value:
        return cls(ValueKind.EXPR, expr)

    @classmethod
    def of(cls, obj: Union[Value, Concrete, SymbolicVariable, "Expression"]) -> Value:
        """Coerce a literal, symbolic, or expression into a Value."""
        if isinstance(obj, Value):
            return obj
        if isinstance(obj, SymbolicVariable):
            return cls.symbolic(obj)
        if isinstance(obj, Expression):
            return cls.of_expr(obj)
        return cls.concrete(obj)  # type: ignore[arg-type]

    # -- kind predicates ----------------------------------------------------

    def is_concrete(self) -> bool:
        return self.kind is ValueKind.CONCRETE

    def is_symbolic(self) -> bool:
        return self.kind is ValueKind.SYMBOLIC

    def is_expr(self) -> bool:
        return self.kind is ValueKind.EXPR

    def is_integral(self) -> bool:
        return self.kind is ValueKind.CONCRETE and isinstance(self._payload, int)

    def is_floating(self) -> bool:
        return self.kind is ValueKind.CONCRETE and isinstance(self._payload, float)

    # -- accessors ----------------------------------------------------------

    def get_concrete(self) -> Concrete:
        if self.kind is not ValueKind.CONCRETE:
            raise PreconditionViolation(precondition_error(
                "value.get_concrete", f"'{self}' is {self.kind.name.lower()}"))
        return self._payload  # type: ignore[return-value]

    def get_symbolic(self) -> SymbolicVariable:
        if self.kind is not ValueKind.SYMBOLIC:
            raise PreconditionViolation(precondition_error(
                "value.get_symbolic", f"'{self}' is {self.kind.name.lower()}"))
        return self._payload  # type: ignore[return-value]

    def get_expr(self) -> Expression:
        if self.kind is not ValueKind.EXPR:
            raise PreconditionViolation(precondition_error(
                "value.get_expr", f"'{self}' is {self.kind.name.lower()}"))
        return self._payload  # type: ignore[return-value]

    # -- identity -----------------------------------------------------------

    def key(self) -> str:
        """Canonical structural key, used by the expression pool."""
        p = self._payload
        if self.kind is ValueKind.CONCRETE:
            if isinstance(p, int):
                return f"i:{p}"
            if p == 0:
                p = 0.0  # -0.0 == 0.0
            return f"f:{p!r}"
        if self.kind is ValueKind.SYMBOLIC:
            return f"s:{p.version}"  # type: ignore[union-attr]
        return f"e:{p.eid}"  # type: ignore[union-attr]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        if self.kind is not other.kind:
            return False
        a, b = self._payload, other._payload
        if self.kind is ValueKind.CONCRETE:
            return type(a) is type(b) and a == b
        if self.kind is ValueKind.SYMBOLIC:
            return a == b
        return a is b

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self) -> int:
        p = self._payload
        if self.kind is ValueKind.CONCRETE:
            return hash((self.kind, type(p).__name__, p))
        if self.kind is ValueKind.SYMBOLIC:
            return hash((self.kind, p))
        return hash((self.kind, id(p)))

    # -- ordering (concretes only) -----------------------------------------

    def _ordered_pair(self, other: Value, op: str) -> tuple:
        if self.kind is not ValueKind.CONCRETE or other.kind is not ValueKind.CONCRETE:
            raise PreconditionViolation(precondition_error(
                "value.compare",
                f"can't order '{self}' {op} '{other}': only concrete values are ordered"))
        return self._payload, other._payload

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        a, b = self._ordered_pair(other, "<")
        return a < b

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        a, b = self._ordered_pair(other, "<=")
        return a <= b

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        a, b = self._ordered_pair(other, ">")
        return a > b

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        a, b = self._ordered_pair(other, ">=")
        return a >= b

    # -- rendering ----------------------------------------------------------

    def __str__(self) -> str:
        return str(self._payload)

    def __repr__(self) -> str:
        return f"Value({self.kind.name}, {self})"


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class Expression:
    """A binary node `(lhs op rhs)`, owned by an ExpressionPool arena.

    `eid` is the node's index in its pool. Identity equality: interning
    guarantees that structurally equal expressions are the same object.
    The fully parenthesised text is computed once at construction, from
    operands whose text is already cached, so rendering never recurses.
    """
    lhs: Value
    op: Op
    rhs: Value
    eid: int
    text: str = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "text", f"({self.lhs} {op_to_str(self.op)} {self.rhs})")

    def operands(self) -> tuple[Value, Value]:
        return self.lhs, self.rhs

    def __str__(self) -> str:
        return self.text
