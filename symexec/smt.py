"""SYMEXEC SMT Bridge: encode path conditions as Z3 formulas.

The engine never decides satisfiability itself. A downstream solver that
wants to mark dead conjunctions encodes them here, checks them with its
own z3.Solver, and calls Conjunction.mark_unsatisfiable() on the result.

Encoding:
  symbolic v      z3.Int("var_<version>"), or z3.Real for float types
  int literal     z3.IntVal
  float literal   z3.RealVal
  (a op b)        the matching z3 arithmetic
  term            the matching z3 comparison
  conjunction     z3.And of its terms; True when empty, False when
                  marked unsatisfiable
  path condition  z3.Or of its conjunctions; False when it has none

Expression nodes are encoded once per encoder and reused, walking the
expression DAG with an explicit stack.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

import z3

from symexec.errors import PreconditionViolation, precondition_error
from symexec.path_condition import Conjunction, PathCondition
from symexec.terms import Term
from symexec.values import Expression, Op, SymbolicVariable, Value

_FLOAT_TYPES = frozenset({"float", "double", "real"})

_ARITH: Dict[Op, Callable[[Any, Any], Any]] = {
    Op.PLUS: lambda l, r: l + r,
    Op.MINUS: lambda l, r: l - r,
    Op.MULT: lambda l, r: l * r,
    Op.DIV: lambda l, r: l / r,
}

_COMPARE: Dict[Op, Callable[[Any, Any], Any]] = {
    Op.LT: lambda l, r: l < r,
    Op.LE: lambda l, r: l <= r,
    Op.GT: lambda l, r: l > r,
    Op.GE: lambda l, r: l >= r,
    Op.EQ: lambda l, r: l == r,
    Op.NE: lambda l, r: l != r,
}


class SmtEncoder:
    """Translates engine values into z3 terms, caching variables and nodes."""

    def __init__(self, ctx: Optional[z3.Context] = None):
        self.ctx = ctx
        self.variables: Dict[int, z3.ArithRef] = {}
        self._nodes: Dict[int, z3.ArithRef] = {}

    def variable(self, sym: SymbolicVariable) -> z3.ArithRef:
        var = self.variables.get(sym.version)
        if var is None:
            name = f"var_{sym.version}"
            if sym.type_tag in _FLOAT_TYPES:
                var = z3.Real(name, self.ctx)
            else:
                var = z3.Int(name, self.ctx)
            self.variables[sym.version] = var
        return var

    def value(self, v: Value) -> z3.ArithRef:
        if v.is_symbolic():
            return self.variable(v.get_symbolic())
        if v.is_expr():
            return self._expression(v.get_expr())
        if v.is_integral():
            return z3.IntVal(v.get_concrete(), self.ctx)
        return z3.RealVal(v.get_concrete(), self.ctx)

    def _leaf(self, v: Value) -> Optional[z3.ArithRef]:
        if v.is_expr():
            return self._nodes.get(id(v.get_expr()))
        return self.value(v)

    def _expression(self, root: Expression) -> z3.ArithRef:
        stack: List[Expression] = [root]
        while stack:
            e = stack[-1]
            if id(e) in self._nodes:
                stack.pop()
                continue
            pending = [o.get_expr() for o in e.operands()
                       if o.is_expr() and id(o.get_expr()) not in self._nodes]
            if pending:
                stack.extend(pending)
                continue
            fn = _ARITH.get(e.op)
            if fn is None:
                raise PreconditionViolation(precondition_error(
                    "smt.encode", f"no arithmetic encoding for {e}"))
            self._nodes[id(e)] = fn(self._leaf(e.lhs), self._leaf(e.rhs))
            stack.pop()
        return self._nodes[id(root)]

    def term(self, t: Term) -> z3.BoolRef:
        fn = _COMPARE.get(t.op)
        if fn is None:
            raise PreconditionViolation(precondition_error(
                "smt.encode", f"no comparison encoding for {t}"))
        return fn(self.value(t.lhs), self.value(t.rhs))

    def conjunction(self, conj: Conjunction) -> z3.BoolRef:
        if conj.unsatisfiable:
            return z3.BoolVal(False, self.ctx)
        parts = [self.term(t) for t in conj]
        if not parts:
            return z3.BoolVal(True, self.ctx)
        if len(parts) == 1:
            return parts[0]
        return z3.And(*parts)

    def path_condition(self, pc: PathCondition) -> z3.BoolRef:
        parts = [self.conjunction(c) for c in pc]
        if not parts:
            return z3.BoolVal(False, self.ctx)
        if len(parts) == 1:
            return parts[0]
        return z3.Or(*parts)


def encode_value(v: Value) -> z3.ArithRef:
    return SmtEncoder().value(v)


def encode_term(t: Term) -> z3.BoolRef:
    return SmtEncoder().term(t)


def encode_conjunction(conj: Conjunction) -> z3.BoolRef:
    return SmtEncoder().conjunction(conj)


def encode_path_condition(pc: PathCondition) -> z3.BoolRef:
    return SmtEncoder().path_condition(pc)
