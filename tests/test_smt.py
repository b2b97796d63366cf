"""SYMEXEC SMT Bridge Tests: z3 encodings of values, terms and path conditions."""

import pytest
import z3

from symexec.errors import PreconditionViolation
from symexec.path_condition import Conjunction, PathCondition
from symexec.pool import ExpressionPool
from symexec.smt import (
    SmtEncoder, encode_conjunction, encode_path_condition, encode_term, encode_value,
)
from symexec.terms import Term
from symexec.values import Op, SymbolicVariable, Value

X = SymbolicVariable(1, name="x")
Y = SymbolicVariable(2, name="y")
Z = SymbolicVariable(3, name="z")


def _check(*formulas):
    solver = z3.Solver()
    solver.add(*formulas)
    return solver.check()


class TestEncodeValue:

    def test_int_symbolic(self):
        v = encode_value(Value.symbolic(X))
        assert str(v) == "var_1"
        assert v.sort() == z3.IntSort()

    def test_float_symbolic(self):
        v = encode_value(Value.symbolic(SymbolicVariable(7, "float")))
        assert v.sort() == z3.RealSort()

    def test_literals(self):
        assert encode_value(Value.concrete(5)).sort() == z3.IntSort()
        assert encode_value(Value.concrete(2.5)).sort() == z3.RealSort()

    def test_expression(self):
        pool = ExpressionPool()
        e = pool.intern(pool.intern(X, Op.PLUS, 3), Op.MULT, Y)
        f = encode_value(Value.of_expr(e))
        assert _check(z3.Int("var_1") == 1, z3.Int("var_2") == 2, f != 8) == z3.unsat

    def test_encoder_caches(self):
        pool = ExpressionPool()
        e = Value.of_expr(pool.intern(X, Op.MINUS, Y))
        enc = SmtEncoder()
        assert enc.value(e).eq(enc.value(e))
        assert enc.variable(X) is enc.variable(X)

    def test_deep_expression(self):
        pool = ExpressionPool()
        e = pool.intern(X, Op.PLUS, 1)
        for _ in range(1500):
            e = pool.intern(e, Op.PLUS, 1)
        f = SmtEncoder().value(Value.of_expr(e))
        assert _check(z3.Int("var_1") == 0, f != 1501) == z3.unsat


class TestEncodeTerm:

    def test_relations(self):
        lt = encode_term(Term.relation(X, Op.LT, 5))
        assert _check(lt, z3.Int("var_1") == 5) == z3.unsat
        assert _check(lt, z3.Int("var_1") == 4) == z3.sat

    def test_negation_is_complement(self):
        t = Term.relation(X, Op.LE, 3)
        both = z3.And(encode_term(t), encode_term(~t))
        assert _check(both) == z3.unsat

    def test_definition(self):
        pool = ExpressionPool()
        t = Term.definition(Z, pool.intern(Y, Op.PLUS, 3))
        assert _check(encode_term(t), z3.Int("var_2") == 2, z3.Int("var_3") != 5) == z3.unsat

    def test_non_relational_operator(self):
        with pytest.raises(PreconditionViolation):
            encode_term(Term(Value.of(X), Op.PLUS, Value.of(1)))


class TestEncodeConditions:

    def test_empty_conjunction_is_true(self):
        assert z3.is_true(encode_conjunction(Conjunction()))

    def test_unsatisfiable_conjunction_is_false(self):
        c = Conjunction([Term.relation(X, Op.LT, 5)], unsatisfiable=True)
        assert z3.is_false(encode_conjunction(c))

    def test_no_disjuncts_is_false(self):
        assert z3.is_false(encode_path_condition(PathCondition.false()))

    def test_contradictory_conjunction(self):
        c = Conjunction([Term.relation(X, Op.LT, 5), Term.relation(X, Op.GE, 5)])
        assert _check(encode_conjunction(c)) == z3.unsat

    def test_join_is_valid(self):
        pc = PathCondition([Conjunction([Term.relation(X, Op.LT, 5)]),
                            Conjunction([Term.relation(X, Op.GE, 5)])])
        assert _check(z3.Not(encode_path_condition(pc))) == z3.unsat

    def test_downstream_marks_dead_disjunct(self):
        pc = PathCondition([
            Conjunction([Term.relation(X, Op.LT, 5), Term.relation(X, Op.GT, 7)]),
            Conjunction([Term.relation(X, Op.EQ, 1)]),
        ])
        enc = SmtEncoder()
        for conj in pc:
            if _check(enc.conjunction(conj)) == z3.unsat:
                conj.mark_unsatisfiable()
        assert [c.unsatisfiable for c in pc] == [True, False]
        assert not pc.is_dead()
