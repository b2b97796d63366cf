"""SYMEXEC Path Condition Tests: DNF distribution, merge, unsatisfiable disjuncts."""

from symexec.path_condition import Conjunction, PathCondition
from symexec.terms import Term
from symexec.values import Op, SymbolicVariable

X = SymbolicVariable(1, name="x")
Y = SymbolicVariable(2, name="y")

LT5 = Term.relation(X, Op.LT, 5)
GE5 = Term.relation(X, Op.GE, 5)
Y_IS_X = Term.definition(Y, X)


class TestConjunction:

    def test_add_appends_in_order(self):
        c = Conjunction()
        c.add_constraint(Y_IS_X)
        c.add_constraint(LT5)
        assert c.terms == [Y_IS_X, LT5]

    def test_unsatisfiable_absorbs(self):
        c = Conjunction([LT5])
        c.mark_unsatisfiable()
        c.add_constraint(GE5)
        assert c.terms == [LT5]
        assert c.unsatisfiable

    def test_copy_is_independent(self):
        c = Conjunction([LT5])
        d = c.copy()
        d.add_constraint(GE5)
        assert len(c) == 1 and len(d) == 2

    def test_copy_keeps_flag(self):
        c = Conjunction(unsatisfiable=True)
        assert c.copy().unsatisfiable

    def test_equality(self):
        assert Conjunction([LT5]) == Conjunction([LT5])
        assert Conjunction([LT5]) != Conjunction([LT5], unsatisfiable=True)

    def test_rendering(self):
        assert str(Conjunction()) == "[empty]"
        assert str(Conjunction([Y_IS_X, LT5])) == "[(y == x) AND (x < 5)]"
        assert str(Conjunction([LT5], unsatisfiable=True)) == "[unsatisfiable]"


class TestPathCondition:

    def test_fresh_is_single_empty_conjunction(self):
        pc = PathCondition()
        assert len(pc) == 1
        assert len(pc[0]) == 0
        assert str(pc) == "[empty]"

    def test_false_has_no_disjuncts(self):
        pc = PathCondition.false()
        assert len(pc) == 0
        assert str(pc) == "(empty)"
        assert pc.is_dead()

    def test_add_distributes_into_every_disjunct(self):
        pc = PathCondition([Conjunction([LT5]), Conjunction([GE5])])
        pc.add_constraint(Y_IS_X)
        assert [c.terms for c in pc] == [[LT5, Y_IS_X], [GE5, Y_IS_X]]

    def test_add_skips_dead_disjuncts(self):
        dead = Conjunction([LT5], unsatisfiable=True)
        pc = PathCondition([dead, Conjunction()])
        pc.add_constraint(GE5)
        assert len(pc) == 2
        assert pc[0].terms == [LT5]
        assert pc[1].terms == [GE5]
        assert list(pc.live()) == [pc[1]]

    def test_merge_concatenates(self):
        a = PathCondition([Conjunction([LT5])])
        b = PathCondition([Conjunction([GE5])])
        a.merge(b)
        assert str(a) == "[(x < 5)] OR [(x >= 5)]"
        assert len(b) == 1

    def test_merge_does_not_share_disjuncts(self):
        a = PathCondition([Conjunction([LT5])])
        b = PathCondition([Conjunction([GE5])])
        a.merge(b)
        b.add_constraint(Y_IS_X)
        assert a[1].terms == [GE5]

    def test_merge_keeps_duplicates(self):
        a = PathCondition([Conjunction([LT5])])
        a.merge(a.copy())
        assert len(a) == 2
        assert a[0] == a[1]

    def test_merge_with_itself_doubles(self):
        a = PathCondition([Conjunction([LT5]), Conjunction([GE5])])
        a.merge(a)
        assert [c.terms for c in a] == [[LT5], [GE5], [LT5], [GE5]]
        a[2].add_constraint(Y_IS_X)
        assert a[0].terms == [LT5]

    def test_copy_is_deep(self):
        a = PathCondition([Conjunction([LT5])])
        b = a.copy()
        b.add_constraint(Y_IS_X)
        b[0].mark_unsatisfiable()
        assert a[0].terms == [LT5]
        assert not a[0].unsatisfiable

    def test_dead_only_when_every_disjunct_is_dead(self):
        pc = PathCondition([Conjunction(unsatisfiable=True), Conjunction()])
        assert not pc.is_dead()
        pc[1].mark_unsatisfiable()
        assert pc.is_dead()
