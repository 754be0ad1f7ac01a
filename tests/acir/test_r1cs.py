"""
R1CS 제약 시스템 테스트.

테스트 대상:
  - Variable, LinearCombination: 동등성, compact, evaluate
  - ConstraintSystem: 할당, 만족성, SETUP/PROVE 모드, 행렬 변환
  - FpVar, alloc_vec: 값 조회, 상수, 벡터 할당
"""

import pytest

from zkp.r1cs.field import FR, CURVE_ORDER
from zkp.r1cs.constraint_system import (
    ConstraintSystem,
    LinearCombination,
    MissingAssignmentError,
    SynthesisError,
    SynthesisMode,
    Variable,
)
from zkp.r1cs.fp_var import AllocationMode, FpVar, alloc_vec, values_of


def _square_system(x_val, y_val, mode=SynthesisMode.PROVE):
    """x (공개) · x = y (비공개)"""
    cs = ConstraintSystem(mode)
    x = cs.new_input_variable(lambda: x_val)
    y = cs.new_witness_variable(lambda: y_val)
    cs.enforce_constraint(
        LinearCombination.from_variable(x),
        LinearCombination.from_variable(x),
        LinearCombination.from_variable(y),
    )
    return cs, x, y


# ─────────────────────────────────────────────────────────────────────
# Variable / LinearCombination
# ─────────────────────────────────────────────────────────────────────

class TestVariable:
    def test_equality_and_hash(self):
        assert Variable.witness(3) == Variable.witness(3)
        assert Variable.witness(3) != Variable.instance(3)
        assert len({Variable.witness(1), Variable.witness(1), Variable.one()}) == 2

    def test_one_variable(self):
        assert Variable.one().is_one()
        assert not Variable.instance(1).is_one()


class TestLinearCombination:
    def test_negative_coefficient_is_normalized(self):
        lc = LinearCombination([(-1, Variable.witness(0))])
        assert lc.terms[0][0] == FR(CURVE_ORDER - 1)

    def test_iadd_term_and_combination(self):
        x, y = Variable.witness(0), Variable.witness(1)
        lc = LinearCombination.zero()
        lc += (2, x)
        lc += LinearCombination.from_variable(y, 3)
        assert lc.variables() == [x, y]
        assert len(lc) == 2

    def test_compact_merges_and_drops_zero(self):
        """같은 변수는 합쳐지고 계수 0 항은 제거된다."""
        x, y = Variable.witness(0), Variable.witness(1)
        lc = LinearCombination([(2, x), (0, y), (3, x)]).compact()
        assert lc.terms == [(FR(5), x)]

    def test_compact_cancels_to_empty(self):
        x = Variable.witness(0)
        assert len(LinearCombination([(1, x), (-1, x)]).compact()) == 0

    def test_evaluate(self):
        x = Variable.witness(0)
        lc = LinearCombination([(3, x)]) + LinearCombination.constant(4)
        values = {x: FR(5), Variable.one(): FR(1)}
        assert lc.evaluate(values.__getitem__) == FR(19)

    def test_neg_and_scale(self):
        x = Variable.witness(0)
        lc = -LinearCombination.from_variable(x, 2)
        assert lc.scale(3).terms == [(FR(-6), x)]


# ─────────────────────────────────────────────────────────────────────
# ConstraintSystem
# ─────────────────────────────────────────────────────────────────────

class TestConstraintSystem:
    def test_initial_state(self):
        cs = ConstraintSystem()
        assert cs.num_instance_variables == 1
        assert cs.num_witness_variables == 0
        assert cs.num_constraints == 0
        assert cs.instance_assignment == [FR(1)]

    def test_satisfied(self):
        cs, _, _ = _square_system(3, 9)
        assert cs.is_satisfied()
        assert cs.which_is_unsatisfied() is None

    def test_unsatisfied(self):
        cs, _, _ = _square_system(3, 10)
        assert not cs.is_satisfied()
        assert cs.which_is_unsatisfied() == 0

    def test_variable_numbering(self):
        """instance 인덱스는 1부터 (0은 one), witness는 0부터."""
        cs, x, y = _square_system(3, 9)
        assert x == Variable.instance(1)
        assert y == Variable.witness(0)
        assert cs.assigned_value(Variable.one()) == FR(1)
        assert cs.assigned_value(x) == FR(3)
        assert cs.assigned_value(y) == FR(9)

    def test_setup_mode_never_calls_closures(self):
        """SETUP 모드에서는 값 클로저가 호출되지 않는다."""
        def missing():
            raise MissingAssignmentError("no value")

        cs = ConstraintSystem(SynthesisMode.SETUP)
        cs.new_input_variable(missing)
        cs.new_witness_variable(missing)
        assert cs.num_instance_variables == 2
        assert cs.num_witness_variables == 1
        assert cs.instance_assignment == []

    def test_setup_mode_has_no_satisfiability(self):
        cs, _, _ = _square_system(3, 9, SynthesisMode.SETUP)
        assert cs.num_constraints == 1
        with pytest.raises(MissingAssignmentError):
            cs.is_satisfied()

    def test_prove_mode_missing_value_propagates(self):
        def missing():
            raise MissingAssignmentError("no value")

        cs = ConstraintSystem(SynthesisMode.PROVE)
        with pytest.raises(MissingAssignmentError):
            cs.new_witness_variable(missing)

    def test_unknown_variable_rejected(self):
        cs = ConstraintSystem()
        lc = LinearCombination.from_variable(Variable.witness(0))
        with pytest.raises(SynthesisError):
            cs.enforce_constraint(lc, lc, lc)

    def test_sparse_matrices(self):
        """열 순서: [one, instance..., witness...]"""
        cs, _, _ = _square_system(3, 9, SynthesisMode.SETUP)
        A, B, C = cs.to_matrices()
        assert A == [[(FR(1), 1)]]
        assert B == [[(FR(1), 1)]]
        assert C == [[(FR(1), 2)]]

    def test_dense_witness_vector_layout(self):
        cs, _, _ = _square_system(3, 9)
        r, A, B, C = cs.to_dense_matrices()
        assert r == [1, 3, 9]
        assert A == [[0, 1, 0]]
        assert B == [[0, 1, 0]]
        assert C == [[0, 0, 1]]

    def test_dense_matrices_require_values(self):
        cs, _, _ = _square_system(3, 9, SynthesisMode.SETUP)
        with pytest.raises(MissingAssignmentError):
            cs.to_dense_matrices()


# ─────────────────────────────────────────────────────────────────────
# FpVar
# ─────────────────────────────────────────────────────────────────────

class TestFpVar:
    def test_input_and_witness(self):
        cs = ConstraintSystem()
        a = FpVar.new_input(cs, lambda: 2)
        b = FpVar.new_witness(cs, lambda: -8)
        assert a.value() == FR(2)
        assert b.value() == FR(-8)
        assert a.variable.kind == Variable.INSTANCE
        assert b.variable.kind == Variable.WITNESS

    def test_constant(self):
        c = FpVar.constant(7)
        assert c.is_constant()
        assert c.value() == FR(7)
        assert c.lc().terms == [(FR(7), Variable.one())]

    def test_setup_mode_value_missing(self):
        cs = ConstraintSystem(SynthesisMode.SETUP)
        a = FpVar.new_witness(cs, lambda: 2)
        with pytest.raises(MissingAssignmentError):
            a.value()

    def test_alloc_vec(self):
        cs = ConstraintSystem()
        z = alloc_vec(cs, lambda: [2, 5], 2, AllocationMode.INPUT)
        assert [v.variable for v in z] == [Variable.instance(1), Variable.instance(2)]
        assert values_of(z) == [FR(2), FR(5)]

    def test_alloc_vec_calls_f_once(self):
        calls = []

        def values():
            calls.append(1)
            return [1, 2, 3]

        alloc_vec(ConstraintSystem(), values, 3, AllocationMode.WITNESS)
        assert len(calls) == 1

    def test_alloc_vec_setup_allocates_shape(self):
        cs = ConstraintSystem(SynthesisMode.SETUP)
        z = alloc_vec(cs, None, 3, AllocationMode.WITNESS)
        assert len(z) == 3
        assert cs.num_witness_variables == 3

    def test_alloc_vec_length_mismatch(self):
        with pytest.raises(SynthesisError):
            alloc_vec(ConstraintSystem(), lambda: [1], 2, AllocationMode.WITNESS)

    def test_alloc_vec_constant(self):
        z = alloc_vec(None, lambda: [4, 9], 2, AllocationMode.CONSTANT)
        assert all(v.is_constant() for v in z)
        assert values_of(z) == [FR(4), FR(9)]
