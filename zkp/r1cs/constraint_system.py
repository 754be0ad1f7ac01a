"""
R1CS 제약 시스템 (Rank-1 Constraint System)
============================================

각 제약은 세 개의 선형 결합(linear combination) A, B, C에 대해

    ⟨A, z⟩ · ⟨B, z⟩ = ⟨C, z⟩

형태를 가진다. 여기서 z = (1, 공개 변수들..., 비공개 변수들...)이다.

**변수 구분**:
  | 종류       | 설명                                  |
  |------------|---------------------------------------|
  | one        | 항상 값 1을 갖는 상수 변수 (instance 0) |
  | instance   | 공개 변수 (IVC 상태 등)                |
  | witness    | 비공개/내부 변수                       |

**합성 모드 (SynthesisMode)**:
  - SETUP: 제약의 "모양"만 만든다. 값 클로저(f)는 절대 호출되지 않는다.
           제약/변수 개수 계산과 행렬(A, B, C) 도출에 사용한다.
  - PROVE: 값 클로저를 호출하여 instance/witness 값 벡터를 채운다.
           만족성(satisfiability) 검사가 가능하다.

제약 시스템은 한 번의 합성 패스 동안 단 하나의 작성자(writer)가 변경하는
가변 누적기이다. 전역 싱글톤이 아니라 명시적으로 전달되는 핸들이다.

사용 예시:
    >>> cs = ConstraintSystem()
    >>> x = cs.new_witness_variable(lambda: 3)
    >>> y = cs.new_witness_variable(lambda: 9)
    >>> cs.enforce_constraint(LinearCombination.from_variable(x),
    ...                       LinearCombination.from_variable(x),
    ...                       LinearCombination.from_variable(y))
    >>> cs.is_satisfied()   # True
"""

import logging
from enum import Enum

from zkp.r1cs.field import FR, as_fr

logger = logging.getLogger(__name__)


class SynthesisError(Exception):
    """제약 합성(synthesis) 중 발생한 오류."""


class MissingAssignmentError(SynthesisError):
    """PROVE 모드에서 필요한 값이 할당되지 않았을 때 발생한다."""


class SynthesisMode(Enum):
    SETUP = "setup"
    PROVE = "prove"


# ─────────────────────────────────────────────────────────────────────
# 변수 (Variable)
# ─────────────────────────────────────────────────────────────────────

class Variable:
    """제약 시스템 변수: (종류, 인덱스) 쌍.

    instance 인덱스 0은 상수 1 변수(one)에 예약되어 있으므로,
    공개 변수의 인덱스는 1부터 시작한다.
    """

    ONE = "one"
    INSTANCE = "instance"
    WITNESS = "witness"

    __slots__ = ("kind", "index")

    def __init__(self, kind, index):
        self.kind = kind
        self.index = index

    @classmethod
    def one(cls):
        return cls(cls.ONE, 0)

    @classmethod
    def instance(cls, index):
        return cls(cls.INSTANCE, index)

    @classmethod
    def witness(cls, index):
        return cls(cls.WITNESS, index)

    def is_one(self):
        return self.kind == Variable.ONE

    def __eq__(self, other):
        if not isinstance(other, Variable):
            return NotImplemented
        return self.kind == other.kind and self.index == other.index

    def __hash__(self):
        return hash((self.kind, self.index))

    def __repr__(self):
        if self.is_one():
            return "Variable(one)"
        return f"Variable({self.kind}, {self.index})"


# ─────────────────────────────────────────────────────────────────────
# 선형 결합 (Linear Combination)
# ─────────────────────────────────────────────────────────────────────

class LinearCombination:
    """(계수, 변수) 항들의 순서 있는 합: Σ cᵢ · vᵢ.

    항의 순서는 추가한 순서를 그대로 유지한다. 같은 변수가 여러 번
    등장할 수 있으며, compact()로 병합한다.
    """

    def __init__(self, terms=None):
        self.terms = []
        for coeff, var in terms or []:
            self.terms.append((as_fr(coeff), var))

    @classmethod
    def zero(cls):
        return cls()

    @classmethod
    def from_variable(cls, var, coeff=1):
        return cls([(coeff, var)])

    @classmethod
    def constant(cls, value):
        """상수 value를 one 변수 위의 항으로 표현한다."""
        return cls([(value, Variable.one())])

    def __iadd__(self, other):
        """항 (coeff, var) 또는 다른 LinearCombination을 누적한다."""
        if isinstance(other, LinearCombination):
            self.terms.extend(other.terms)
        else:
            coeff, var = other
            self.terms.append((as_fr(coeff), var))
        return self

    def __add__(self, other):
        result = LinearCombination(self.terms)
        result += other
        return result

    def __neg__(self):
        return LinearCombination([(-c, v) for c, v in self.terms])

    def __len__(self):
        return len(self.terms)

    def __iter__(self):
        return iter(self.terms)

    def scale(self, factor):
        factor = as_fr(factor)
        return LinearCombination([(c * factor, v) for c, v in self.terms])

    def variables(self):
        return [v for _, v in self.terms]

    def compact(self):
        """같은 변수의 계수를 합치고 계수가 0인 항을 제거한다.

        변수의 순서는 처음 등장한 순서를 따른다.
        """
        merged = {}
        for coeff, var in self.terms:
            merged[var] = merged[var] + coeff if var in merged else coeff
        return LinearCombination([(c, v) for v, c in merged.items() if c != FR(0)])

    def evaluate(self, value_of):
        """value_of(var) → FR 함수로 선형 결합의 값을 계산한다."""
        total = FR(0)
        for coeff, var in self.terms:
            total = total + coeff * value_of(var)
        return total

    def __repr__(self):
        inner = " + ".join(f"{int(c)}·{v!r}" for c, v in self.terms)
        return f"LC({inner or '0'})"


# ─────────────────────────────────────────────────────────────────────
# 제약 시스템 (Constraint System)
# ─────────────────────────────────────────────────────────────────────

class ConstraintSystem:
    """R1CS 제약 누적기.

    속성:
        mode: SynthesisMode.SETUP 또는 SynthesisMode.PROVE
        num_instance_variables: one 변수를 포함한 공개 변수 수
        num_witness_variables: 비공개 변수 수
        instance_assignment: 공개 변수 값 (PROVE 모드, [0]은 항상 1)
        witness_assignment: 비공개 변수 값 (PROVE 모드)
        constraints: (A, B, C) LinearCombination 튜플 리스트
    """

    def __init__(self, mode=SynthesisMode.PROVE):
        self.mode = mode
        self.num_instance_variables = 1
        self.num_witness_variables = 0
        self.instance_assignment = [FR(1)] if mode == SynthesisMode.PROVE else []
        self.witness_assignment = []
        self.constraints = []

    def is_in_setup_mode(self):
        return self.mode == SynthesisMode.SETUP

    @property
    def num_constraints(self):
        return len(self.constraints)

    @property
    def num_variables(self):
        return self.num_instance_variables + self.num_witness_variables

    def _evaluate(self, f):
        # SETUP 모드에서는 호출되지 않는다
        return as_fr(f())

    def new_input_variable(self, f):
        """공개(instance) 변수를 할당한다.

        Args:
            f: 값을 반환하는 인자 없는 함수. PROVE 모드에서만 호출된다.

        Returns:
            Variable: 새 instance 변수

        Raises:
            MissingAssignmentError: f가 값을 제공하지 못할 때 (PROVE 모드)
        """
        if not self.is_in_setup_mode():
            self.instance_assignment.append(self._evaluate(f))
        var = Variable.instance(self.num_instance_variables)
        self.num_instance_variables += 1
        return var

    def new_witness_variable(self, f):
        """비공개(witness) 변수를 할당한다. 인자는 new_input_variable과 같다."""
        if not self.is_in_setup_mode():
            self.witness_assignment.append(self._evaluate(f))
        var = Variable.witness(self.num_witness_variables)
        self.num_witness_variables += 1
        return var

    def enforce_constraint(self, a, b, c):
        """제약 ⟨a⟩ · ⟨b⟩ = ⟨c⟩ 를 추가한다."""
        for lc in (a, b, c):
            for var in lc.variables():
                self._check_variable(var)
        self.constraints.append((a, b, c))

    def _check_variable(self, var):
        if var.kind == Variable.INSTANCE and not 0 < var.index < self.num_instance_variables:
            raise SynthesisError(f"unknown instance variable {var!r}")
        if var.kind == Variable.WITNESS and not 0 <= var.index < self.num_witness_variables:
            raise SynthesisError(f"unknown witness variable {var!r}")

    def assigned_value(self, var):
        """변수에 할당된 값을 반환한다.

        Raises:
            MissingAssignmentError: SETUP 모드이거나 값이 없을 때
        """
        if self.is_in_setup_mode():
            raise MissingAssignmentError("values are not available in setup mode")
        if var.is_one():
            return FR(1)
        if var.kind == Variable.INSTANCE:
            return self.instance_assignment[var.index]
        return self.witness_assignment[var.index]

    def which_is_unsatisfied(self):
        """처음으로 만족되지 않는 제약의 인덱스를 반환한다 (모두 만족하면 None)."""
        for i, (a, b, c) in enumerate(self.constraints):
            lhs = a.evaluate(self.assigned_value) * b.evaluate(self.assigned_value)
            rhs = c.evaluate(self.assigned_value)
            if lhs != rhs:
                logger.debug("constraint %d is not satisfied", i)
                return i
        return None

    def is_satisfied(self):
        return self.which_is_unsatisfied() is None

    def _column(self, var):
        # 열 순서: [one, instance..., witness...]
        if var.kind == Variable.WITNESS:
            return self.num_instance_variables + var.index
        return var.index

    def to_matrices(self):
        """희소(sparse) 제약 행렬 A, B, C를 반환한다.

        각 행은 [(계수, 열 인덱스), ...] 리스트이다.
        SETUP/PROVE 모드 모두에서 사용할 수 있다.
        """
        matrices = ([], [], [])
        for constraint in self.constraints:
            for matrix, lc in zip(matrices, constraint):
                matrix.append([(coeff, self._column(var)) for coeff, var in lc.compact()])
        return matrices

    def to_dense_matrices(self):
        """QAP 변환에 쓰이는 배치의 (r, A, B, C)를 정수로 반환한다.

        r = [1, 공개 변수..., 비공개 변수...] 이며, A/B/C는 제약당 한 행,
        변수당 한 열을 갖는다. PROVE 모드에서만 사용할 수 있다.
        """
        if self.is_in_setup_mode():
            raise MissingAssignmentError("values are not available in setup mode")
        width = self.num_variables
        r = [int(v) for v in self.instance_assignment + self.witness_assignment]
        dense = []
        for sparse in self.to_matrices():
            rows = []
            for sparse_row in sparse:
                row = [0] * width
                for coeff, col in sparse_row:
                    row[col] = int(coeff)
                rows.append(row)
            dense.append(rows)
        return (r, *dense)
