"""
게이트 변환기 (Gate Translator): ACIR → R1CS
=============================================

영 단언 게이트(AssertZero) 하나를 R1CS 제약 하나로 변환한다.

**문제**:
  ACIR 게이트는 여러 개의 곱셈 항을 가진 이차식이다.

    Σ cₖ·w[lₖ]·w[rₖ]  +  Σ cⱼ·w[iⱼ]  +  q_c  =  0

  R1CS 제약은 엄격한 쌍선형(bilinear) 형태 ⟨A⟩·⟨B⟩ = ⟨C⟩ 이므로
  여러 곱셈 항의 합을 그대로 표현할 수 없다.

**변환 규칙** (게이트마다, 직렬화 순서대로):
  | 항 종류          | 처리                                                   |
  |------------------|--------------------------------------------------------|
  | 곱셈 (c, l, r)   | l, r을 resolve → 보조 변수 aux = c·w[l]·w[r] 할당      |
  |                  | → 누적기에 (1, aux) 추가                               |
  | 선형 (c, i)      | i를 resolve → 누적기에 (c, var) 추가 (보조 변수 없음)  |
  | 상수 q_c         | 누적기에 (q_c, one) 추가                               |

  마지막으로 제약 (one) · (누적기) = 0 을 하나 추가한다.

**결정론성**:
  항 처리 순서가 직렬화 순서를 따르므로, 같은 입력은 항상 같은 변수 번호를 만든다.
  변수 인덱스는 하위 단계에서 사용하는 회로 모양(shape)의 일부이다.

**모드**:
  변환기는 SETUP/PROVE 모드를 구분하지 않는다. 값이 필요한 경우 값 클로저를
  넘기며, SETUP 모드의 제약 시스템은 이를 호출하지 않는다 (자리표시자).
  PROVE 모드에서 값이 할당(assignment)에도, 이미 알려진 변수 표(already-known)에도
  없으면 MissingAssignmentError가 발생한다.

사용 예시:
    >>> cs = ConstraintSystem()
    >>> table = AcirCircuit(circuit, assignment={0: FR(2), 1: FR(3), 2: FR(-8)}).generate_constraints(cs)
    >>> cs.is_satisfied()
"""

import logging
import time

from zkp.r1cs.field import FR
from zkp.r1cs.constraint_system import (
    LinearCombination,
    MissingAssignmentError,
    Variable,
)
from zkp.r1cs.fp_var import FpVar
from zkp.acir.program import AssertZero, LinearTerm, MulTerm

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────
# 변수 할당 표 (Variable Allocation Table)
# ─────────────────────────────────────────────────────────────────────

class VariableAllocationTable:
    """위트니스 인덱스 → 제약 시스템 변수(FpVar)의 메모이즈된 매핑.

    한 번의 변환 패스(IVC 스텝 하나) 동안만 유효하다.
    같은 인덱스를 여러 번 resolve해도 항상 같은 변수를 반환한다.

    속성:
        cs: 대상 ConstraintSystem
        assignment: 위트니스 인덱스 → FR (부분 할당일 수 있음)
        already_known: 위트니스 인덱스 → 호출자가 소유한 FpVar
        allocated: 이 표가 새로 할당한 위트니스 인덱스 → FpVar
    """

    def __init__(self, cs, assignment=None, already_known=None):
        self.cs = cs
        self.assignment = assignment if assignment is not None else {}
        self.already_known = already_known if already_known is not None else {}
        self.allocated = {}

    def value_of(self, witness):
        """위트니스 값을 반환한다. already-known 변수의 값이 우선한다.

        Raises:
            MissingAssignmentError: 어디에도 값이 없을 때
        """
        if witness in self.already_known:
            return self.already_known[witness].value()
        if witness in self.assignment:
            return self.assignment[witness]
        raise MissingAssignmentError(f"witness {witness} has no assigned value")

    def resolve(self, witness):
        """위트니스 인덱스를 변수로 해석한다.

        1. already-known 바인딩이 있으면 그것을 반환 (새 변수를 만들지 않음)
        2. 이미 할당했으면 같은 변수를 반환
        3. 처음이면 새 witness 변수를 할당하고 기록
        """
        if witness in self.already_known:
            return self.already_known[witness]
        var = self.allocated.get(witness)
        if var is None:
            var = FpVar.new_witness(self.cs, lambda: self.value_of(witness))
            self.allocated[witness] = var
        return var

    def __contains__(self, witness):
        return witness in self.already_known or witness in self.allocated

    def __len__(self):
        return len(self.allocated)


# ─────────────────────────────────────────────────────────────────────
# 게이트 → 제약
# ─────────────────────────────────────────────────────────────────────

def _fold_term(cs, table, acc, term):
    """항 하나를 선형 누적기 acc에 더한다."""
    if isinstance(term, MulTerm):
        table.resolve(term.lhs)
        table.resolve(term.rhs)
        # 계수가 0이어도 보조 변수를 할당한다 (변수 인덱스 안정성)
        aux = FpVar.new_witness(
            cs,
            lambda: term.coeff * table.value_of(term.lhs) * table.value_of(term.rhs),
        )
        acc += aux.lc()
    elif isinstance(term, LinearTerm):
        acc += table.resolve(term.witness).lc().scale(term.coeff)
    elif term != FR(0):
        acc += (term, Variable.one())
    return acc


def enforce_assert_zero(cs, table, expression):
    """AssertZero 식 하나에 대해 제약 (one)·(acc) = 0 을 추가한다."""
    acc = LinearCombination.zero()
    for term in expression.mul_terms:
        _fold_term(cs, table, acc, term)
    for term in expression.linear_combinations:
        _fold_term(cs, table, acc, term)
    _fold_term(cs, table, acc, expression.q_c)
    cs.enforce_constraint(
        LinearCombination.from_variable(Variable.one()),
        acc,
        LinearCombination.zero(),
    )


class AcirCircuit:
    """ACIR 회로의 제약 합성기 (constraint synthesizer).

    속성:
        circuit: 변환할 Circuit
        assignment: 위트니스 값 (SETUP 용도에서는 비어 있어도 된다)
        already_known: 호출자가 이미 바인딩한 변수 표
    """

    def __init__(self, circuit, assignment=None, already_known=None):
        self.circuit = circuit
        self.assignment = assignment if assignment is not None else {}
        self.already_known = already_known if already_known is not None else {}

    def generate_constraints(self, cs):
        """모든 AssertZero 게이트를 cs에 제약으로 추가한다.

        BrilligCall은 제약 없이(unconstrained) 솔버만 실행하므로 건너뛴다.

        Returns:
            VariableAllocationTable: 이 패스에서 사용한 할당 표

        Raises:
            MissingAssignmentError: PROVE 모드에서 값이 없을 때
        """
        start = time.perf_counter()
        table = VariableAllocationTable(cs, self.assignment, self.already_known)
        emitted = 0
        for opcode in self.circuit.opcodes:
            if isinstance(opcode, AssertZero):
                enforce_assert_zero(cs, table, opcode.expression)
                emitted += 1
        logger.info(
            "generated %d constraints (%d new witnesses) in %.3fs",
            emitted, len(table), time.perf_counter() - start,
        )
        return table
