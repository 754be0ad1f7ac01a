"""
할당된 필드 변수 (FpVar)
=========================

제약 시스템 변수(Variable)와 그 값을 함께 묶은 핸들.
IVC 상태 z_i, 외부 입력, 스텝 출력 z_{i+1}은 모두 FpVar 리스트로 주고받는다.

**할당 모드 (AllocationMode)**:
  - INPUT: 공개(instance) 변수로 할당
  - WITNESS: 비공개(witness) 변수로 할당
  - CONSTANT: 변수를 만들지 않고 one 변수 위의 상수로 표현

사용 예시:
    >>> cs = ConstraintSystem()
    >>> z = alloc_vec(cs, lambda: [2, 5], 2, AllocationMode.INPUT)
    >>> [int(v.value()) for v in z]   # [2, 5]
"""

from enum import Enum

from zkp.r1cs.field import as_fr
from zkp.r1cs.constraint_system import (
    LinearCombination,
    SynthesisError,
    Variable,
)


class AllocationMode(Enum):
    INPUT = "input"
    WITNESS = "witness"
    CONSTANT = "constant"


class FpVar:
    """제약 시스템에 할당된 필드 원소.

    속성:
        cs: 소속 ConstraintSystem (상수는 None)
        variable: Variable (상수는 one 변수)
        constant_value: CONSTANT 모드일 때의 값
    """

    def __init__(self, cs, variable, constant_value=None):
        self.cs = cs
        self.variable = variable
        self.constant_value = constant_value

    @classmethod
    def new_variable(cls, cs, f, mode):
        if mode == AllocationMode.INPUT:
            return cls(cs, cs.new_input_variable(f))
        if mode == AllocationMode.WITNESS:
            return cls(cs, cs.new_witness_variable(f))
        return cls.constant(f())

    @classmethod
    def new_input(cls, cs, f):
        return cls.new_variable(cs, f, AllocationMode.INPUT)

    @classmethod
    def new_witness(cls, cs, f):
        return cls.new_variable(cs, f, AllocationMode.WITNESS)

    @classmethod
    def constant(cls, value):
        return cls(None, Variable.one(), as_fr(value))

    def is_constant(self):
        return self.constant_value is not None

    def value(self):
        """할당된 값을 반환한다.

        Raises:
            MissingAssignmentError: SETUP 모드의 제약 시스템에 속한 변수일 때
        """
        if self.is_constant():
            return self.constant_value
        return self.cs.assigned_value(self.variable)

    def lc(self):
        """이 변수를 나타내는 선형 결합 (상수는 value·one)."""
        if self.is_constant():
            return LinearCombination.constant(self.constant_value)
        return LinearCombination.from_variable(self.variable)

    def __repr__(self):
        if self.is_constant():
            return f"FpVar(constant={int(self.constant_value)})"
        return f"FpVar({self.variable!r})"


def alloc_vec(cs, f, length, mode):
    """길이 length의 FpVar 벡터를 할당한다.

    f는 값 리스트를 반환하는 함수이며 PROVE 모드에서 한 번만 호출된다.
    SETUP 모드에서도 변수의 모양(length개)은 할당된다.
    """
    values = None

    def element(i):
        def value():
            nonlocal values
            if values is None:
                values = list(f())
                if len(values) != length:
                    raise SynthesisError(f"expected {length} values, got {len(values)}")
            return values[i]
        return value

    if mode == AllocationMode.CONSTANT:
        return [FpVar.constant(element(i)()) for i in range(length)]
    return [FpVar.new_variable(cs, element(i), mode) for i in range(length)]


def values_of(fp_vars):
    """FpVar 리스트의 값을 FR 리스트로 반환한다."""
    return [v.value() for v in fp_vars]
