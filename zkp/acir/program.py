"""
ACIR 프로그램 모델 (Program Model)
==================================

바이트코드 IR로 표현된 산술 회로 프로그램. 로드된 뒤에는 불변(immutable)이다.

**구조**:
  Program
   ├─ functions: [Circuit, ...]          (첫 번째 회로 main만 사용)
   └─ unconstrained_functions: [UnconstrainedFunction, ...]
                                          (솔버만 실행하는 보조 서브루틴)

  Circuit
   ├─ opcodes: [AssertZero | BrilligCall, ...]
   ├─ private_parameters: 외부 입력(external input) 위트니스 인덱스
   ├─ public_parameters:  IVC 상태 z_i 위트니스 인덱스
   └─ return_values:      다음 상태 z_{i+1} 위트니스 인덱스

**영 단언 게이트 (AssertZero)**:
  하나의 이차식(quadratic expression)이 0임을 단언한다.

    Σ cₖ·w[lₖ]·w[rₖ]  +  Σ cⱼ·w[iⱼ]  +  q_c  =  0
    (곱셈 항 mul_terms)   (선형 항)        (상수)

**아티팩트 포맷**:
  JSON 봉투의 "bytecode" 필드 = base64(gzip(바이너리 페이로드)).
  로드/저장과 페이로드 포맷은 zkp.acir.codec 참고.

사용 예시:
    >>> gate = AssertZero(Expression(mul_terms=[(1, 0, 2)], linear_combinations=[(-1, 4)]))
    >>> circuit = Circuit([gate], private_parameters=[2], public_parameters=[0],
    ...                   return_values=[4])
    >>> program = Program([circuit])
    >>> program.main.check_ivc_arity(1)
"""

from collections import namedtuple

from zkp.r1cs.field import as_fr
from zkp.acir.errors import ArityMismatchError


MulTerm = namedtuple("MulTerm", ["coeff", "lhs", "rhs"])
LinearTerm = namedtuple("LinearTerm", ["coeff", "witness"])


class Expression:
    """이차식: 곱셈 항, 선형 항, 상수 q_c."""

    def __init__(self, mul_terms=(), linear_combinations=(), q_c=0):
        self.mul_terms = tuple(
            MulTerm(as_fr(c), int(lhs), int(rhs)) for c, lhs, rhs in mul_terms
        )
        self.linear_combinations = tuple(
            LinearTerm(as_fr(c), int(w)) for c, w in linear_combinations
        )
        self.q_c = as_fr(q_c)

    @classmethod
    def from_witness(cls, witness):
        return cls(linear_combinations=[(1, witness)])

    def witnesses(self):
        """식에 등장하는 위트니스 인덱스 (직렬화 순서, 중복 제거)."""
        seen = []
        for term in self.mul_terms:
            for w in (term.lhs, term.rhs):
                if w not in seen:
                    seen.append(w)
        for term in self.linear_combinations:
            if term.witness not in seen:
                seen.append(term.witness)
        return seen

    def evaluate(self, assignment):
        """모든 위트니스 값이 assignment에 있을 때 식의 값을 계산한다."""
        total = self.q_c
        for c, lhs, rhs in self.mul_terms:
            total = total + c * assignment[lhs] * assignment[rhs]
        for c, w in self.linear_combinations:
            total = total + c * assignment[w]
        return total

    def is_linear(self):
        return not self.mul_terms

    def __eq__(self, other):
        if not isinstance(other, Expression):
            return NotImplemented
        return (
            self.mul_terms == other.mul_terms
            and self.linear_combinations == other.linear_combinations
            and self.q_c == other.q_c
        )

    def __repr__(self):
        parts = [f"{int(c)}·w{l}·w{r}" for c, l, r in self.mul_terms]
        parts += [f"{int(c)}·w{w}" for c, w in self.linear_combinations]
        parts.append(str(int(self.q_c)))
        return f"Expression({' + '.join(parts)})"


class AssertZero:
    """영 단언 게이트: expression == 0."""

    def __init__(self, expression):
        self.expression = expression

    def __eq__(self, other):
        return isinstance(other, AssertZero) and self.expression == other.expression

    def __repr__(self):
        return f"AssertZero({self.expression!r})"


class BrilligCall:
    """보조 서브루틴 호출. 솔버만 실행하며 제약으로 변환되지 않는다.

    속성:
        id: unconstrained_functions 내 인덱스
        inputs: 입력 Expression 리스트
        outputs: 결과를 기록할 위트니스 인덱스 리스트
    """

    def __init__(self, id, inputs=(), outputs=()):
        self.id = int(id)
        self.inputs = tuple(inputs)
        self.outputs = tuple(int(w) for w in outputs)

    def __eq__(self, other):
        return (
            isinstance(other, BrilligCall)
            and (self.id, self.inputs, self.outputs) == (other.id, other.inputs, other.outputs)
        )

    def __repr__(self):
        return f"BrilligCall(id={self.id}, inputs={len(self.inputs)}, outputs={list(self.outputs)})"


class UnconstrainedFunction:
    """불투명(opaque) 보조 서브루틴 바이트코드."""

    def __init__(self, bytecode=b""):
        self.bytecode = bytes(bytecode)

    def __eq__(self, other):
        return isinstance(other, UnconstrainedFunction) and self.bytecode == other.bytecode


class Circuit:
    def __init__(self, opcodes, private_parameters=(), public_parameters=(),
                 return_values=(), current_witness_index=None):
        self.opcodes = tuple(opcodes)
        self.private_parameters = tuple(int(w) for w in private_parameters)
        self.public_parameters = tuple(int(w) for w in public_parameters)
        self.return_values = tuple(int(w) for w in return_values)
        if current_witness_index is None:
            current_witness_index = max(self.referenced_witnesses(), default=0)
        self.current_witness_index = int(current_witness_index)

    def assert_zero_gates(self):
        return [op for op in self.opcodes if isinstance(op, AssertZero)]

    def referenced_witnesses(self):
        """회로 전체에서 참조되는 위트니스 인덱스 집합."""
        found = set(self.private_parameters) | set(self.public_parameters) | set(self.return_values)
        for op in self.opcodes:
            if isinstance(op, AssertZero):
                found.update(op.expression.witnesses())
            else:
                for expr in op.inputs:
                    found.update(expr.witnesses())
                found.update(op.outputs)
        return found

    def check_ivc_arity(self, state_len):
        """IVC 입출력 길이 불변식을 검사한다.

        len(return_values) == len(public_parameters) == state_len

        Raises:
            ArityMismatchError: 길이가 맞지 않을 때
        """
        public_io_length = len(self.public_parameters)
        ivc_return_length = len(self.return_values)
        if public_io_length != ivc_return_length:
            raise ArityMismatchError(
                "public input and output are not the same length: "
                f"IVC input {public_io_length}, IVC output {ivc_return_length}"
            )
        if public_io_length != state_len:
            raise ArityMismatchError(
                f"circuit has {public_io_length} public parameters, state length is {state_len}"
            )

    def __eq__(self, other):
        if not isinstance(other, Circuit):
            return NotImplemented
        return (
            self.opcodes == other.opcodes
            and self.private_parameters == other.private_parameters
            and self.public_parameters == other.public_parameters
            and self.return_values == other.return_values
            and self.current_witness_index == other.current_witness_index
        )


class Program:
    def __init__(self, functions, unconstrained_functions=()):
        self.functions = tuple(functions)
        self.unconstrained_functions = tuple(unconstrained_functions)

    @property
    def main(self):
        """첫 번째 회로 (나머지는 사용하지 않는다)."""
        return self.functions[0]

    def __eq__(self, other):
        if not isinstance(other, Program):
            return NotImplemented
        return (
            self.functions == other.functions
            and self.unconstrained_functions == other.unconstrained_functions
        )

