"""
위트니스 솔버 어댑터 (Witness Solver Adapter)
==============================================

게이트 목록, 보조 서브루틴 표, 부분 시드(seed) 할당을 받아
참조되는 모든 위트니스 인덱스의 값을 채운 완전한 할당을 반환한다.

솔버는 오라클(oracle)로 취급한다. 변환기는 솔버의 내부 실행 의미론을
다시 구현하거나 검증하지 않는다.

**ArithmeticSolver** (기본 구현):
  게이트를 순서대로 처리한다.
  | 상황                                        | 결과                     |
  |---------------------------------------------|--------------------------|
  | AssertZero, 모든 위트니스 값이 알려짐       | 0인지 검사 (아니면 실패) |
  | AssertZero, 미지수 하나가 선형으로 등장     | 그 미지수를 푼다         |
  | AssertZero, 그 외                           | SolveError (풀 수 없음)  |
  | BrilligCall                                 | 등록된 오라클 함수 실행  |

  곱셈 항에서 한쪽 값이 알려져 있으면 다른 쪽은 선형으로 취급한다.
  예: 2·w0·w4 - w5 = 0 에서 w0, w5가 알려져 있으면 w4 = w5 / (2·w0).
"""

import logging
import time

from zkp.r1cs.field import FR, as_fr
from zkp.acir.errors import SolveError
from zkp.acir.program import AssertZero, BrilligCall

logger = logging.getLogger(__name__)


class WitnessSolver:
    """솔버 인터페이스."""

    def solve(self, opcodes, unconstrained_functions, initial_witness):
        """완전한 할당을 반환한다.

        Args:
            opcodes: 게이트 목록
            unconstrained_functions: 보조 서브루틴 목록
            initial_witness: 위트니스 인덱스 → FR 시드 할당 (변경되지 않는다)

        Returns:
            dict: 위트니스 인덱스 → FR

        Raises:
            SolveError: 불만족, 풀 수 없음, 서브루틴 누락, 실행 중 트랩
        """
        raise NotImplementedError


class ArithmeticSolver(WitnessSolver):
    """AssertZero 게이트를 순서대로 푸는 기본 솔버.

    Args:
        brillig_oracles: BrilligCall id → 함수. 함수는 입력 값 리스트(FR)를 받아
            출력 값 리스트를 반환한다.
    """

    def __init__(self, brillig_oracles=None):
        self.brillig_oracles = dict(brillig_oracles or {})

    def solve(self, opcodes, unconstrained_functions, initial_witness):
        start = time.perf_counter()
        witness = dict(initial_witness)
        for index, opcode in enumerate(opcodes):
            if isinstance(opcode, AssertZero):
                self._solve_assert_zero(index, opcode.expression, witness)
            elif isinstance(opcode, BrilligCall):
                self._solve_brillig_call(index, opcode, unconstrained_functions, witness)
            else:
                raise SolveError(f"opcode {index}: unsupported opcode {opcode!r}")
        logger.info("solved %d witnesses in %.3fs", len(witness), time.perf_counter() - start)
        return witness

    def _solve_assert_zero(self, index, expression, witness):
        known_sum = expression.q_c
        coefficients = {}  # 미지수 → 누적 계수

        for c, lhs, rhs in expression.mul_terms:
            lhs_known, rhs_known = lhs in witness, rhs in witness
            if lhs_known and rhs_known:
                known_sum = known_sum + c * witness[lhs] * witness[rhs]
            elif lhs_known:
                coefficients[rhs] = coefficients.get(rhs, FR(0)) + c * witness[lhs]
            elif rhs_known:
                coefficients[lhs] = coefficients.get(lhs, FR(0)) + c * witness[rhs]
            else:
                raise SolveError(
                    f"opcode {index}: not solvable, product of unknowns w{lhs}·w{rhs}"
                )

        for c, w in expression.linear_combinations:
            if w in witness:
                known_sum = known_sum + c * witness[w]
            else:
                coefficients[w] = coefficients.get(w, FR(0)) + c

        if not coefficients:
            if known_sum != FR(0):
                raise SolveError(f"opcode {index}: unsatisfied constraint {expression!r}")
            return
        if len(coefficients) > 1:
            unknowns = ", ".join(f"w{w}" for w in coefficients)
            raise SolveError(f"opcode {index}: not solvable, unknowns {unknowns}")

        (unknown, coeff), = coefficients.items()
        if coeff == FR(0):
            raise SolveError(f"opcode {index}: not solvable, w{unknown} has zero coefficient")
        witness[unknown] = -known_sum / coeff

    def _solve_brillig_call(self, index, call, unconstrained_functions, witness):
        if call.id >= len(unconstrained_functions):
            raise SolveError(f"opcode {index}: missing unconstrained function {call.id}")
        oracle = self.brillig_oracles.get(call.id)
        if oracle is None:
            raise SolveError(f"opcode {index}: no oracle registered for unconstrained function {call.id}")

        try:
            inputs = [expr.evaluate(witness) for expr in call.inputs]
        except KeyError as err:
            raise SolveError(f"opcode {index}: input witness w{err.args[0]} is unknown") from err
        try:
            outputs = [as_fr(v) for v in oracle(inputs)]
        except Exception as err:
            raise SolveError(f"opcode {index}: unconstrained function {call.id} trapped: {err}") from err
        if len(outputs) != len(call.outputs):
            raise SolveError(
                f"opcode {index}: unconstrained function {call.id} returned "
                f"{len(outputs)} values, expected {len(call.outputs)}"
            )
        for w, value in zip(call.outputs, outputs):
            witness[w] = value
