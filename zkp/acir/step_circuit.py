"""
IVC 스텝 회로 (Step Circuit Wrapper)
=====================================

ACIR 프로그램을 폴딩/재귀 증명 방식이 사용할 수 있는 하나의 증분 스텝 함수로 감싼다.

    F: (z_i, external_input) → z_{i+1}     + 제약 추가 (부수 효과)

**스텝 한 번의 흐름** (PROVE 모드):

  ┌──────────────────────────────────────────────────────────┐
  │ (a) 시드: public_parameters[k]  ← z_i[k]                 │
  │          private_parameters[k] ← external_inputs[k]      │
  │     각 인덱스를 already-known 표에 호출자 변수로 기록     │
  ├──────────────────────────────────────────────────────────┤
  │ (b) 솔버 호출 → 완전한 할당                               │
  ├──────────────────────────────────────────────────────────┤
  │ (c) return_values 위치에 새 출력 변수 z_{i+1} 할당        │
  │     (already-known 표에도 기록)                           │
  ├──────────────────────────────────────────────────────────┤
  │ (d) 게이트 변환기 실행: 입력/출력 등장 위치는 호출자의    │
  │     변수를 재사용 → 스텝이 바깥 재귀 회로에 연결된다      │
  └──────────────────────────────────────────────────────────┘

  SETUP 모드에서는 (a), (b)를 건너뛰고 자리표시자로 모양만 만든다.

**불변식**:
  len(public_parameters) == len(return_values) == state_len
  (생성 시 검사, 위반 시 ArityMismatchError)

사용 예시:
    >>> step = NoirStepCircuit.from_artifact(artifact_bytes, state_len=2)
    >>> cs = ConstraintSystem()
    >>> z_i = alloc_vec(cs, lambda: [2, 5], 2, AllocationMode.INPUT)
    >>> ext = alloc_vec(cs, lambda: [2, 5], 2, AllocationMode.WITNESS)
    >>> z_next = step.generate_step_constraints(cs, z_i, ext)
    >>> [int(v.value()) for v in z_next]   # [4, 25]
"""

import logging

from zkp.r1cs.constraint_system import (
    ConstraintSystem,
    MissingAssignmentError,
    SynthesisError,
    SynthesisMode,
)
from zkp.r1cs.fp_var import AllocationMode, FpVar, alloc_vec, values_of
from zkp.acir.codec import load_program
from zkp.acir.errors import SolveError
from zkp.acir.field import to_field
from zkp.acir.solver import ArithmeticSolver
from zkp.acir.translator import AcirCircuit

logger = logging.getLogger(__name__)


class NoirStepCircuit:
    """ACIR 프로그램 기반 IVC 스텝 회로.

    속성:
        program: 로드된 Program
        circuit: program.main
        state_len: IVC 상태 길이 (공개 파라미터 수)
        external_inputs_len: 외부 입력 길이 (비공개 파라미터 수)
        solver: WitnessSolver 구현
    """

    def __init__(self, program, state_len, solver=None):
        program.main.check_ivc_arity(state_len)
        self.program = program
        self.circuit = program.main
        self.state_len = state_len
        self.solver = solver if solver is not None else ArithmeticSolver()

    @classmethod
    def from_artifact(cls, artifact, state_len, solver=None):
        """아티팩트 바이트열에서 스텝 회로를 만든다.

        Raises:
            DeserializationError: 아티팩트가 손상되었을 때
            ArityMismatchError: 길이 불변식이 깨졌을 때
        """
        return cls(load_program(artifact), state_len, solver)

    @property
    def external_inputs_len(self):
        return len(self.circuit.private_parameters)

    def _check_lengths(self, z_i, external_inputs):
        if len(z_i) != self.state_len:
            raise SynthesisError(f"expected state of length {self.state_len}, got {len(z_i)}")
        if len(external_inputs) != self.external_inputs_len:
            raise SynthesisError(
                f"expected {self.external_inputs_len} external inputs, got {len(external_inputs)}"
            )

    def generate_step_constraints(self, cs, z_i, external_inputs):
        """스텝 하나의 제약을 cs에 추가하고 다음 상태 z_{i+1}을 반환한다.

        Args:
            cs: 대상 ConstraintSystem (이 스텝 전용)
            z_i: 현재 상태 FpVar 리스트 (길이 state_len)
            external_inputs: 외부 입력 FpVar 리스트 (길이 external_inputs_len)

        Returns:
            list[FpVar]: 다음 상태 z_{i+1}

        Raises:
            SynthesisError: 길이 불일치 또는 솔버 실패 (SolveError를 원인으로 연결)
            MissingAssignmentError: 제약 생성에 필요한 값이 없을 때

        실패한 스텝 뒤의 cs는 일부만 변경된 상태이므로 버려야 한다.
        """
        self._check_lengths(z_i, external_inputs)

        already_known = {}
        for position, witness in enumerate(self.circuit.public_parameters):
            already_known[witness] = z_i[position]
        for position, witness in enumerate(self.circuit.private_parameters):
            already_known[witness] = external_inputs[position]

        assignment = {}
        if not cs.is_in_setup_mode():
            seed = {w: var.value() for w, var in already_known.items()}
            try:
                assignment = self.solver.solve(
                    self.circuit.opcodes, self.program.unconstrained_functions, seed
                )
            except SolveError as err:
                raise SynthesisError(f"witness solving failed: {err}") from err

        z_next = []
        for witness in self.circuit.return_values:
            var = already_known.get(witness)
            if var is None:
                var = FpVar.new_witness(cs, lambda w=witness: _solved_value(assignment, w))
                already_known[witness] = var
            z_next.append(var)

        AcirCircuit(self.circuit, assignment, already_known).generate_constraints(cs)
        logger.debug(
            "step: %d constraints, %d instance / %d witness variables",
            cs.num_constraints, cs.num_instance_variables, cs.num_witness_variables,
        )
        return z_next


def _solved_value(assignment, witness):
    if witness not in assignment:
        raise MissingAssignmentError(f"return value w{witness} was not solved")
    return assignment[witness]


# ─────────────────────────────────────────────────────────────────────
# 여러 스텝 실행
# ─────────────────────────────────────────────────────────────────────

class StepResult:
    """스텝 하나의 실행 결과.

    속성:
        state: 다음 상태 값 (FR 리스트)
        num_constraints, num_instance_variables, num_witness_variables: 제약 시스템 크기
        satisfied: 만족성 검사 결과
    """

    def __init__(self, state, num_constraints, num_instance_variables,
                 num_witness_variables, satisfied):
        self.state = state
        self.num_constraints = num_constraints
        self.num_instance_variables = num_instance_variables
        self.num_witness_variables = num_witness_variables
        self.satisfied = satisfied


def execute_steps(step_circuit, z_0, external_inputs_per_step):
    """연속된 스텝을 실행한다. 폴딩은 하지 않는다.

    스텝마다 새 PROVE 모드 ConstraintSystem을 만들고, z_i는 공개 변수로,
    외부 입력은 비공개 변수로 할당한 뒤 만족성을 검사한다.
    이전 스텝의 값만 다음 스텝으로 넘어가고 변수는 넘어가지 않는다.

    Args:
        step_circuit: NoirStepCircuit
        z_0: 초기 상태 값 리스트 (정수, FR, "0x.." 문자열)
        external_inputs_per_step: 스텝별 외부 입력 값 리스트의 리스트

    Returns:
        list[StepResult]
    """
    state = [to_field(v) for v in z_0]
    results = []
    for i, external in enumerate(external_inputs_per_step):
        external = [to_field(v) for v in external]
        cs = ConstraintSystem(SynthesisMode.PROVE)
        z_i = alloc_vec(cs, lambda: state, step_circuit.state_len, AllocationMode.INPUT)
        ext = alloc_vec(cs, lambda: external, len(external), AllocationMode.WITNESS)
        z_next = step_circuit.generate_step_constraints(cs, z_i, ext)
        state = values_of(z_next)
        satisfied = cs.is_satisfied()
        logger.info("step %d: state=%s satisfied=%s", i, [int(v) for v in state], satisfied)
        results.append(StepResult(
            state,
            cs.num_constraints,
            cs.num_instance_variables,
            cs.num_witness_variables,
            satisfied,
        ))
    return results
