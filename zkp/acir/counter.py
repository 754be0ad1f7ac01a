"""
ACIR 제약 개수 계산기
======================

아티팩트를 SETUP 모드로 변환하여 제약/변수 개수를 출력한다.
--z0 값을 주면 PROVE 모드 스텝을 한 번 실행하고 다음 상태와 만족성도 출력한다.

실행:
    python -m zkp.acir.counter target/program.json --state-len 2 --external-len 2
    python -m zkp.acir.counter target/program.json --state-len 2 --external-len 2 \\
        --z0 2 5 --external 2 5

종료 코드:
    0: 성공
    1: 로드/길이/솔버 실패
"""

import argparse
import logging
import sys

from zkp.r1cs.constraint_system import ConstraintSystem, SynthesisError, SynthesisMode
from zkp.r1cs.fp_var import AllocationMode, alloc_vec
from zkp.acir.codec import load_program
from zkp.acir.errors import AcirError, ArityMismatchError
from zkp.acir.step_circuit import NoirStepCircuit, execute_steps
from zkp.acir.translator import AcirCircuit

logger = logging.getLogger(__name__)


def num_constraints(artifact):
    """main 회로의 게이트만 SETUP 모드로 변환했을 때의 제약 수."""
    program = load_program(artifact)
    cs = ConstraintSystem(SynthesisMode.SETUP)
    AcirCircuit(program.main).generate_constraints(cs)
    return cs.num_constraints


def count_step(step_circuit):
    """스텝 회로의 SETUP 모드 모양(shape)을 계산한다.

    z_i는 공개 변수, 외부 입력은 비공개 변수로 할당된다.

    Returns:
        dict: constraints, instance_variables, witness_variables
    """
    cs = ConstraintSystem(SynthesisMode.SETUP)
    z_i = alloc_vec(cs, None, step_circuit.state_len, AllocationMode.INPUT)
    ext = alloc_vec(cs, None, step_circuit.external_inputs_len, AllocationMode.WITNESS)
    step_circuit.generate_step_constraints(cs, z_i, ext)
    return {
        "constraints": cs.num_constraints,
        "instance_variables": cs.num_instance_variables,
        "witness_variables": cs.num_witness_variables,
    }


def build_parser():
    parser = argparse.ArgumentParser(
        prog="acir-count",
        description="Count R1CS constraints of an ACIR program used as an IVC step.",
    )
    parser.add_argument("artifact", help="path to the program artifact (JSON)")
    parser.add_argument("--state-len", type=int, required=True,
                        help="IVC state length (public parameters)")
    parser.add_argument("--external-len", type=int, required=True,
                        help="external input length (private parameters)")
    parser.add_argument("--z0", nargs="+", help="initial state values; runs one proving step")
    parser.add_argument("--external", nargs="*", default=[],
                        help="external input values for the proving step")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        with open(args.artifact, "rb") as f:
            artifact = f.read()
        step = NoirStepCircuit.from_artifact(artifact, args.state_len)
        if step.external_inputs_len != args.external_len:
            raise ArityMismatchError(
                f"circuit has {step.external_inputs_len} private parameters, "
                f"--external-len is {args.external_len}"
            )
        shape = count_step(step)
        print(f"gates:              {num_constraints(artifact)}")
        print(f"constraints:        {shape['constraints']}")
        print(f"instance variables: {shape['instance_variables']}")
        print(f"witness variables:  {shape['witness_variables']}")

        if args.z0 is not None:
            result, = execute_steps(step, args.z0, [args.external])
            print(f"next state:         {[int(v) for v in result.state]}")
            print(f"satisfied:          {result.satisfied}")
            if not result.satisfied:
                return 1
    except (OSError, AcirError, SynthesisError) as err:
        print(f"error: {type(err).__name__}: {err}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
