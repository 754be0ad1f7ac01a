"""
ACIR 데이터 직렬화/역직렬화 헬퍼
==================================

TinyDB에 저장 가능한 형태(JSON)로 ACIR/R1CS 객체를 변환한다.
FR, Expression, Circuit, StepResult, ConstraintSystem 요약 등.
"""

from zkp.acir.field import to_field


# ─── FR ───

def serialize_fr(val):
    """FR → str(int)"""
    return str(int(val))


def deserialize_fr(s):
    """str(int) / int / "0x.." → FR"""
    return to_field(s)


def serialize_fr_list(vals):
    """list[FR] → list[str]"""
    return [serialize_fr(v) for v in vals]


def deserialize_fr_list(data):
    """list[str] → list[FR]"""
    return [deserialize_fr(s) for s in data]


# ─── Expression / Circuit ───

def serialize_expression(expr):
    """Expression → dict"""
    return {
        "mul_terms": [[serialize_fr(c), l, r] for c, l, r in expr.mul_terms],
        "linear_combinations": [[serialize_fr(c), w] for c, w in expr.linear_combinations],
        "q_c": serialize_fr(expr.q_c),
    }


def serialize_circuit_summary(circuit):
    """Circuit → dict (UI 표시용 요약)"""
    gates = circuit.assert_zero_gates()
    return {
        "opcodes": len(circuit.opcodes),
        "assert_zero_gates": len(gates),
        "brillig_calls": len(circuit.opcodes) - len(gates),
        "current_witness_index": circuit.current_witness_index,
        "private_parameters": list(circuit.private_parameters),
        "public_parameters": list(circuit.public_parameters),
        "return_values": list(circuit.return_values),
        "gates": [serialize_expression(g.expression) for g in gates],
    }


# ─── Step ───

def serialize_step_result(result):
    """StepResult → dict"""
    return {
        "state": serialize_fr_list(result.state),
        "num_constraints": result.num_constraints,
        "num_instance_variables": result.num_instance_variables,
        "num_witness_variables": result.num_witness_variables,
        "satisfied": result.satisfied,
    }
