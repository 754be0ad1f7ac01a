"""
ACIR 아티팩트 코덱
===================

JSON 봉투(envelope) 안에 base64(gzip(페이로드))로 들어 있는 바이너리 바이트코드를
Program으로 변환하고, 그 반대도 수행한다.

**페이로드 포맷** (리틀엔디안, 모든 시퀀스는 u32 길이 접두):

    magic "ACIR" | u8 version
    seq<circuit> | seq<u32 len | bytes>            (unconstrained functions)

    circuit    := u32 current_witness_index | seq<opcode>
                  | seq<u32 private> | seq<u32 public> | seq<u32 return>
    opcode     := u8 0 | expression                                  (AssertZero)
                | u8 1 | u32 id | seq<expression> | seq<u32 output>  (BrilligCall)
    expression := seq<field | u32 lhs | u32 rhs> | seq<field | u32 w> | field q_c
    field      := 32바이트 빅엔디안 (zkp.acir.field)
"""

import base64
import binascii
import gzip
import json
import struct
import zlib

from zkp.acir.errors import DeserializationError
from zkp.acir.field import FIELD_BYTES, field_from_bytes, field_to_bytes
from zkp.acir.program import (
    AssertZero,
    BrilligCall,
    Circuit,
    Expression,
    Program,
    UnconstrainedFunction,
)

MAGIC = b"ACIR"
VERSION = 1

OPCODE_ASSERT_ZERO = 0
OPCODE_BRILLIG_CALL = 1


# ─── 읽기 ───

class _Reader:
    def __init__(self, data):
        self.data = bytes(data)
        self.offset = 0

    def take(self, n):
        if self.offset + n > len(self.data):
            raise DeserializationError(
                f"payload truncated at byte {self.offset}: need {n} more bytes"
            )
        chunk = self.data[self.offset:self.offset + n]
        self.offset += n
        return chunk

    def u8(self):
        return self.take(1)[0]

    def u32(self):
        return struct.unpack("<I", self.take(4))[0]

    def field(self):
        return field_from_bytes(self.take(FIELD_BYTES))

    def seq(self, read_item):
        return [read_item() for _ in range(self.u32())]

    def finish(self):
        if self.offset != len(self.data):
            raise DeserializationError(
                f"{len(self.data) - self.offset} trailing bytes after program"
            )


def _read_expression(r):
    mul_terms = r.seq(lambda: (r.field(), r.u32(), r.u32()))
    linear = r.seq(lambda: (r.field(), r.u32()))
    return Expression(mul_terms, linear, r.field())


def _read_opcode(r):
    tag = r.u8()
    if tag == OPCODE_ASSERT_ZERO:
        return AssertZero(_read_expression(r))
    if tag == OPCODE_BRILLIG_CALL:
        fn_id = r.u32()
        inputs = r.seq(lambda: _read_expression(r))
        return BrilligCall(fn_id, inputs, r.seq(r.u32))
    raise DeserializationError(f"unknown opcode tag {tag}")


def _read_circuit(r):
    current_witness_index = r.u32()
    opcodes = r.seq(lambda: _read_opcode(r))
    private_parameters = r.seq(r.u32)
    public_parameters = r.seq(r.u32)
    return_values = r.seq(r.u32)
    return Circuit(opcodes, private_parameters, public_parameters, return_values,
                   current_witness_index)


def decode_program(payload):
    """바이너리 페이로드 → Program.

    Raises:
        DeserializationError: 매직/버전/길이/태그/필드 값이 잘못되었을 때
    """
    r = _Reader(payload)
    if r.take(len(MAGIC)) != MAGIC:
        raise DeserializationError("payload does not start with ACIR magic")
    version = r.u8()
    if version != VERSION:
        raise DeserializationError(f"unsupported payload version {version}")
    functions = r.seq(lambda: _read_circuit(r))
    unconstrained = r.seq(lambda: UnconstrainedFunction(r.take(r.u32())))
    r.finish()
    if not functions:
        raise DeserializationError("program has no circuits")
    return Program(functions, unconstrained)


# ─── 쓰기 ───

def _u32(n):
    return struct.pack("<I", n)


def _seq(items, write_item):
    return _u32(len(items)) + b"".join(write_item(item) for item in items)


def _write_expression(expr):
    return (
        _seq(expr.mul_terms, lambda t: field_to_bytes(t.coeff) + _u32(t.lhs) + _u32(t.rhs))
        + _seq(expr.linear_combinations, lambda t: field_to_bytes(t.coeff) + _u32(t.witness))
        + field_to_bytes(expr.q_c)
    )


def _write_opcode(op):
    if isinstance(op, AssertZero):
        return bytes([OPCODE_ASSERT_ZERO]) + _write_expression(op.expression)
    return (
        bytes([OPCODE_BRILLIG_CALL])
        + _u32(op.id)
        + _seq(op.inputs, _write_expression)
        + _seq(op.outputs, _u32)
    )


def _write_circuit(circuit):
    return (
        _u32(circuit.current_witness_index)
        + _seq(circuit.opcodes, _write_opcode)
        + _seq(circuit.private_parameters, _u32)
        + _seq(circuit.public_parameters, _u32)
        + _seq(circuit.return_values, _u32)
    )


def encode_program(program):
    """Program → 바이너리 페이로드."""
    return (
        MAGIC
        + bytes([VERSION])
        + _seq(program.functions, _write_circuit)
        + _seq(program.unconstrained_functions, lambda f: _u32(len(f.bytecode)) + f.bytecode)
    )


# ─── JSON 봉투 ───

def load_program(data, state_len=None):
    """JSON 아티팩트에서 Program을 로드한다.

    Args:
        data: 아티팩트 (bytes 또는 str)
        state_len: 주어지면 main 회로의 IVC 길이 불변식을 검사한다

    Returns:
        Program

    Raises:
        DeserializationError: JSON/base64/gzip/페이로드가 손상되었을 때
        ArityMismatchError: state_len 검사가 실패했을 때
    """
    try:
        envelope = json.loads(data)
    except ValueError as err:
        raise DeserializationError(f"artifact is not valid JSON: {err}") from err
    if not isinstance(envelope, dict) or not isinstance(envelope.get("bytecode"), str):
        raise DeserializationError("artifact has no 'bytecode' string")

    try:
        compressed = base64.b64decode(envelope["bytecode"], validate=True)
    except (binascii.Error, ValueError) as err:
        raise DeserializationError(f"bytecode is not valid base64: {err}") from err
    try:
        payload = gzip.decompress(compressed)
    except (OSError, EOFError, zlib.error) as err:
        raise DeserializationError(f"bytecode is not valid gzip: {err}") from err

    program = decode_program(payload)
    if state_len is not None:
        program.main.check_ivc_arity(state_len)
    return program


def dump_program(program, **envelope):
    """Program을 JSON 아티팩트로 직렬화한다.

    envelope의 나머지 키(noir_version 등)는 봉투에 그대로 기록된다.
    """
    envelope = dict(envelope)
    compressed = gzip.compress(encode_program(program), mtime=0)
    envelope["bytecode"] = base64.b64encode(compressed).decode("ascii")
    return json.dumps(envelope).encode("utf-8")
