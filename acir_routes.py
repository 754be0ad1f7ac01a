"""
ACIR Flask Blueprint — IVC 스텝 회로 엔드포인트
=================================================

아티팩트를 등록하고, SETUP 모양과 PROVE 스텝 결과를 JSON으로 반환한다.
상태는 TinyDB에 "acir." 접두 키로 저장된다.

  | 메서드 | 경로             | 설명                               |
  |--------|------------------|------------------------------------|
  | POST   | /acir/artifact   | 아티팩트 + state_len 등록          |
  | GET    | /acir/artifact   | 등록된 회로 요약                   |
  | POST   | /acir/setup      | SETUP 모드 제약/변수 개수          |
  | POST   | /acir/step       | PROVE 스텝 한 번                   |
  | POST   | /acir/run        | PROVE 스텝 여러 번                 |
  | GET    | /acir/steps      | 스텝 실행 기록                     |
  | POST   | /acir/clear      | 모든 ACIR 데이터 삭제              |
"""

import json

from flask import Blueprint, jsonify, request
from tinydb import Query

from zkp.r1cs.constraint_system import SynthesisError
from zkp.acir.errors import AcirError
from zkp.acir.step_circuit import NoirStepCircuit, execute_steps
from zkp.acir.counter import count_step

from acir_serializers import (
    deserialize_fr_list,
    serialize_circuit_summary,
    serialize_fr_list,
    serialize_step_result,
)

acir_bp = Blueprint('acir', __name__, url_prefix='/acir')

DATA = Query()

# DB는 app.py에서 주입
DB = None


def init_acir_bp(db):
    """app.py에서 DB를 주입받는다."""
    global DB
    DB = db


# ─── DB 헬퍼 ───

def db_get(key):
    """DB에서 키로 데이터를 조회한다."""
    result = DB.search(DATA.type == key)
    if not result:
        return None
    return result[0].get("data")


def db_set(key, data):
    """DB에 키로 데이터를 저장한다."""
    DB.upsert({"type": key, "data": data}, DATA.type == key)


def db_remove_prefix(prefix):
    """prefix로 시작하는 모든 키를 삭제한다."""
    DB.remove(DATA.type.test(lambda t: t.startswith(prefix)))


def _error(kind, message, status=400):
    return jsonify({"error": kind, "message": message}), status


@acir_bp.errorhandler(AcirError)
@acir_bp.errorhandler(SynthesisError)
def handle_domain_error(err):
    return _error(type(err).__name__, str(err))


def _load_step_circuit():
    stored = db_get("acir.artifact")
    if stored is None:
        return None
    return NoirStepCircuit.from_artifact(stored["artifact"], stored["state_len"])


# ──────────────────────────────────────────────────────────────
# 아티팩트
# ──────────────────────────────────────────────────────────────

@acir_bp.route("/artifact", methods=["POST"])
def artifact_register():
    """아티팩트를 검증하고 저장한다."""
    body = request.get_json(silent=True) or {}
    artifact = body.get("artifact")
    state_len = body.get("state_len")
    if artifact is None or not isinstance(state_len, int):
        return _error("BadRequest", "'artifact' and integer 'state_len' are required")
    if not isinstance(artifact, str):
        artifact = json.dumps(artifact)

    step = NoirStepCircuit.from_artifact(artifact, state_len)
    summary = serialize_circuit_summary(step.circuit)
    summary["state_len"] = step.state_len
    summary["external_inputs_len"] = step.external_inputs_len

    db_remove_prefix("acir.")
    db_set("acir.artifact", {"artifact": artifact, "state_len": state_len})
    db_set("acir.summary", summary)
    return jsonify(summary)


@acir_bp.route("/artifact", methods=["GET"])
def artifact_summary():
    """등록된 회로 요약."""
    summary = db_get("acir.summary")
    if summary is None:
        return _error("NotFound", "no artifact registered", 404)
    return jsonify(summary)


# ──────────────────────────────────────────────────────────────
# Setup / Prove
# ──────────────────────────────────────────────────────────────

@acir_bp.route("/setup", methods=["POST"])
def setup_shape():
    """SETUP 모드 모양을 계산한다."""
    step = _load_step_circuit()
    if step is None:
        return _error("NotFound", "no artifact registered", 404)
    shape = count_step(step)
    db_set("acir.setup", shape)
    return jsonify(shape)


def _record_steps(results):
    history = db_get("acir.steps") or []
    history.extend(serialize_step_result(r) for r in results)
    db_set("acir.steps", history)
    return history


@acir_bp.route("/step", methods=["POST"])
def prove_step():
    """PROVE 스텝 한 번: {"state": [...], "external_inputs": [...]}"""
    step = _load_step_circuit()
    if step is None:
        return _error("NotFound", "no artifact registered", 404)
    body = request.get_json(silent=True) or {}
    state = body.get("state")
    if state is None:
        return _error("BadRequest", "'state' is required")

    result, = execute_steps(step, state, [body.get("external_inputs", [])])
    _record_steps([result])
    return jsonify(serialize_step_result(result))


@acir_bp.route("/run", methods=["POST"])
def prove_run():
    """PROVE 스텝 여러 번: {"state": z_0, "steps": [[외부 입력], ...]}"""
    step = _load_step_circuit()
    if step is None:
        return _error("NotFound", "no artifact registered", 404)
    body = request.get_json(silent=True) or {}
    state = body.get("state")
    steps = body.get("steps")
    if state is None or not isinstance(steps, list):
        return _error("BadRequest", "'state' and list 'steps' are required")

    results = execute_steps(step, state, steps)
    _record_steps(results)
    final = results[-1].state if results else deserialize_fr_list(state)
    return jsonify({
        "steps": [serialize_step_result(r) for r in results],
        "final_state": serialize_fr_list(final),
        "all_satisfied": all(r.satisfied for r in results),
    })


@acir_bp.route("/steps", methods=["GET"])
def step_history():
    """스텝 실행 기록."""
    return jsonify(db_get("acir.steps") or [])


@acir_bp.route("/clear", methods=["POST"])
def clear():
    """모든 ACIR 데이터를 클리어한다."""
    db_remove_prefix("acir.")
    return jsonify({"cleared": True})
