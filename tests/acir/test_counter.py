"""
제약 개수 계산기 (acir-count) 테스트.
"""

import pytest

from zkp.acir.codec import dump_program
from zkp.acir.counter import count_step, main, num_constraints
from zkp.acir.step_circuit import NoirStepCircuit


@pytest.fixture
def artifact_path(tmp_path, mul_artifact):
    path = tmp_path / "program.json"
    path.write_bytes(mul_artifact)
    return str(path)


def test_num_constraints(mul_artifact):
    assert num_constraints(mul_artifact) == 2


def test_count_step(mul_program):
    shape = count_step(NoirStepCircuit(mul_program, 2))
    assert shape == {"constraints": 2, "instance_variables": 3, "witness_variables": 6}


def test_count_step_matches_prove_run(add_program):
    """SETUP 모드 개수는 실제 스텝 실행의 개수와 같다."""
    from zkp.acir.step_circuit import execute_steps

    step = NoirStepCircuit(add_program, 2)
    result, = execute_steps(step, [1, 1], [[1, 1]])
    shape = count_step(step)
    assert shape["constraints"] == result.num_constraints
    assert shape["instance_variables"] == result.num_instance_variables
    assert shape["witness_variables"] == result.num_witness_variables


class TestMain:
    def test_counts(self, artifact_path, capsys):
        assert main([artifact_path, "--state-len", "2", "--external-len", "2"]) == 0
        out = capsys.readouterr().out
        assert "gates:              2" in out
        assert "constraints:        2" in out
        assert "instance variables: 3" in out
        assert "witness variables:  6" in out
        assert "next state" not in out

    def test_proving_step(self, artifact_path, capsys):
        argv = [artifact_path, "--state-len", "2", "--external-len", "2",
                "--z0", "2", "5", "--external", "2", "5"]
        assert main(argv) == 0
        out = capsys.readouterr().out
        assert "next state:         [4, 25]" in out
        assert "satisfied:          True" in out

    def test_missing_file(self, tmp_path, capsys):
        argv = [str(tmp_path / "missing.json"), "--state-len", "2", "--external-len", "2"]
        assert main(argv) == 1
        assert "error:" in capsys.readouterr().err

    def test_malformed_artifact(self, tmp_path, capsys):
        path = tmp_path / "broken.json"
        path.write_text('{"bytecode": "AAAA"}')
        assert main([str(path), "--state-len", "2", "--external-len", "2"]) == 1
        assert "DeserializationError" in capsys.readouterr().err

    def test_wrong_state_len(self, artifact_path, capsys):
        assert main([artifact_path, "--state-len", "3", "--external-len", "2"]) == 1
        assert "ArityMismatchError" in capsys.readouterr().err

    def test_wrong_external_len(self, artifact_path, capsys):
        assert main([artifact_path, "--state-len", "2", "--external-len", "1"]) == 1
        assert "ArityMismatchError" in capsys.readouterr().err

    def test_wrong_external_value_count(self, artifact_path, capsys):
        argv = [artifact_path, "--state-len", "2", "--external-len", "2",
                "--z0", "2", "5", "--external", "2"]
        assert main(argv) == 1
        assert "SynthesisError" in capsys.readouterr().err

    def test_solver_failure(self, tmp_path, brillig_program, capsys):
        """오라클이 등록되지 않은 Brillig 호출은 PROVE 스텝에서 실패한다."""
        path = tmp_path / "brillig.json"
        path.write_bytes(dump_program(brillig_program))
        argv = [str(path), "--state-len", "1", "--external-len", "1",
                "--z0", "4", "--external", "0"]
        assert main(argv) == 1
        captured = capsys.readouterr()
        assert "constraints:        2" in captured.out
        assert "SynthesisError" in captured.err
