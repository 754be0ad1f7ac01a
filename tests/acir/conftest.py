import sys
import os
import pytest

# 프로젝트 루트를 sys.path에 추가
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from zkp.acir.codec import dump_program
from zkp.acir.program import AssertZero, Circuit

from circuits import (
    build_add_program,
    build_brillig_program,
    build_mul_program,
    build_quadratic_expression,
)


@pytest.fixture
def mul_program():
    return build_mul_program()


@pytest.fixture
def add_program():
    return build_add_program()


@pytest.fixture
def brillig_program():
    return build_brillig_program()


@pytest.fixture
def mul_artifact(mul_program):
    return dump_program(mul_program, noir_version="0.36.0")


@pytest.fixture
def quadratic_circuit():
    return Circuit([AssertZero(build_quadratic_expression())])
