"""
R1CS 기반 모듈: 제약 시스템의 유한체(Finite Field)
====================================================

R1CS 제약 시스템 전체에서 사용되는 기본 산술 단위를 정의한다.

**유한체 FR**:
  bn128 타원곡선의 스칼라 필드 (scalar field).
  바이트코드 IR의 필드 원소와 같은 값(bit-identical)을 가지며,
  인코딩 방식만 다르다 (변환은 zkp.acir.field 참고).
  - 위수(order) p ≈ 2^254, 소수체(prime field)

사용 예시:
    >>> from zkp.r1cs.field import FR
    >>> a = FR(3)
    >>> b = FR(-8)
    >>> a * a + b + FR(2)   # FR(3)
"""

from py_ecc.fields import bn128_FQ as FQ
from py_ecc import bn128


class FR(FQ):
    """bn128 스칼라 필드 위의 유한체 원소.

    py_ecc의 FQ 클래스를 상속하여 +, -, *, /, ** 등의 필드 연산을 제공한다.
    음수 정수는 p를 법으로 정규화된다: FR(-1) == FR(p - 1).

    속성:
        field_modulus: bn128 곡선 위수 (소수 p)
    """
    field_modulus = bn128.curve_order


# 곡선 위수 (필드 크기)
CURVE_ORDER = bn128.curve_order


def as_fr(value):
    """정수 또는 FR 값을 FR로 강제 변환한다."""
    if isinstance(value, FR):
        return value
    return FR(int(value))
