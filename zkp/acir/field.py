"""
필드 원소 브리지 (Field Element Bridge)
========================================

바이트코드 IR의 필드 원소 인코딩과 제약 시스템의 FR 사이를 변환한다.
두 표현은 같은 bn128 스칼라 필드 값을 가지며 와이어 포맷만 다르다.

**인코딩**:
  - 바이너리: 32바이트 빅엔디안 정규(canonical) 정수, 값 < p
  - 16진수:  "0x" + 64자리 (위트니스 파일 포맷)

사용 예시:
    >>> field_from_bytes(field_to_bytes(FR(-8))) == FR(-8)   # True
    >>> field_to_hex(FR(255))   # '0x00...ff'
"""

from zkp.r1cs.field import FR, CURVE_ORDER
from zkp.acir.errors import DeserializationError

FIELD_BYTES = 32


def field_to_bytes(value):
    """FR → 32바이트 빅엔디안."""
    return int(value).to_bytes(FIELD_BYTES, "big")


def field_from_bytes(data):
    """32바이트 빅엔디안 → FR.

    Raises:
        DeserializationError: 길이가 32가 아니거나 값이 p 이상일 때
    """
    if len(data) != FIELD_BYTES:
        raise DeserializationError(f"field element must be {FIELD_BYTES} bytes, got {len(data)}")
    n = int.from_bytes(data, "big")
    if n >= CURVE_ORDER:
        raise DeserializationError("field element is not reduced modulo the field order")
    return FR(n)


def field_to_hex(value):
    return "0x" + field_to_bytes(value).hex()


def field_from_hex(text):
    digits = text[2:] if text.startswith(("0x", "0X")) else text
    if not digits or len(digits) > 2 * FIELD_BYTES:
        raise DeserializationError(f"invalid hex field element: {text!r}")
    try:
        data = bytes.fromhex(digits.rjust(2 * FIELD_BYTES, "0"))
    except ValueError as err:
        raise DeserializationError(f"invalid hex field element: {text!r}") from err
    return field_from_bytes(data)


def to_field(value):
    """사용자 입력(정수, FR, "0x.." 16진수, 10진수 문자열)을 FR로 변환한다.

    음수 정수는 p를 법으로 정규화된다 (-8 → p - 8).
    """
    if isinstance(value, FR):
        return value
    if isinstance(value, bool):
        raise DeserializationError(f"not a field element: {value!r}")
    if isinstance(value, int):
        return FR(value)
    if isinstance(value, str):
        text = value.strip()
        if text.lower().startswith("0x"):
            return field_from_hex(text)
        try:
            return FR(int(text, 10))
        except ValueError as err:
            raise DeserializationError(f"not a field element: {value!r}") from err
    raise DeserializationError(f"not a field element: {value!r}")
