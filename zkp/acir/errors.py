"""
ACIR 브리지 오류 분류
======================

  | 오류                  | 발생 조건                                           |
  |-----------------------|-----------------------------------------------------|
  | DeserializationError  | 아티팩트(JSON 봉투/바이너리 페이로드/필드 바이트) 손상 |
  | ArityMismatchError    | 반환값 수 ≠ 공개 파라미터 수 ≠ 선언된 상태 길이       |
  | SolveError            | 솔버가 불만족/풀 수 없음/서브루틴 누락/트랩을 보고   |

제약 합성 중 오류(SynthesisError, MissingAssignmentError)는
zkp.r1cs.constraint_system에 정의되어 있으며, 스텝 회로는 SolveError를
SynthesisError로 감싸서(raise ... from) 전파한다.
어떤 오류도 자동 재시도되거나 삼켜지지 않는다.
"""


class AcirError(Exception):
    """ACIR 브리지 오류의 기반 클래스."""


class DeserializationError(AcirError):
    pass


class ArityMismatchError(AcirError):
    pass


class SolveError(AcirError):
    pass
