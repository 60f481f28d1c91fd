"""
세션 상태 머신

[상태]
ACTIVE(i) → ACTIVE(i+1)   : 마지막이 아닌 문항 제출
ACTIVE(N-1) → SEALED      : 마지막 문항 제출 또는 시간 만료 자동 제출
ACTIVE(i) → NULLIFIED     : critical 위반 (다른 모든 전이보다 우선)
SEALED → GRADED           : 채점 완료

상태는 별도 컬럼이 아니라 레코드 필드(sealed, nullified, grading_status)에서 유도합니다.
"""
from app.core.exceptions import SessionLocked
from app.infrastructure.persistence.models.enums import GradingStatusEnum, SessionStatusEnum
from app.infrastructure.persistence.models.sessions import ExamSession

# 무효화된 세션의 답안 필드에 기록되는 고정 문자열
NULLIFIED_ANSWER_SENTINEL = "[NULLIFIED: academic integrity violation]"


def session_status(session: ExamSession) -> SessionStatusEnum:
    """레코드 필드로부터 현재 상태 유도"""
    if session.nullified:
        return SessionStatusEnum.NULLIFIED
    if session.sealed:
        if session.grading_status == GradingStatusEnum.COMPLETED.value and session.final_score is not None:
            return SessionStatusEnum.GRADED
        return SessionStatusEnum.SEALED
    return SessionStatusEnum.ACTIVE


def is_terminal(session: ExamSession) -> bool:
    """봉인 또는 무효화된 세션 여부"""
    return session.sealed or session.nullified


def ensure_active(session: ExamSession, action: str):
    """
    변경 연산 전 상태 확인

    Raises:
        SessionLocked: 세션이 이미 종료된 경우
    """
    if is_terminal(session):
        status = session_status(session)
        raise SessionLocked(
            f"종료된 세션에서는 '{action}'을(를) 수행할 수 없습니다.",
            {"session_id": session.id, "status": status.value, "action": action},
        )


def is_last_question(index: int, question_count: int) -> bool:
    return index >= question_count - 1
