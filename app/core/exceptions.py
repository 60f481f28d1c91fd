"""
도메인 예외 정의

각 예외는 HTTP 상태 코드와 error_code를 가지고 있으며,
app.main의 예외 핸들러가 ErrorResponse 형태로 변환합니다.
"""
from typing import Any, Dict, List, Optional


class ExamError(Exception):
    """시험 도메인 예외의 베이스 클래스"""
    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(ExamError):
    """잘못된 요청 (쓰기 전에 거부)"""
    status_code = 400
    error_code = "VALIDATION_ERROR"


class SessionNotFound(ExamError):
    """존재하지 않는 세션 ID"""
    status_code = 404
    error_code = "SESSION_NOT_FOUND"

    def __init__(self, session_id: int):
        super().__init__("세션을 찾을 수 없습니다.", {"session_id": session_id})
        self.session_id = session_id


class SessionConflict(ExamError):
    """현재 세션 상태와 맞지 않는 요청 (예: 이미 지난 문항에 대한 제출)"""
    status_code = 409
    error_code = "SESSION_CONFLICT"


class SessionLocked(SessionConflict):
    """이미 종료(봉인/무효화)된 세션에 대한 변경 시도"""
    error_code = "SESSION_LOCKED"


class LimitExceeded(ExamError):
    """문항당 질문 횟수 초과"""
    status_code = 429
    error_code = "CLARIFICATION_LIMIT_EXCEEDED"


class UpstreamServiceFailure(ExamError):
    """
    외부 AI 서비스 실패

    모든 provider가 실패했을 때만 호출자에게 전달됩니다.
    errors에는 provider별 에러가 시도 순서대로 담깁니다.
    """
    status_code = 502
    error_code = "UPSTREAM_SERVICE_FAILURE"

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message, {"providers": errors or []})
        self.errors = errors or []
