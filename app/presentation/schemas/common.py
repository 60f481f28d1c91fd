"""
공통 스키마

[ErrorResponse]
- app.core.exceptions.ExamError 계열 예외를 main.py 핸들러가 이 형태로 변환
- error_code는 예외 클래스의 error_code (SESSION_NOT_FOUND, SESSION_LOCKED 등)
"""
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field, ConfigDict


class HealthResponse(BaseModel):
    """헬스 체크 응답 (redis/postgres 중 하나라도 실패하면 degraded)"""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "degraded",
                "version": "0.1.0",
                "components": {
                    "redis": True,
                    "postgres": False,
                    "llm": True,
                    "transcription": False
                }
            }
        }
    )

    status: str = Field("ok", description="ok 또는 degraded")
    version: str = Field(..., description="서비스 버전 (APP_VERSION)")
    components: Dict[str, bool] = Field(
        default_factory=dict,
        description="구성 요소별 연결/설정 여부"
    )


class ErrorResponse(BaseModel):
    """도메인 예외 응답"""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": True,
                "error_code": "SESSION_NOT_FOUND",
                "error_message": "세션을 찾을 수 없습니다.",
                "details": {
                    "session_id": 42
                }
            }
        }
    )

    error: bool = Field(True, description="항상 true")
    error_code: str = Field(..., description="예외별 에러 코드")
    error_message: str = Field(..., description="사용자에게 보여줄 메시지")
    details: Optional[Dict[str, Any]] = Field(None, description="예외별 상세 정보 (세션 ID, 제한값 등)")
