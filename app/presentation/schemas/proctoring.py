"""
감독(proctoring) 관련 스키마
"""
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.domain.exam.proctoring import ProctorState
from app.infrastructure.persistence.models.enums import ViolationSeverityEnum, ViolationTypeEnum


class InitializeProctoringRequest(BaseModel):
    """감독 초기화 요청"""
    sessionId: int = Field(..., description="세션 ID")
    userId: Optional[int] = Field(None, description="응시자 ID (생략 시 세션 소유자)")


class ProctorStatusUpdateRequest(BaseModel):
    """카메라 / 전체화면 상태 갱신 요청"""
    sessionId: int = Field(..., description="세션 ID")
    cameraEnabled: Optional[bool] = Field(None, description="카메라 활성 여부")
    fullscreenActive: Optional[bool] = Field(None, description="전체화면 여부")


class ViolationPayload(BaseModel):
    """위반 내용"""
    type: ViolationTypeEnum
    severity: ViolationSeverityEnum
    description: str = ""


class ViolationRequest(BaseModel):
    """위반 기록 요청"""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "sessionId": 1,
                "violation": {
                    "type": "tab_switch",
                    "severity": "critical",
                    "description": "User switched to another tab"
                }
            }
        }
    )

    sessionId: int = Field(..., description="세션 ID")
    violation: ViolationPayload


class ViolationResponse(BaseModel):
    """위반 기록 응답"""
    success: bool = True
    nullified: bool = Field(..., description="세션 무효화 여부")
    violationCounts: Dict[str, int] = Field(..., description="{warnings, critical}")


class ViolationEntry(BaseModel):
    type: ViolationTypeEnum
    severity: ViolationSeverityEnum
    description: str
    timestamp: datetime


class ProctorStatusResponse(BaseModel):
    """감독 상태"""
    sessionId: int
    userId: Optional[int] = None
    startTime: datetime
    isActive: bool
    isValid: bool = Field(..., description="활성 상태이고 critical 위반이 없는지")
    cameraEnabled: bool
    fullscreenActive: bool
    violationCounts: Dict[str, int]
    violations: List[ViolationEntry] = Field(default_factory=list)

    @classmethod
    def from_state(cls, state: ProctorState) -> "ProctorStatusResponse":
        return cls(
            sessionId=state.session_id,
            userId=state.user_id,
            startTime=state.start_time,
            isActive=state.is_active,
            isValid=state.is_valid(),
            cameraEnabled=state.camera_enabled,
            fullscreenActive=state.fullscreen_active,
            violationCounts=state.summary(),
            violations=[ViolationEntry(**v.model_dump()) for v in state.violations],
        )
