"""
감독(proctoring) 상태 모델

세션 레코드와 별도로 Redis에 저장됩니다.
critical 위반이 기록되면 비활성화되며, 이후 세션 레코드가 무효화됩니다.
"""
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from app.infrastructure.persistence.models.enums import ViolationSeverityEnum, ViolationTypeEnum
from app.infrastructure.persistence.models.types import utcnow


class ProctorViolation(BaseModel):
    """감독 위반 기록"""
    type: ViolationTypeEnum
    severity: ViolationSeverityEnum
    description: str = ""
    timestamp: datetime = Field(default_factory=utcnow)


class ProctorState(BaseModel):
    """세션별 감독 상태"""
    session_id: int
    user_id: Optional[int] = None
    start_time: datetime = Field(default_factory=utcnow)
    violations: List[ProctorViolation] = Field(default_factory=list)
    is_active: bool = True
    camera_enabled: bool = False
    fullscreen_active: bool = False

    def record(self, violation: ProctorViolation, auto_nullify: bool = True) -> bool:
        """
        위반 기록

        Returns:
            세션을 무효화해야 하면 True (one-strike: critical 1회)
        """
        self.violations.append(violation)
        if auto_nullify and violation.severity == ViolationSeverityEnum.CRITICAL:
            self.is_active = False
            return True
        return False

    def summary(self) -> Dict[str, int]:
        """{warnings, critical} 개수"""
        return {
            "warnings": sum(1 for v in self.violations if v.severity == ViolationSeverityEnum.WARNING),
            "critical": sum(1 for v in self.violations if v.severity == ViolationSeverityEnum.CRITICAL),
        }

    def is_valid(self) -> bool:
        """활성 상태이고 critical 위반이 없는지"""
        return self.is_active and self.summary()["critical"] == 0
