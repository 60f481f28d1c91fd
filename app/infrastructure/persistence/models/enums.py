"""
도메인 Enum 타입 정의
클라이언트와 동일한 값을 사용해야 함
"""
import enum


class SessionStatusEnum(str, enum.Enum):
    """세션 상태 (레코드 필드로부터 유도됨)"""
    ACTIVE = "active"
    SEALED = "sealed"
    GRADED = "graded"
    NULLIFIED = "nullified"


class GradingStatusEnum(str, enum.Enum):
    """채점 상태"""
    NOT_STARTED = "not_started"
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class ViolationTypeEnum(str, enum.Enum):
    """감독 위반 유형"""
    CAMERA_DISABLED = "camera_disabled"
    FULLSCREEN_EXIT = "fullscreen_exit"
    TAB_SWITCH = "tab_switch"
    WINDOW_BLUR = "window_blur"


class ViolationSeverityEnum(str, enum.Enum):
    """위반 심각도"""
    WARNING = "warning"
    CRITICAL = "critical"
