"""
감독(proctoring) 서비스

[역할]
- 세션별 감독 상태 초기화 / 조회 / 카메라·전체화면 상태 갱신
- 위반 기록 및 critical 위반 시 세션 무효화

감독 상태는 Redis(TTL)에 두고, 무효화 결과는 세션 레코드(PostgreSQL)에 영구 반영합니다.
"""
import logging
from typing import Dict, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.exam.proctoring import ProctorState, ProctorViolation
from app.domain.exam.state_machine import is_terminal
from app.infrastructure.persistence.models.enums import ViolationSeverityEnum, ViolationTypeEnum
from app.infrastructure.persistence.models.types import utcnow
from app.infrastructure.repositories.proctor_repository import ProctorRepository
from app.application.services.session_service import Clock, SessionService


logger = logging.getLogger(__name__)


class ProctoringService:
    """감독 서비스"""

    def __init__(self, db: AsyncSession, proctor_repo: ProctorRepository, clock: Clock = utcnow):
        self.db = db
        self.clock = clock
        self.proctor_repo = proctor_repo
        self.sessions = SessionService(db, clock=clock)

    async def initialize(self, session_id: int, user_id: Optional[int] = None) -> ProctorState:
        """
        감독 상태 초기화

        이미 상태가 있으면 위반 기록을 보존하기 위해 기존 상태를 반환합니다.
        """
        session = await self.sessions.get_session(session_id)
        state = await self.proctor_repo.get_state(session_id)
        if state is not None:
            return state

        state = ProctorState(
            session_id=session_id,
            user_id=user_id if user_id is not None else session.owner_id,
            start_time=self.clock(),
            is_active=not session.nullified,
        )
        await self.proctor_repo.save_state(state)
        logger.info(f"[Proctoring] 감독 초기화 - session_id: {session_id}")
        return state

    async def get_status(self, session_id: int) -> ProctorState:
        """감독 상태 조회 (없으면 초기화)"""
        return await self.initialize(session_id)

    async def update_status(
        self,
        session_id: int,
        camera_enabled: Optional[bool] = None,
        fullscreen_active: Optional[bool] = None,
    ) -> ProctorState:
        """카메라 / 전체화면 상태 갱신 (None이면 유지)"""
        state = await self.initialize(session_id)
        if camera_enabled is not None:
            state.camera_enabled = camera_enabled
        if fullscreen_active is not None:
            state.fullscreen_active = fullscreen_active
        await self.proctor_repo.save_state(state)
        return state

    async def record_violation(
        self,
        session_id: int,
        violation_type: ViolationTypeEnum,
        severity: ViolationSeverityEnum,
        description: str = "",
    ) -> Tuple[bool, Dict[str, int]]:
        """
        위반 기록

        critical 위반이고 세션이 진행 중이면 즉시 무효화합니다.
        이미 제출(봉인)된 세션은 위반만 기록하고 무효화하지 않습니다.

        Returns:
            (세션 무효화 여부, {warnings, critical})
        """
        session = await self.sessions.get_session(session_id)
        state = await self.initialize(session_id)

        violation = ProctorViolation(
            type=violation_type,
            severity=severity,
            description=description,
            timestamp=self.clock(),
        )
        should_nullify = state.record(violation)
        await self.proctor_repo.save_state(state)

        logger.warning(
            f"[Proctoring] 위반 기록 - session_id: {session_id}, "
            f"type: {violation_type.value}, severity: {severity.value}"
        )

        if should_nullify and not is_terminal(session):
            session = await self.sessions.nullify(session_id)

        return session.nullified, state.summary()
