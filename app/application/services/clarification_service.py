"""
질문(clarification) 서비스

[역할]
- 응시자의 질문을 AI에 전달하고 답변을 반환
- 문항당 질문 횟수 제한 및 감점 적용

[원자성]
- 응시자 턴 저장, AI 턴 저장, 카운터/감점 증가는 하나의 commit으로 반영
- AI 호출이 실패하면 아무것도 저장하지 않음 (횟수 차감 없음)
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import LimitExceeded, ValidationError
from app.domain.exam.prompts import CLARIFICATION_SYSTEM_PROMPT, build_clarification_prompt
from app.domain.exam.state_machine import ensure_active
from app.domain.exam.utils.llm_factory import TextGenerator, get_text_generator
from app.infrastructure.persistence.models.sessions import ClarificationMessage, ExamSession
from app.infrastructure.persistence.models.types import utcnow
from app.infrastructure.repositories.session_repository import SessionRepository
from app.application.services.session_service import Clock, SessionService


logger = logging.getLogger(__name__)


class ClarificationService:
    """질문 서비스"""

    def __init__(
        self,
        db: AsyncSession,
        generator: Optional[TextGenerator] = None,
        clock: Clock = utcnow,
    ):
        self.db = db
        self.clock = clock
        self.repo = SessionRepository(db)
        self.sessions = SessionService(db, clock=clock)
        self._generator = generator

    @property
    def generator(self) -> TextGenerator:
        if self._generator is None:
            self._generator = get_text_generator("clarification")
        return self._generator

    def _ensure_within_limit(self, session: ExamSession):
        if session.questions_asked >= settings.CLARIFICATION_LIMIT:
            raise LimitExceeded(
                f"문항당 질문은 최대 {settings.CLARIFICATION_LIMIT}회까지 가능합니다.",
                {
                    "session_id": session.id,
                    "questions_asked": session.questions_asked,
                    "limit": settings.CLARIFICATION_LIMIT,
                },
            )

    async def ask(
        self,
        session_id: int,
        question: str,
    ) -> Tuple[ClarificationMessage, ClarificationMessage, ExamSession]:
        """
        질문 처리

        Returns:
            (응시자 턴, AI 턴, 갱신된 세션)

        Raises:
            ValidationError: 빈 질문
            SessionNotFound / SessionLocked
            LimitExceeded: 문항당 질문 횟수 초과
            UpstreamServiceFailure: 모든 AI provider 실패
        """
        text = (question or "").strip()
        if not text:
            raise ValidationError("질문 내용이 비어 있습니다.", {"field": "question"})

        session = await self.sessions.get_session(session_id)
        ensure_active(session, "clarify")
        self._ensure_within_limit(session)

        index = session.current_index
        task_context = session.question_list[index] if index < len(session.question_list) else session.seed_question

        logger.info(f"[Clarification] 질문 요청 - session_id: {session_id}, index: {index}")
        answer = await self.generator.generate(
            build_clarification_prompt(text, task_context),
            CLARIFICATION_SYSTEM_PROMPT,
        )

        # AI 호출 동안 상태가 바뀌었을 수 있으므로 다시 확인
        session = await self.sessions.get_session(session_id)
        ensure_active(session, "clarify")
        self._ensure_within_limit(session)
        if session.current_index != index:
            logger.info(f"[Clarification] 답변 중 문항 변경 - 이전 문항 기준으로 기록, session_id: {session_id}")

        user_turn = await self.repo.add_message(session_id, index, text, is_user=True)
        ai_turn = await self.repo.add_message(session_id, index, answer, is_user=False)

        if session.current_index == index:
            session.questions_asked = session.questions_asked + 1
            session.question_penalty = session.question_penalty + settings.CLARIFICATION_PENALTY
        session.last_activity_at = self.clock()

        await self.db.commit()

        logger.info(
            f"[Clarification] 답변 완료 - session_id: {session_id}, "
            f"questions_asked: {session.questions_asked}, penalty: {session.question_penalty}"
        )
        return user_turn, ai_turn, session

    async def history(self, session_id: int, question_index: Optional[int] = None) -> List[ClarificationMessage]:
        """세션의 질문 대화 기록 (저장 순서대로)"""
        await self.sessions.get_session(session_id)
        return await self.repo.get_session_messages(session_id, question_index)
