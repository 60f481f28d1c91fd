"""
채점 서비스

[목적]
- 봉인된 세션의 답안을 AI로 채점하고 최종 점수 확정

[처리 흐름]
1. 세션 조회 및 상태 확인 (무효화 세션 거부, 봉인 전 세션 거부)
2. 채점 그래프 실행 (문항별 순차 채점, 실패 문항은 0점)
3. 채점 중 무효화되었으면 결과를 버림 (무효화 우선)
4. final_score, grade_details 저장 및 사용자 점수 갱신

[실행 방식]
- 봉인 직후 FastAPI BackgroundTasks로 예약 (grade_session_in_background)
- /grade 엔드포인트로 동기 재채점 가능 (결과 덮어쓰기)
"""
import logging
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import ExamError, SessionConflict, SessionLocked
from app.domain.exam.grading.graph import create_grading_graph
from app.domain.exam.grading.states import get_initial_state
from app.domain.exam.utils.llm_factory import TextGenerator, get_text_generator
from app.infrastructure.persistence.models.enums import GradingStatusEnum
from app.infrastructure.persistence.models.sessions import ExamSession
from app.infrastructure.persistence.models.types import utcnow
from app.infrastructure.persistence.session import get_db_context
from app.infrastructure.repositories.user_repository import UserRepository
from app.application.services.session_service import Clock, SessionService


logger = logging.getLogger(__name__)


class GradingService:
    """채점 서비스"""

    def __init__(
        self,
        db: AsyncSession,
        grader: Optional[TextGenerator] = None,
        clock: Clock = utcnow,
    ):
        self.db = db
        self.clock = clock
        self.sessions = SessionService(db, clock=clock)
        self.users = UserRepository(db)
        self._grader = grader

    @property
    def grader(self) -> TextGenerator:
        if self._grader is None:
            self._grader = get_text_generator("grading")
        return self._grader

    def _ensure_gradable(self, session: ExamSession):
        if session.nullified:
            raise SessionLocked(
                "무효화된 세션은 채점할 수 없습니다.",
                {"session_id": session.id, "status": "nullified"},
            )
        if not session.sealed:
            raise SessionConflict(
                "제출이 완료되지 않은 세션은 채점할 수 없습니다.",
                {"session_id": session.id, "current_index": session.current_index},
            )

    async def grade_session(self, session_id: int) -> Dict[str, Any]:
        """
        세션 채점

        Returns:
            {grades, totalScore, detailedGrades, questions, answers}

        Raises:
            SessionNotFound
            SessionLocked: 무효화된 세션
            SessionConflict: 봉인 전 세션
        """
        session = await self.sessions.get_session(session_id)
        self._ensure_gradable(session)

        questions = list(session.question_list)
        answers = list(session.answer_list)[: len(questions)]

        # 재채점 중에는 새 결과가 기록될 때까지 이전 완료 상태를 유지
        if session.grading_status != GradingStatusEnum.COMPLETED.value:
            session.grading_status = GradingStatusEnum.PENDING.value
            await self.db.commit()

        logger.info(f"[Grading] 채점 시작 - session_id: {session_id}, questions: {len(questions)}")

        graph = create_grading_graph(self.grader, settings.BASE_SCORE_PER_QUESTION)
        try:
            result = await graph.ainvoke(get_initial_state(session_id, questions, answers))
        except Exception:
            session = await self.sessions.get_session(session_id)
            if not session.nullified and session.grading_status != GradingStatusEnum.COMPLETED.value:
                session.grading_status = GradingStatusEnum.FAILED.value
                await self.db.commit()
            raise

        # 채점 중 무효화되었으면 결과를 반영하지 않음
        session = await self.sessions.get_session(session_id)
        self._ensure_gradable(session)

        grades = result["question_grades"]
        total = result["total_score"]

        session.final_score = total
        session.grade_details = grades
        session.grading_status = GradingStatusEnum.COMPLETED.value
        now = self.clock()
        session.graded_at = now
        session.last_activity_at = now

        if session.owner_id is not None:
            user = await self.users.set_total_score(session.owner_id, total)
            if user is None:
                logger.warning(f"[Grading] 사용자 없음 - 점수 갱신 생략, owner_id: {session.owner_id}")

        await self.db.commit()

        logger.info(
            f"[Grading] 채점 완료 - session_id: {session_id}, total: {total}, "
            f"failed_questions: {result['failed_count']}"
        )

        return {
            "grades": [g["score"] for g in grades],
            "totalScore": total,
            "detailedGrades": grades,
            "questions": questions,
            "answers": answers,
        }


async def grade_session_in_background(session_id: int, grader: Optional[TextGenerator] = None):
    """
    백그라운드 채점 (BackgroundTasks용)

    요청 DB 세션과 별도의 세션을 사용합니다.
    실패는 로그로만 남기며, /grade 엔드포인트로 재시도할 수 있습니다.
    """
    try:
        async with get_db_context() as db:
            await GradingService(db, grader=grader).grade_session(session_id)
    except ExamError as e:
        logger.warning(f"[Grading] 백그라운드 채점 생략 - session_id: {session_id}, reason: {e.message}")
    except Exception as e:
        logger.error(f"[Grading] 백그라운드 채점 실패 - session_id: {session_id}, error: {str(e)}", exc_info=True)
