"""
시험 세션 Repository
PostgreSQL에서 세션 레코드와 질문 메시지를 조회/저장

[목적]
- 세션 레코드(exam_sessions)는 시험 진행 상태의 유일한 원본
- 질문(clarification) 대화는 clarification_messages에 턴별로 보관

[트랜잭션]
- Repository는 flush까지만 수행
- commit은 서비스 계층에서 한 번에 수행 (카운터 증가와 메시지 저장을 원자적으로)
"""
import json
from datetime import datetime
from typing import Optional, List

from sqlalchemy import Text, cast, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.persistence.models.enums import GradingStatusEnum
from app.infrastructure.persistence.models.sessions import ExamSession, ClarificationMessage


class SessionRepository:
    """
    시험 세션 데이터 접근 계층

    [역할]
    - ExamSession 테이블 CRUD
    - ClarificationMessage 테이블 CRUD
    """

    def __init__(self, db: AsyncSession):
        """
        Args:
            db: SQLAlchemy 비동기 세션 (FastAPI Depends에서 주입)
        """
        self.db = db

    async def create_session(self, session: ExamSession) -> ExamSession:
        """
        새 시험 세션 저장

        Args:
            session: 필드가 채워진 ExamSession (id 제외)

        Returns:
            id가 할당된 ExamSession
        """
        self.db.add(session)
        await self.db.flush()  # ID 생성을 위해 flush
        return session

    async def get_session_by_id(self, session_id: int) -> Optional[ExamSession]:
        """
        세션 ID로 조회

        모든 변경 연산은 이 메서드로 최신 상태를 다시 읽은 뒤 수행합니다.
        populate_existing으로 identity map에 남은 오래된 값을 덮어씁니다.
        """
        query = (
            select(ExamSession)
            .where(ExamSession.id == session_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def record_start_time(
        self,
        session_id: int,
        index: int,
        expected_start_times: List[Optional[str]],
        start_times: List[Optional[str]],
        now: datetime,
    ) -> bool:
        """
        문항 시작 시각 기록 (조건부 UPDATE)

        읽은 시점 이후 문항 진행이나 다른 타이밍 확인이 목록을 바꿨으면 반영하지 않습니다.
        기록된 시작 시각은 덮어쓰지 않습니다.

        Returns:
            반영 여부 (False면 호출자가 다시 읽어야 함)
        """
        stmt = (
            update(ExamSession)
            .where(
                ExamSession.id == session_id,
                ExamSession.current_index == index,
                cast(ExamSession.question_start_times, Text) == json.dumps(expected_start_times),
                ExamSession.sealed.is_(False),
                ExamSession.nullified.is_(False),
            )
            .values(question_start_times=start_times, last_activity_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount == 1

    async def commit_draft(
        self,
        session_id: int,
        index: int,
        expected_draft: str,
        answer_list: List[str],
        seal: bool,
        now: datetime,
    ) -> bool:
        """
        draft를 답안으로 확정 (조건부 UPDATE)

        읽은 시점의 draft/문항/상태가 그대로일 때만 반영되므로
        겹치는 타이밍 확인 요청 중 하나만 성공합니다.

        Returns:
            반영 여부 (False면 다른 요청이 이미 확정함)
        """
        values = {
            "answer_list": answer_list,
            "current_answer": expected_draft,
            "draft": "",
            "last_activity_at": now,
        }
        if seal:
            values.update(
                sealed=True,
                sealed_at=now,
                grading_status=GradingStatusEnum.PENDING.value,
            )

        stmt = (
            update(ExamSession)
            .where(
                ExamSession.id == session_id,
                ExamSession.current_index == index,
                ExamSession.draft == expected_draft,
                ExamSession.sealed.is_(False),
                ExamSession.nullified.is_(False),
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount == 1

    async def add_message(
        self,
        session_id: int,
        question_index: int,
        content: str,
        is_user: bool,
    ) -> ClarificationMessage:
        """
        질문 메시지 추가

        Args:
            session_id: 세션 ID
            question_index: 질문이 속한 문항 인덱스
            content: 메시지 내용
            is_user: True면 응시자 질문, False면 AI 답변

        Returns:
            생성된 ClarificationMessage
        """
        message = ClarificationMessage(
            session_id=session_id,
            question_index=question_index,
            content=content,
            is_user=is_user,
        )
        self.db.add(message)
        await self.db.flush()
        return message

    async def get_session_messages(
        self,
        session_id: int,
        question_index: Optional[int] = None,
    ) -> List[ClarificationMessage]:
        """
        세션의 질문 메시지 목록 조회 (저장 순서대로)

        Args:
            session_id: 세션 ID
            question_index: 지정하면 해당 문항의 메시지만 조회
        """
        query = select(ClarificationMessage).where(
            ClarificationMessage.session_id == session_id
        )
        if question_index is not None:
            query = query.where(ClarificationMessage.question_index == question_index)
        query = query.order_by(ClarificationMessage.id.asc())

        result = await self.db.execute(query)
        return list(result.scalars().all())
