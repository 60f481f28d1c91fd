"""
시험 세션 및 질문(clarification) 메시지 테이블 모델
exam_sessions, clarification_messages
"""
from datetime import datetime
from typing import Optional, List

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.infrastructure.persistence.session import Base
from app.infrastructure.persistence.models.enums import GradingStatusEnum
from app.infrastructure.persistence.models.types import utcnow


# SQLite에서는 INTEGER PRIMARY KEY만 autoincrement 동작
_PK_TYPE = BigInteger().with_variant(Integer, "sqlite")


class ExamSession(Base):
    """
    시험 세션 테이블

    세션 상태의 유일한 원본(source of truth)입니다.
    타이밍, 진행, 채점, 감독 모두 이 레코드를 읽고 수정합니다.

    [JSON 컬럼 주의]
    - question_list, answer_list, question_start_times, grade_details는
      변경 추적이 되지 않으므로 항상 새 리스트를 대입해야 함
    """
    __tablename__ = "exam_sessions"

    id: Mapped[int] = mapped_column(_PK_TYPE, primary_key=True, autoincrement=True)
    owner_id: Mapped[Optional[int]] = mapped_column(
        _PK_TYPE,
        ForeignKey("users.id"),
        nullable=True
    )

    # 문항/답안
    seed_question: Mapped[str] = mapped_column(Text, nullable=False)
    question_list: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    answer_list: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    current_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    draft: Mapped[str] = mapped_column(Text, nullable=False, default="")
    current_answer: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # 문항별 질문 사용량 (다음 문항으로 넘어가면 0으로 리셋)
    questions_asked: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    question_penalty: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # 점수
    base_score: Mapped[int] = mapped_column(Integer, nullable=False, default=25)
    bonus: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    final_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # 종료 상태
    sealed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    nullified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # 타이밍 (문항별 시작 시각, ISO 8601 문자열, 미기록은 None)
    time_budget: Mapped[int] = mapped_column(Integer, nullable=False, default=600)
    question_start_times: Mapped[List[Optional[str]]] = mapped_column(JSON, nullable=False, default=list)

    # 채점 결과
    grading_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=GradingStatusEnum.NOT_STARTED.value
    )
    grade_details: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)

    last_activity_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow
    )
    sealed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    graded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    messages: Mapped[List["ClarificationMessage"]] = relationship(
        "ClarificationMessage",
        back_populates="session",
        order_by="ClarificationMessage.id"
    )


class ClarificationMessage(Base):
    """질문(clarification) 메시지 테이블 - 사용자 질문과 AI 답변을 각각 한 행으로 저장"""
    __tablename__ = "clarification_messages"

    id: Mapped[int] = mapped_column(_PK_TYPE, primary_key=True, autoincrement=True)
    session_id: Mapped[int] = mapped_column(
        _PK_TYPE,
        ForeignKey("exam_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    question_index: Mapped[int] = mapped_column(Integer, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_user: Mapped[bool] = mapped_column(Boolean, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow
    )

    # Relationships
    session: Mapped["ExamSession"] = relationship(
        "ExamSession",
        back_populates="messages"
    )
