"""
시험 세션 관련 스키마
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.domain.exam.scoring import provisional_score
from app.domain.exam.state_machine import session_status
from app.infrastructure.persistence.models.sessions import ExamSession
from app.infrastructure.persistence.models.types import as_utc


class CreateSessionRequest(BaseModel):
    """세션 생성 요청"""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "taskQuestion": "Assume the printing press never spread beyond Mainz after 1450. "
                                "Pick one European region and outline two major consequences by 1700.",
                "questionList": ["Assume the printing press never spread beyond Mainz after 1450. "
                                 "Pick one European region and outline two major consequences by 1700."],
                "answerList": ["", "", ""],
                "timeBudget": 600,
                "userId": 1
            }
        }
    )

    taskQuestion: str = Field(..., description="첫 문항 (seed question)")
    questionList: Optional[List[str]] = Field(None, description="문항 목록 (생략 시 seed만)")
    answerList: Optional[List[str]] = Field(None, description="답안 슬롯 (생략 시 빈 슬롯 3개)")
    timeBudget: int = Field(600, description="클라이언트 표시용 시간 예산 (초)")
    userId: Optional[int] = Field(None, description="응시자 ID")


class UpdateSessionRequest(BaseModel):
    """세션 부분 수정 요청 (currentAnswer만 허용)"""
    model_config = ConfigDict(extra="forbid")

    currentAnswer: str = Field(..., description="화면에 표시되는 현재 답안")


class AutosaveRequest(BaseModel):
    """자동 저장 요청"""
    draft: str = Field(..., description="작성 중 답안")


class AutosaveResponse(BaseModel):
    """자동 저장 응답"""
    success: bool = Field(..., description="저장 여부 (종료된 세션이면 False)")
    lastSaved: Optional[datetime] = Field(None, description="저장 시각")


class TimingResponse(BaseModel):
    """타이밍 확인 응답 (시간 단위: ms)"""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "sessionElapsed": 612000,
                "questionElapsed": 12000,
                "expired": False,
                "autoSubmitted": False,
                "timeRemaining": 588000,
                "questionStartTime": "2025-01-01T09:10:00+00:00",
                "currentIndex": 1,
                "sealed": False
            }
        }
    )

    sessionElapsed: int = Field(..., description="세션 전체 경과 시간 (이전 문항은 제한 시간 전체로 계산)")
    questionElapsed: int = Field(..., description="현재 문항 경과 시간")
    expired: bool = Field(..., description="현재 문항 시간 만료 여부")
    autoSubmitted: bool = Field(..., description="이번 요청으로 자동 제출되었는지")
    timeRemaining: int = Field(..., description="남은 시간")
    questionStartTime: datetime = Field(..., description="현재 문항 시작 시각")
    currentIndex: int = Field(..., description="현재 문항 인덱스")
    sealed: bool = Field(..., description="봉인 여부")


class SubmitAnswerRequest(BaseModel):
    """답안 제출 요청"""
    index: int = Field(..., ge=0, description="문항 인덱스 (현재 문항이어야 함)")
    answer: str = Field(..., description="답안")


class QuestionGrade(BaseModel):
    """문항별 채점 결과"""
    questionIndex: int
    score: int = Field(..., ge=0, le=25)
    summary: str = ""
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    graded: bool = Field(True, description="False면 빈 답안 또는 채점 실패로 0점 처리")


class GradeResponse(BaseModel):
    """채점 결과"""
    grades: List[int] = Field(..., description="문항별 점수")
    totalScore: int = Field(..., description="최종 점수")
    detailedGrades: List[QuestionGrade] = Field(default_factory=list)
    questions: List[str] = Field(default_factory=list)
    answers: List[str] = Field(default_factory=list)


class SessionResponse(BaseModel):
    """세션 레코드"""
    id: int
    ownerId: Optional[int] = None
    taskQuestion: str
    questionList: List[str]
    answerList: List[str]
    currentIndex: int
    draft: str = ""
    currentAnswer: Optional[str] = None
    questionsAsked: int = 0
    questionPenalty: int = 0
    baseScore: int = 25
    bonus: int = 0
    provisionalScore: int = Field(..., description="현재 문항 잠정 점수 (기본 점수 - 감점 + 보너스)")
    finalScore: Optional[int] = None
    sealed: bool
    nullified: bool
    status: str = Field(..., description="active / sealed / graded / nullified")
    timeBudget: int
    questionStartTimes: List[Optional[str]] = Field(default_factory=list)
    gradingStatus: str
    gradeDetails: Optional[List[Dict[str, Any]]] = None
    lastActivityAt: Optional[datetime] = None
    createdAt: Optional[datetime] = None
    sealedAt: Optional[datetime] = None
    gradedAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, session: ExamSession) -> "SessionResponse":
        return cls(
            id=session.id,
            ownerId=session.owner_id,
            taskQuestion=session.seed_question,
            questionList=list(session.question_list or []),
            answerList=list(session.answer_list or []),
            currentIndex=session.current_index,
            draft=session.draft or "",
            currentAnswer=session.current_answer,
            questionsAsked=session.questions_asked,
            questionPenalty=session.question_penalty,
            baseScore=session.base_score,
            bonus=session.bonus,
            provisionalScore=provisional_score(session.base_score, session.question_penalty, session.bonus),
            finalScore=session.final_score,
            sealed=session.sealed,
            nullified=session.nullified,
            status=session_status(session).value,
            timeBudget=session.time_budget,
            questionStartTimes=list(session.question_start_times or []),
            gradingStatus=session.grading_status,
            gradeDetails=session.grade_details,
            lastActivityAt=as_utc(session.last_activity_at),
            createdAt=as_utc(session.created_at),
            sealedAt=as_utc(session.sealed_at),
            gradedAt=as_utc(session.graded_at),
        )
