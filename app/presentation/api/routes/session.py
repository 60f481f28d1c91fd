"""
시험 세션 API 라우터

임의 필드 패치 대신 이름 있는 연산(autosave, check-timing, submit, next-question, grade)만 제공합니다.
"""
import logging

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.services.grading_service import GradingService, grade_session_in_background
from app.application.services.session_service import Clock, SessionService
from app.domain.exam.utils.llm_factory import TextGenerator
from app.infrastructure.persistence.session import get_db
from app.presentation.api.dependencies import get_clock, get_follow_up_generator, get_grader
from app.presentation.schemas.common import ErrorResponse
from app.presentation.schemas.session import (
    AutosaveRequest,
    AutosaveResponse,
    CreateSessionRequest,
    GradeResponse,
    SessionResponse,
    SubmitAnswerRequest,
    TimingResponse,
    UpdateSessionRequest,
)


router = APIRouter(prefix="/test-sessions", tags=["Test Sessions"])
logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


def get_session_service(
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    follow_up_generator: TextGenerator = Depends(get_follow_up_generator),
) -> SessionService:
    return SessionService(db, clock=clock, follow_up_generator=follow_up_generator)


@router.post(
    "",
    response_model=SessionResponse,
    status_code=201,
    responses=ERROR_RESPONSES,
    summary="시험 세션 생성",
    description="""
    시험 세션을 생성합니다.

    - questionList를 생략하면 seed 문항만 가진 상태로 시작하며, 후속 문항은 첫 진행 시 생성됩니다.
    - answerList는 항상 3칸입니다.
    """
)
async def create_session(
    request: CreateSessionRequest,
    service: SessionService = Depends(get_session_service),
) -> SessionResponse:
    session = await service.create_session(
        seed_question=request.taskQuestion,
        question_list=request.questionList,
        answer_list=request.answerList,
        time_budget=request.timeBudget,
        owner_id=request.userId,
    )
    return SessionResponse.from_model(session)


@router.get(
    "/{session_id}",
    response_model=SessionResponse,
    responses=ERROR_RESPONSES,
    summary="시험 세션 조회",
)
async def get_session(
    session_id: int,
    service: SessionService = Depends(get_session_service),
) -> SessionResponse:
    session = await service.get_session(session_id)
    return SessionResponse.from_model(session)


@router.patch(
    "/{session_id}",
    response_model=SessionResponse,
    responses=ERROR_RESPONSES,
    summary="현재 답안 필드 수정",
    description="currentAnswer만 수정할 수 있습니다. 다른 필드가 포함되면 422를 반환합니다.",
)
async def update_session(
    session_id: int,
    request: UpdateSessionRequest,
    service: SessionService = Depends(get_session_service),
) -> SessionResponse:
    session = await service.update_current_answer(session_id, request.currentAnswer)
    return SessionResponse.from_model(session)


@router.post(
    "/{session_id}/autosave",
    response_model=AutosaveResponse,
    responses=ERROR_RESPONSES,
    summary="작성 중 답안 자동 저장",
    description="""
    draft를 덮어씁니다 (마지막 쓰기 우선).

    **클라이언트 규약:**
    - 변경이 있을 때만 최대 8초에 한 번 전송
    - 종료된 세션에서는 success=false (차단 에러 아님)
    """
)
async def autosave(
    session_id: int,
    request: AutosaveRequest,
    service: SessionService = Depends(get_session_service),
) -> AutosaveResponse:
    success, last_saved = await service.save_draft(session_id, request.draft)
    return AutosaveResponse(success=success, lastSaved=last_saved)


@router.post(
    "/{session_id}/check-timing",
    response_model=TimingResponse,
    responses=ERROR_RESPONSES,
    summary="서버 기준 타이밍 확인",
    description="""
    서버 시각 기준으로 현재 문항의 경과 시간을 계산합니다.

    - 제한 시간(10분)이 지났고 draft가 있으면 자동 제출합니다 (1회만).
    - 마지막 문항이 자동 제출되면 세션을 봉인하고 채점을 예약합니다.
    - 클라이언트는 30초마다 호출합니다.
    """
)
async def check_timing(
    session_id: int,
    background_tasks: BackgroundTasks,
    service: SessionService = Depends(get_session_service),
    grader: TextGenerator = Depends(get_grader),
) -> TimingResponse:
    result = await service.check_timing(session_id)
    if result.auto_submitted and result.sealed:
        background_tasks.add_task(grade_session_in_background, session_id, grader)

    snapshot = result.snapshot
    return TimingResponse(
        sessionElapsed=snapshot.total_elapsed,
        questionElapsed=snapshot.current_elapsed,
        expired=snapshot.expired,
        autoSubmitted=result.auto_submitted,
        timeRemaining=snapshot.time_remaining,
        questionStartTime=snapshot.question_start_time,
        currentIndex=result.current_index,
        sealed=result.sealed,
    )


@router.post(
    "/{session_id}/submit",
    response_model=SessionResponse,
    responses=ERROR_RESPONSES,
    summary="답안 제출",
    description="""
    현재 문항의 답안을 제출합니다.

    - 마지막 문항이 아니면 다음 문항으로 진행합니다.
    - 마지막 문항이면 세션을 봉인하고 채점을 백그라운드로 예약합니다.
    """
)
async def submit_answer(
    session_id: int,
    request: SubmitAnswerRequest,
    background_tasks: BackgroundTasks,
    service: SessionService = Depends(get_session_service),
    grader: TextGenerator = Depends(get_grader),
) -> SessionResponse:
    session, sealed = await service.submit_answer(session_id, request.index, request.answer)
    if sealed:
        background_tasks.add_task(grade_session_in_background, session_id, grader)
    return SessionResponse.from_model(session)


@router.post(
    "/{session_id}/next-question",
    response_model=SessionResponse,
    responses=ERROR_RESPONSES,
    summary="다음 문항으로 진행",
)
async def next_question(
    session_id: int,
    service: SessionService = Depends(get_session_service),
) -> SessionResponse:
    session = await service.advance_question(session_id)
    return SessionResponse.from_model(session)


@router.post(
    "/{session_id}/grade",
    response_model=GradeResponse,
    responses={**ERROR_RESPONSES, 502: {"model": ErrorResponse}},
    summary="세션 채점",
    description="봉인된 세션을 채점합니다. 이미 채점된 세션은 다시 채점하여 결과를 덮어씁니다.",
)
async def grade_session(
    session_id: int,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    grader: TextGenerator = Depends(get_grader),
) -> GradeResponse:
    result = await GradingService(db, grader=grader, clock=clock).grade_session(session_id)
    return GradeResponse(**result)
