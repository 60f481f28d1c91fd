"""
질문(clarification) API 라우터
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.services.clarification_service import ClarificationService
from app.application.services.session_service import Clock
from app.domain.exam.utils.llm_factory import TextGenerator
from app.infrastructure.persistence.session import get_db
from app.presentation.api.dependencies import get_clarification_generator, get_clock
from app.presentation.schemas.chat import ChatTurn, ClarificationRequest, ClarificationResponse
from app.presentation.schemas.common import ErrorResponse
from app.presentation.schemas.session import SessionResponse


router = APIRouter(prefix="/chat", tags=["Clarification"])
logger = logging.getLogger(__name__)


def get_clarification_service(
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    generator: TextGenerator = Depends(get_clarification_generator),
) -> ClarificationService:
    return ClarificationService(db, generator=generator, clock=clock)


@router.post(
    "/{session_id}",
    response_model=ClarificationResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    summary="문항에 대한 질문",
    description="""
    현재 문항에 대해 AI에게 질문합니다.

    **제한:**
    - 문항당 최대 3회, 질문 1회당 1점 감점
    - 4번째 질문은 AI 호출 없이 429 반환
    - AI 호출 실패 시 횟수와 감점은 반영되지 않음
    """
)
async def ask_clarification(
    session_id: int,
    request: ClarificationRequest,
    service: ClarificationService = Depends(get_clarification_service),
) -> ClarificationResponse:
    user_turn, ai_turn, session = await service.ask(session_id, request.question)
    return ClarificationResponse(
        userTurn=ChatTurn.from_model(user_turn),
        aiTurn=ChatTurn.from_model(ai_turn),
        updatedSession=SessionResponse.from_model(session),
    )


@router.get(
    "/{session_id}",
    response_model=List[ChatTurn],
    responses={404: {"model": ErrorResponse}},
    summary="질문 대화 기록",
)
async def get_clarification_history(
    session_id: int,
    questionIndex: Optional[int] = None,
    service: ClarificationService = Depends(get_clarification_service),
) -> List[ChatTurn]:
    messages = await service.history(session_id, questionIndex)
    return [ChatTurn.from_model(m) for m in messages]
