"""
감독(proctoring) API 라우터
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.services.proctoring_service import ProctoringService
from app.application.services.session_service import Clock
from app.infrastructure.persistence.session import get_db
from app.infrastructure.repositories.proctor_repository import ProctorRepository
from app.presentation.api.dependencies import get_clock, get_proctor_repository
from app.presentation.schemas.common import ErrorResponse
from app.presentation.schemas.proctoring import (
    InitializeProctoringRequest,
    ProctorStatusResponse,
    ProctorStatusUpdateRequest,
    ViolationRequest,
    ViolationResponse,
)


router = APIRouter(prefix="/proctoring", tags=["Proctoring"])
logger = logging.getLogger(__name__)


def get_proctoring_service(
    db: AsyncSession = Depends(get_db),
    proctor_repo: ProctorRepository = Depends(get_proctor_repository),
    clock: Clock = Depends(get_clock),
) -> ProctoringService:
    return ProctoringService(db, proctor_repo, clock=clock)


@router.post(
    "/initialize",
    response_model=ProctorStatusResponse,
    responses={404: {"model": ErrorResponse}},
    summary="감독 초기화",
)
async def initialize_proctoring(
    request: InitializeProctoringRequest,
    service: ProctoringService = Depends(get_proctoring_service),
) -> ProctorStatusResponse:
    state = await service.initialize(request.sessionId, request.userId)
    return ProctorStatusResponse.from_state(state)


@router.post(
    "/status",
    response_model=ProctorStatusResponse,
    responses={404: {"model": ErrorResponse}},
    summary="카메라 / 전체화면 상태 갱신",
)
async def update_proctor_status(
    request: ProctorStatusUpdateRequest,
    service: ProctoringService = Depends(get_proctoring_service),
) -> ProctorStatusResponse:
    state = await service.update_status(
        request.sessionId,
        camera_enabled=request.cameraEnabled,
        fullscreen_active=request.fullscreenActive,
    )
    return ProctorStatusResponse.from_state(state)


@router.get(
    "/{session_id}",
    response_model=ProctorStatusResponse,
    responses={404: {"model": ErrorResponse}},
    summary="감독 상태 조회",
)
async def get_proctor_status(
    session_id: int,
    service: ProctoringService = Depends(get_proctoring_service),
) -> ProctorStatusResponse:
    state = await service.get_status(session_id)
    return ProctorStatusResponse.from_state(state)


@router.post(
    "/violations",
    response_model=ViolationResponse,
    responses={404: {"model": ErrorResponse}},
    summary="감독 위반 기록",
    description="""
    감독 위반을 기록합니다.

    - warning: 기록만 합니다.
    - critical: 진행 중인 세션을 즉시 무효화합니다 (0점, 이후 모든 변경 거부).
    """
)
async def record_violation(
    request: ViolationRequest,
    service: ProctoringService = Depends(get_proctoring_service),
) -> ViolationResponse:
    nullified, counts = await service.record_violation(
        request.sessionId,
        request.violation.type,
        request.violation.severity,
        request.violation.description,
    )
    return ViolationResponse(success=True, nullified=nullified, violationCounts=counts)
