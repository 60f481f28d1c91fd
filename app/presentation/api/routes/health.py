"""
헬스 체크 API 라우터
"""
import logging

from fastapi import APIRouter
from sqlalchemy import text

from app.presentation.schemas.common import HealthResponse
from app.core.config import settings
from app.infrastructure.cache.redis_client import redis_client
from app.infrastructure.persistence.session import get_db_context


router = APIRouter(tags=["Health"])
logger = logging.getLogger(__name__)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="헬스 체크",
    description="서버 및 의존 서비스 상태를 확인합니다."
)
async def health_check() -> HealthResponse:
    """헬스 체크"""
    components = {}

    # Redis 상태 확인
    try:
        await redis_client.client.ping()
        components["redis"] = True
    except Exception:
        components["redis"] = False

    # PostgreSQL 상태 확인
    try:
        async with get_db_context() as db:
            await db.execute(text("SELECT 1"))
        components["postgres"] = True
    except Exception as e:
        logger.warning(f"[Health] DB 확인 실패: {str(e)}")
        components["postgres"] = False

    # LLM / 음성 인식 (API 키 존재 여부로 판단)
    components["llm"] = bool(settings.OPENAI_API_KEY or settings.ANTHROPIC_API_KEY or settings.GEMINI_API_KEY)
    components["transcription"] = bool(settings.GROQ_API_KEY or settings.OPENAI_API_KEY)

    # 세션 진행에 필수인 컴포넌트만 전체 상태에 반영
    overall_status = "ok" if components["redis"] and components["postgres"] else "degraded"

    return HealthResponse(
        status=overall_status,
        version=settings.APP_VERSION,
        components=components,
    )


@router.get(
    "/info",
    summary="API 정보",
    description="API 정보를 반환합니다."
)
async def api_info():
    """API 정보 엔드포인트"""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health",
    }
