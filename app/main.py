"""
FastAPI 메인 애플리케이션
Proctored Exam Worker

[목적]
- 감독형 시간제 시험 세션의 진입점
- 세션 진행, 질문, 채점, 감독 API 제공

[주요 역할]
1. 애플리케이션 초기화 (lifespan 이벤트)
   - Redis 연결 (감독 상태)
   - PostgreSQL 연결 및 테이블 생성 (세션 레코드, 질문 기록, 사용자)

2. API 라우터 등록
   - /api/test-sessions: 세션 생성, 자동 저장, 타이밍, 제출, 채점
   - /api/chat: 문항 질문
   - /api/proctoring: 감독 상태 및 위반 기록
   - /api/transcribe: 음성 답안 변환
   - /health: 헬스 체크

3. 도메인 예외 → ErrorResponse 변환, CORS 설정

[실행 방법]
1. 직접 실행: python app/main.py
2. uvicorn: uvicorn app.main:app --reload
3. 스크립트: python scripts/run_dev.py
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.exceptions import ExamError
from app.infrastructure.cache.redis_client import redis_client
from app.infrastructure.persistence.session import init_db, close_db
from app.presentation.api.routes import (
    chat_router,
    health_router,
    proctoring_router,
    session_router,
    transcription_router,
)
from app.presentation.schemas.common import ErrorResponse


# 로깅 설정
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    애플리케이션 라이프사이클 관리

    [Startup 단계]
    1. Redis 연결 초기화 (감독 상태 저장소, 필수)
    2. PostgreSQL 연결 및 테이블 생성 (세션 레코드의 원본, 필수)

    [Shutdown 단계]
    - Redis / DB 연결 정리
    """
    # ===== Startup =====
    logger.info("Starting Proctored Exam Worker...")

    try:
        await redis_client.connect()
        logger.info("Redis 연결 성공")
    except Exception as e:
        logger.error(f"Redis 연결 실패: {str(e)}")
        raise

    try:
        await init_db()
        logger.info("PostgreSQL 연결 성공")
    except Exception as e:
        logger.error(f"PostgreSQL 연결 실패: {str(e)}")
        await redis_client.close()
        raise

    logger.info(f"서버 시작 완료: http://{settings.API_HOST}:{settings.API_PORT}")

    yield

    # ===== Shutdown =====
    logger.info("Shutting down...")

    await redis_client.close()
    await close_db()

    logger.info("서버 종료 완료")


# ===== FastAPI 앱 생성 =====
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="""
## Proctored Exam Worker

감독형 시간제 서술형 시험 세션 서버

### 기능
- ⏱️ 서버 기준 문항별 10분 타이머, 만료 시 자동 제출
- 💾 작성 중 답안 자동 저장
- 💬 문항당 3회 질문 (1회당 1점 감점)
- 🤖 AI 채점 (문항당 0-25점)
- 🛡️ 감독 위반 기록, critical 위반 시 세션 무효화
""",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


# ===== 예외 핸들러 =====
@app.exception_handler(ExamError)
async def exam_error_handler(request: Request, exc: ExamError) -> JSONResponse:
    """도메인 예외를 ErrorResponse로 변환"""
    if exc.status_code >= 500:
        logger.error(f"[API] {exc.error_code} - {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"[API] {exc.error_code} - {request.method} {request.url.path}: {exc.message}")

    body = ErrorResponse(
        error_code=exc.error_code,
        error_message=exc.message,
        details=exc.details,
    )
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


# ===== CORS 설정 =====
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ===== 라우터 등록 =====
app.include_router(health_router)  # /health, /info
app.include_router(session_router, prefix="/api")  # /api/test-sessions/*
app.include_router(chat_router, prefix="/api")  # /api/chat/*
app.include_router(proctoring_router, prefix="/api")  # /api/proctoring/*
app.include_router(transcription_router, prefix="/api")  # /api/transcribe


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info",
    )
