"""
API 라우터 모듈
"""
from app.presentation.api.routes.chat import router as chat_router
from app.presentation.api.routes.health import router as health_router
from app.presentation.api.routes.proctoring import router as proctoring_router
from app.presentation.api.routes.session import router as session_router
from app.presentation.api.routes.transcription import router as transcription_router

__all__ = [
    "chat_router",
    "health_router",
    "proctoring_router",
    "session_router",
    "transcription_router",
]
