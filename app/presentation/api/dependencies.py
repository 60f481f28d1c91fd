"""
API 공통 의존성

테스트에서는 app.dependency_overrides로 교체합니다.
"""
from app.domain.exam.utils.llm_factory import TextGenerator, get_text_generator
from app.infrastructure.cache.redis_client import redis_client
from app.infrastructure.persistence.models.types import utcnow
from app.infrastructure.repositories.proctor_repository import ProctorRepository
from app.infrastructure.transcription.whisper_client import TranscriptionService, get_transcription_service
from app.application.services.session_service import Clock


def get_clock() -> Clock:
    """현재 시각 함수"""
    return utcnow


def get_follow_up_generator() -> TextGenerator:
    return get_text_generator("follow_up")


def get_clarification_generator() -> TextGenerator:
    return get_text_generator("clarification")


def get_grader() -> TextGenerator:
    return get_text_generator("grading")


def get_proctor_repository() -> ProctorRepository:
    return ProctorRepository(redis_client)


def get_transcriber() -> TranscriptionService:
    return get_transcription_service()
