"""
음성 인식(Whisper) 클라이언트

[Provider 순서]
1. Groq (whisper-large-v3, OpenAI 호환 API)
2. OpenAI (whisper-1)

API 키가 없는 provider는 건너뛰고, 모든 provider가 실패하면 UpstreamServiceFailure.
"""
import logging
from functools import lru_cache
from typing import List, Optional

from openai import AsyncOpenAI

from app.core.config import settings
from app.core.exceptions import UpstreamServiceFailure


logger = logging.getLogger(__name__)


class WhisperProvider:
    """OpenAI 호환 음성 인식 provider"""

    def __init__(self, name: str, client: AsyncOpenAI, model: str):
        self.name = name
        self.client = client
        self.model = model

    async def transcribe(self, filename: str, content: bytes, content_type: Optional[str] = None) -> str:
        result = await self.client.audio.transcriptions.create(
            file=(filename, content, content_type or "application/octet-stream"),
            model=self.model,
            response_format="text",
        )
        text = result if isinstance(result, str) else getattr(result, "text", "")
        return text.strip()


class TranscriptionService:
    """provider fallback을 적용한 음성 인식"""

    def __init__(self, providers: List[WhisperProvider]):
        self.providers = providers

    async def transcribe(self, filename: str, content: bytes, content_type: Optional[str] = None) -> str:
        if not self.providers:
            raise UpstreamServiceFailure("사용 가능한 음성 인식 provider가 없습니다.")

        errors: List[str] = []
        for provider in self.providers:
            try:
                text = await provider.transcribe(filename, content, content_type)
                logger.info(f"[Transcription] 변환 완료 - provider: {provider.name}, length: {len(text)}")
                return text
            except Exception as e:
                logger.warning(f"[Transcription] {provider.name} 실패 - 다음 provider 시도, error: {str(e)}")
                errors.append(f"{provider.name}: {str(e)}")

        raise UpstreamServiceFailure("모든 음성 인식 provider가 실패했습니다.", errors)


@lru_cache()
def get_transcription_service() -> TranscriptionService:
    """설정 기반 음성 인식 서비스 (싱글톤)"""
    providers: List[WhisperProvider] = []
    if settings.GROQ_API_KEY:
        providers.append(
            WhisperProvider(
                "groq",
                AsyncOpenAI(api_key=settings.GROQ_API_KEY, base_url=settings.GROQ_BASE_URL),
                settings.GROQ_TRANSCRIPTION_MODEL,
            )
        )
    if settings.OPENAI_API_KEY:
        providers.append(
            WhisperProvider(
                "openai",
                AsyncOpenAI(api_key=settings.OPENAI_API_KEY),
                settings.OPENAI_TRANSCRIPTION_MODEL,
            )
        )
    return TranscriptionService(providers)
