"""
음성 인식 API 라우터
"""
import logging

from fastapi import APIRouter, Depends, File, UploadFile

from app.core.exceptions import ValidationError
from app.infrastructure.transcription.whisper_client import TranscriptionService
from app.presentation.api.dependencies import get_transcriber
from app.presentation.schemas.common import ErrorResponse
from app.presentation.schemas.transcription import TranscriptionResponse


router = APIRouter(tags=["Transcription"])
logger = logging.getLogger(__name__)


@router.post(
    "/transcribe",
    response_model=TranscriptionResponse,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    summary="음성 답안 텍스트 변환",
    description="multipart 필드 `audio`로 업로드한 음성을 텍스트로 변환합니다 (Groq → OpenAI 순서).",
)
async def transcribe(
    audio: UploadFile = File(...),
    transcriber: TranscriptionService = Depends(get_transcriber),
) -> TranscriptionResponse:
    content = await audio.read()
    if not content:
        raise ValidationError("음성 파일이 비어 있습니다.", {"field": "audio"})

    text = await transcriber.transcribe(audio.filename or "audio.webm", content, audio.content_type)
    return TranscriptionResponse(text=text)
