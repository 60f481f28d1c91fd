"""
음성 인식 관련 스키마
"""
from pydantic import BaseModel, Field


class TranscriptionResponse(BaseModel):
    """음성 인식 결과"""
    text: str = Field(..., description="인식된 텍스트")
