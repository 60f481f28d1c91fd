"""
질문(clarification) 관련 스키마
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.infrastructure.persistence.models.sessions import ClarificationMessage
from app.infrastructure.persistence.models.types import as_utc
from app.presentation.schemas.session import SessionResponse


class ClarificationRequest(BaseModel):
    """질문 요청"""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "question": "Does 'region' mean a single country or can it be a wider area?"
            }
        }
    )

    question: str = Field(..., description="응시자 질문")


class ChatTurn(BaseModel):
    """대화 턴"""
    id: int
    sessionId: int
    questionIndex: int
    content: str
    isUser: bool
    createdAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, message: ClarificationMessage) -> "ChatTurn":
        return cls(
            id=message.id,
            sessionId=message.session_id,
            questionIndex=message.question_index,
            content=message.content,
            isUser=message.is_user,
            createdAt=as_utc(message.created_at),
        )


class ClarificationResponse(BaseModel):
    """질문 응답"""
    userTurn: ChatTurn
    aiTurn: ChatTurn
    updatedSession: SessionResponse
