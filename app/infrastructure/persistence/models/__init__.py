"""
ORM 모델 모듈 (Base.metadata 등록용)
"""
from app.infrastructure.persistence.models.users import User
from app.infrastructure.persistence.models.sessions import ExamSession, ClarificationMessage

__all__ = [
    "User",
    "ExamSession",
    "ClarificationMessage",
]
