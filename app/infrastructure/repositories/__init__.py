"""
리포지토리 모듈
"""
from app.infrastructure.repositories.proctor_repository import ProctorRepository
from app.infrastructure.repositories.session_repository import SessionRepository
from app.infrastructure.repositories.user_repository import UserRepository

__all__ = [
    "ProctorRepository",
    "SessionRepository",
    "UserRepository",
]
