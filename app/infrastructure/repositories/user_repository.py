"""
사용자 Repository
"""
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.persistence.models.users import User


class UserRepository:
    """사용자 데이터 접근 계층"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        """사용자 ID로 조회"""
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def create_user(self, display_name: str, email: Optional[str] = None) -> User:
        """사용자 생성 (계정 관리는 외부 시스템, 테스트/시드용)"""
        user = User(display_name=display_name, email=email, total_score=0)
        self.db.add(user)
        await self.db.flush()
        return user

    async def set_total_score(self, user_id: int, score: int) -> Optional[User]:
        """
        사용자 집계 점수 갱신

        누적이 아니라 덮어쓰기입니다 (마지막으로 채점된 세션 기준).
        사용자가 없으면 None 반환.
        """
        user = await self.get_user_by_id(user_id)
        if user is None:
            return None
        user.total_score = score
        await self.db.flush()
        return user
