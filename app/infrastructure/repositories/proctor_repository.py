"""
감독 상태 Repository
Redis를 이용한 세션별 감독 상태 관리 (TTL 적용)
"""
from typing import Optional

from app.domain.exam.proctoring import ProctorState
from app.infrastructure.cache.redis_client import RedisClient


class ProctorRepository:
    """감독 상태 데이터 접근 계층"""

    def __init__(self, redis: RedisClient):
        self.redis = redis

    async def get_state(self, session_id: int) -> Optional[ProctorState]:
        """감독 상태 조회"""
        data = await self.redis.get_proctor_state(session_id)
        if data is None:
            return None
        return ProctorState.model_validate(data)

    async def save_state(self, state: ProctorState) -> bool:
        """감독 상태 저장"""
        return await self.redis.save_proctor_state(
            state.session_id,
            state.model_dump(mode="json"),
        )

