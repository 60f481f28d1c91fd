"""
Redis 클라이언트 관리
감독(proctoring) 상태 저장에 사용
"""
import json
from typing import Optional

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool

from app.core.config import settings


class RedisClient:
    """Redis 비동기 클라이언트 래퍼"""

    def __init__(self):
        self._pool: Optional[ConnectionPool] = None
        self._client: Optional[redis.Redis] = None

    async def connect(self):
        """Redis 연결 초기화"""
        self._pool = ConnectionPool.from_url(
            settings.REDIS_URL,
            max_connections=20,
            decode_responses=True,
        )
        self._client = redis.Redis(connection_pool=self._pool)
        # 연결 테스트
        await self._client.ping()

    def use_client(self, client: redis.Redis):
        """이미 생성된 클라이언트 사용 (테스트에서 fakeredis 주입)"""
        self._pool = None
        self._client = client

    async def close(self):
        """Redis 연결 종료"""
        if self._client:
            await self._client.aclose()
        if self._pool:
            await self._pool.aclose()
        self._client = None
        self._pool = None

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            raise RuntimeError("Redis client not initialized. Call connect() first.")
        return self._client

    # ===== 기본 Key-Value 연산 =====

    async def get(self, key: str) -> Optional[str]:
        """키 값 조회"""
        return await self.client.get(key)

    async def set(
        self,
        key: str,
        value: str,
        ttl_seconds: Optional[int] = None
    ) -> bool:
        """키 값 설정"""
        if ttl_seconds:
            return await self.client.setex(key, ttl_seconds, value)
        return await self.client.set(key, value)

    # ===== JSON 데이터 연산 =====

    async def get_json(self, key: str) -> Optional[dict]:
        """JSON 데이터 조회"""
        data = await self.get(key)
        if data:
            return json.loads(data)
        return None

    async def set_json(
        self,
        key: str,
        value: dict,
        ttl_seconds: Optional[int] = None
    ) -> bool:
        """JSON 데이터 저장"""
        return await self.set(key, json.dumps(value, ensure_ascii=False), ttl_seconds)

    # ===== 감독 상태 관리 =====

    def _proctor_key(self, session_id: int) -> str:
        """감독 상태 키 생성"""
        return f"proctor:state:{session_id}"

    async def save_proctor_state(
        self,
        session_id: int,
        state: dict,
        ttl_seconds: Optional[int] = None
    ) -> bool:
        """감독 상태 저장 (저장할 때마다 TTL 갱신)"""
        ttl = ttl_seconds or settings.PROCTOR_STATE_TTL_SECONDS
        return await self.set_json(self._proctor_key(session_id), state, ttl)

    async def get_proctor_state(self, session_id: int) -> Optional[dict]:
        """감독 상태 조회"""
        return await self.get_json(self._proctor_key(session_id))


# 싱글톤 인스턴스
redis_client = RedisClient()

