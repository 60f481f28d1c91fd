"""
공용 테스트 fixture

- DB: 테스트마다 임시 파일 SQLite (aiosqlite)
- Redis: fakeredis
- AI: generate 계약을 구현한 stub generator
- 시각: 수동으로 진행시키는 FakeClock
"""
import os

# app 모듈 import 전에 설정 (외부 서비스 접속 방지)
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
for _key in ("OPENAI_API_KEY", "ANTHROPIC_API_KEY", "GEMINI_API_KEY", "GROQ_API_KEY"):
    os.environ[_key] = ""

import fakeredis
import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.infrastructure.cache.redis_client import redis_client
from app.infrastructure.persistence import models  # noqa: F401
from app.infrastructure.persistence import session as db_session_module
from app.infrastructure.persistence.session import Base
from app.infrastructure.repositories.proctor_repository import ProctorRepository
from app.infrastructure.repositories.user_repository import UserRepository
from tests.helpers import GOOD_GRADE, FakeClock, StubGenerator, StubTranscriber


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine, monkeypatch):
    """get_db / get_db_context가 테스트 DB를 사용하도록 교체"""
    factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    monkeypatch.setattr(db_session_module, "AsyncSessionLocal", factory)
    return factory


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def fake_redis():
    client = fakeredis.FakeAsyncRedis(decode_responses=True)
    redis_client.use_client(client)
    yield client
    await client.flushall()
    await redis_client.close()


@pytest.fixture
def proctor_repo(fake_redis) -> ProctorRepository:
    return ProctorRepository(redis_client)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def follow_up_generator() -> StubGenerator:
    return StubGenerator("1. Follow-up question A?\n2. Follow-up question B?", name="follow_up")


@pytest.fixture
def clarification_generator() -> StubGenerator:
    return StubGenerator("A region can be a wider cultural area.", name="clarification")


@pytest.fixture
def grader() -> StubGenerator:
    return StubGenerator(GOOD_GRADE, name="grader")


@pytest.fixture
def transcriber() -> StubTranscriber:
    return StubTranscriber()


@pytest.fixture
async def user(db):
    user = await UserRepository(db).create_user("Test Student", "student@example.com")
    await db.commit()
    return user


@pytest.fixture
async def client(session_factory, fake_redis, clock, follow_up_generator, clarification_generator, grader, transcriber):
    """
    ASGITransport 기반 테스트 클라이언트

    lifespan은 실행하지 않으며, 외부 의존성은 dependency_overrides로 교체합니다.
    """
    from app.main import app
    from app.presentation.api import dependencies

    app.dependency_overrides[dependencies.get_clock] = lambda: clock
    app.dependency_overrides[dependencies.get_follow_up_generator] = lambda: follow_up_generator
    app.dependency_overrides[dependencies.get_clarification_generator] = lambda: clarification_generator
    app.dependency_overrides[dependencies.get_grader] = lambda: grader
    app.dependency_overrides[dependencies.get_transcriber] = lambda: transcriber

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
