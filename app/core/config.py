"""
환경 설정 모듈
PostgreSQL, Redis, LLM API, 시험 상수 등의 설정을 관리합니다.
"""
from functools import lru_cache
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """애플리케이션 환경 설정"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"  # 알 수 없는 환경 변수는 무시
    )

    # 앱 기본 설정
    APP_NAME: str = "Proctored Exam Worker"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    # FastAPI 설정
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    CORS_ORIGINS: List[str] = ["*"]

    # PostgreSQL 설정
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "proctored_exam"

    # 지정하면 POSTGRES_* 대신 사용 (예: sqlite+aiosqlite:///./exam.db)
    DATABASE_URL: Optional[str] = None

    @property
    def POSTGRES_URL(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # Redis 설정 (감독 상태 저장)
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_PASSWORD: Optional[str] = None
    REDIS_DB: int = 0

    @property
    def REDIS_URL(self) -> str:
        if self.REDIS_PASSWORD:
            return f"redis://:{self.REDIS_PASSWORD}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # LLM API 설정 (키가 없는 provider는 건너뜀)
    OPENAI_API_KEY: Optional[str] = None
    ANTHROPIC_API_KEY: Optional[str] = None
    GEMINI_API_KEY: Optional[str] = None

    # provider 시도 순서 (앞에서부터 첫 성공 사용)
    LLM_PROVIDER_ORDER: List[str] = ["openai", "anthropic", "gemini"]
    OPENAI_MODEL: str = "gpt-4o"
    ANTHROPIC_MODEL: str = "claude-sonnet-4-20250514"
    GEMINI_MODEL: str = "gemini-2.5-flash"
    LLM_MAX_TOKENS: int = 1000
    LLM_TIMEOUT_SECONDS: float = 60.0

    # 음성 인식 설정 (Groq → OpenAI 순서)
    GROQ_API_KEY: Optional[str] = None
    GROQ_BASE_URL: str = "https://api.groq.com/openai/v1"
    GROQ_TRANSCRIPTION_MODEL: str = "whisper-large-v3"
    OPENAI_TRANSCRIPTION_MODEL: str = "whisper-1"

    # 시험 상수 (wire 상수, 클라이언트와 공유)
    QUESTION_COUNT: int = 3
    QUESTION_TIME_LIMIT_MS: int = 600_000  # 문항당 10분
    CLARIFICATION_LIMIT: int = 3  # 문항당 질문 횟수 제한
    CLARIFICATION_PENALTY: int = 1  # 질문 1회당 감점
    BASE_SCORE_PER_QUESTION: int = 25  # 문항당 만점 (0-25)

    # 감독 상태 TTL (Redis)
    PROCTOR_STATE_TTL_SECONDS: int = 86400  # 24시간


@lru_cache()
def get_settings() -> Settings:
    """싱글톤 설정 객체 반환"""
    return Settings()


settings = get_settings()
