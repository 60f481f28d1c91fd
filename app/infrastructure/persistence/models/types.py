"""
모델 공용 타입/헬퍼
"""
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """timezone-aware UTC 현재 시각"""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    naive datetime을 UTC로 간주하여 aware로 변환

    SQLite 등 timezone을 보존하지 않는 DB에서 읽은 값을 정규화합니다.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """ISO 8601 문자열 → aware datetime"""
    if not value:
        return None
    return as_utc(datetime.fromisoformat(value))
