"""
타이밍 계산

서버 시각만이 만료 판단의 기준입니다.
클라이언트 타이머는 표시용이며 만료 판단에 사용하지 않습니다.

모든 시간 값은 밀리초 단위 정수입니다.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class TimingSnapshot:
    """현재 문항 타이밍 계산 결과"""
    question_start_time: datetime
    current_elapsed: int
    time_remaining: int
    total_elapsed: int
    expired: bool


def elapsed_ms(start: datetime, now: datetime) -> int:
    """start부터 now까지 경과 시간 (음수는 0으로)"""
    return max(0, int((now - start).total_seconds() * 1000))


def compute_timing(
    current_index: int,
    question_start_time: datetime,
    now: datetime,
    time_limit_ms: int,
) -> TimingSnapshot:
    """
    현재 문항 타이밍 계산

    total_elapsed는 이전 문항들이 모두 제한 시간을 다 썼다고 가정한 근사치입니다.
    일찍 제출한 경우 실제보다 크게 계산됩니다.
    """
    current_elapsed = elapsed_ms(question_start_time, now)
    return TimingSnapshot(
        question_start_time=question_start_time,
        current_elapsed=current_elapsed,
        time_remaining=max(0, time_limit_ms - current_elapsed),
        total_elapsed=current_index * time_limit_ms + current_elapsed,
        expired=current_elapsed > time_limit_ms,
    )


def start_time_at(start_times: list, index: int) -> Optional[str]:
    """문항 인덱스의 시작 시각 (ISO 문자열) 조회, 없으면 None"""
    if 0 <= index < len(start_times):
        return start_times[index]
    return None


def with_start_time(start_times: list, index: int, started_at: datetime) -> list:
    """
    문항 시작 시각 기록 (새 리스트 반환)

    이미 기록된 인덱스는 덮어쓰지 않습니다.
    """
    updated = list(start_times)
    while len(updated) <= index:
        updated.append(None)
    if updated[index] is None:
        updated[index] = started_at.isoformat()
    return updated
