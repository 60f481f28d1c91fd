"""
점수 계산 규칙

- 잠정 점수 = 기본 점수(25) - 문항 감점 + 보너스
- 최종 점수 = AI 채점 결과 합계 (채점 완료 후 잠정 점수를 대체)
- bonus는 예약 필드로 현재 항상 0
"""
import math
from typing import Any, Iterable, Optional


def provisional_score(base_score: int, penalty: int, bonus: int = 0) -> int:
    """문항 잠정 점수"""
    return base_score - penalty + bonus


def clamp_score(value: Any, max_score: int) -> int:
    """
    채점 점수를 [0, max_score] 범위로 보정

    숫자로 해석할 수 없는 값과 NaN은 0, 무한대는 범위 끝으로 처리합니다.
    """
    try:
        number = float(value)
    except OverflowError:
        # float 범위를 넘는 정수
        number = math.inf if value > 0 else -math.inf
    except (TypeError, ValueError):
        return 0
    if math.isnan(number):
        return 0
    return int(round(max(0.0, min(float(max_score), number))))


def total_score(scores: Iterable[int]) -> int:
    return sum(scores)


def is_blank(answer: Optional[str]) -> bool:
    return not answer or not answer.strip()
