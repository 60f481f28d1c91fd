"""
채점 그래프 상태 정의
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field
from typing_extensions import TypedDict


class GradingState(TypedDict):
    """채점 그래프 상태"""
    session_id: int
    questions: List[str]
    answers: List[str]

    # 다음에 채점할 문항 인덱스
    cursor: int

    # 문항별 채점 결과 (문항 순서대로 누적)
    question_grades: List[Dict[str, Any]]
    failed_count: int

    total_score: Optional[int]


class QuestionGradeOutput(BaseModel):
    """채점 LLM 출력 스키마 (범위 보정 전)"""
    score: float = Field(..., description="0-25 정수 점수")
    summary: str = Field("", description="총평")
    strengths: List[str] = Field(default_factory=list, description="잘한 점")
    improvements: List[str] = Field(default_factory=list, description="개선할 점")


def get_initial_state(session_id: int, questions: List[str], answers: List[str]) -> GradingState:
    """초기 채점 상태 생성"""
    return {
        "session_id": session_id,
        "questions": list(questions),
        "answers": list(answers),
        "cursor": 0,
        "question_grades": [],
        "failed_count": 0,
        "total_score": None,
    }
