"""
채점 LangGraph 정의

[그래프 구조]
START → (문항 있음) grade_question ⟲ (남은 문항) → aggregate_scores → END
      → (문항 없음) aggregate_scores → END

문항은 순차적으로 채점합니다 (채점 서비스 rate limit 고려).
"""
from langgraph.graph import StateGraph, START, END

from app.domain.exam.grading.nodes import aggregate_scores, make_grade_question_node, route_next
from app.domain.exam.grading.states import GradingState
from app.domain.exam.utils.llm_factory import TextGenerator


def create_grading_graph(grader: TextGenerator, max_score: int):
    """
    채점 그래프 생성 및 컴파일

    Args:
        grader: 채점에 사용할 텍스트 생성기
        max_score: 문항당 만점

    Returns:
        컴파일된 그래프 (ainvoke 가능)
    """
    builder = StateGraph(GradingState)

    builder.add_node("grade_question", make_grade_question_node(grader, max_score))
    builder.add_node("aggregate_scores", aggregate_scores)

    routes = {
        "grade_question": "grade_question",
        "aggregate_scores": "aggregate_scores",
    }
    builder.add_conditional_edges(START, route_next, routes)
    builder.add_conditional_edges("grade_question", route_next, routes)
    builder.add_edge("aggregate_scores", END)

    return builder.compile()
