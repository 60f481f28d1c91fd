"""
채점 그래프 노드

- grade_question: cursor 위치의 문항 하나를 채점
- aggregate_scores: 문항 점수 합계로 최종 점수 산출

문항 하나의 채점 실패는 해당 문항을 0점 처리하고 나머지는 계속 진행합니다.
"""
import logging
from typing import Any, Callable, Dict

from app.domain.exam.grading.states import GradingState, QuestionGradeOutput
from app.domain.exam.prompts import GRADING_SYSTEM_PROMPT, build_grading_prompt
from app.domain.exam.scoring import clamp_score, is_blank, total_score
from app.domain.exam.utils.llm_factory import TextGenerator
from app.domain.exam.utils.structured_output_parser import parse_structured_output

logger = logging.getLogger(__name__)

BLANK_ANSWER_FEEDBACK = {
    "summary": "No answer was submitted for this question.",
    "strengths": [],
    "improvements": ["Submit an answer to receive credit for this question."],
}

FAILED_GRADING_FEEDBACK = {
    "summary": "This answer could not be graded automatically.",
    "strengths": [],
    "improvements": [],
}


def _grade_entry(index: int, score: int, feedback: Dict[str, Any], graded: bool) -> Dict[str, Any]:
    return {
        "questionIndex": index,
        "score": score,
        "summary": feedback.get("summary", ""),
        "strengths": list(feedback.get("strengths", [])),
        "improvements": list(feedback.get("improvements", [])),
        "graded": graded,
    }


def make_grade_question_node(grader: TextGenerator, max_score: int) -> Callable:
    """grader를 바인딩한 grade_question 노드 생성"""

    async def grade_question(state: GradingState) -> Dict[str, Any]:
        session_id = state["session_id"]
        index = state["cursor"]
        question = state["questions"][index]
        answer = state["answers"][index] if index < len(state["answers"]) else ""
        failed_count = state["failed_count"]

        if is_blank(answer):
            # 빈 답안은 채점 서비스를 호출하지 않음
            logger.info(f"[Grading] 빈 답안 0점 처리 - session_id: {session_id}, index: {index}")
            entry = _grade_entry(index, 0, BLANK_ANSWER_FEEDBACK, graded=False)
        else:
            try:
                raw = await grader.generate(
                    build_grading_prompt(question, answer, max_score),
                    GRADING_SYSTEM_PROMPT,
                )
                output = parse_structured_output(raw, QuestionGradeOutput)
                score = clamp_score(output.score, max_score)
                entry = _grade_entry(index, score, output.model_dump(), graded=True)
                logger.info(f"[Grading] 문항 채점 완료 - session_id: {session_id}, index: {index}, score: {score}")
            except Exception as e:
                logger.error(
                    f"[Grading] 문항 채점 실패 (0점 처리) - session_id: {session_id}, index: {index}, error: {str(e)}",
                    exc_info=True,
                )
                entry = _grade_entry(index, 0, FAILED_GRADING_FEEDBACK, graded=False)
                failed_count += 1

        return {
            "question_grades": state["question_grades"] + [entry],
            "cursor": index + 1,
            "failed_count": failed_count,
        }

    return grade_question


async def aggregate_scores(state: GradingState) -> Dict[str, Any]:
    """문항 점수 합계"""
    total = total_score(g["score"] for g in state["question_grades"])
    logger.info(
        f"[Grading] 최종 점수 집계 - session_id: {state['session_id']}, "
        f"total: {total}, failed: {state['failed_count']}"
    )
    return {"total_score": total}


def route_next(state: GradingState) -> str:
    """남은 문항이 있으면 계속 채점, 없으면 집계"""
    if state["cursor"] < len(state["questions"]):
        return "grade_question"
    return "aggregate_scores"
