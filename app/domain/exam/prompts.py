"""
AI 서비스용 시스템 프롬프트 및 사용자 프롬프트 빌더
"""

CLARIFICATION_SYSTEM_PROMPT = (
    "You are an academic assistant helping students with test questions. "
    "Provide clear, helpful responses to clarifying questions about academic tasks. "
    "Keep responses concise but informative. Do not write the answer for the student. "
    "Use markdown formatting for better readability."
)

FOLLOW_UP_SYSTEM_PROMPT = (
    "You are an academic test generator. Based on the original question, generate 2 follow-up "
    "questions that build upon the same theme but explore different aspects. Each follow-up should "
    "be answerable in 10 minutes and 250 words. Return only the questions, one per line."
)

GRADING_SYSTEM_PROMPT = (
    "You are an expert academic grader. Grade the student's answer to the given question on a "
    "scale of 0-25 points. Consider accuracy, depth of analysis, use of evidence, and clarity of "
    "argument. Respond with JSON only, using exactly this shape:\n"
    '{"score": <integer 0-25>, "summary": "<one paragraph>", '
    '"strengths": ["<point>", ...], "improvements": ["<point>", ...]}'
)

# 후속 문항 생성 실패 시 사용하는 고정 문항
FALLBACK_FOLLOW_UP_QUESTIONS = [
    "Based on your previous analysis, what alternative outcomes might have occurred if different conditions were present?",
    "How might the concepts you discussed apply to a different time period or geographical region?",
]


def build_clarification_prompt(question: str, task_context: str) -> str:
    return f"Task context: {task_context}\n\nStudent question: {question}"


def build_follow_up_prompt(seed_question: str) -> str:
    return (
        f"Original question: {seed_question}\n\n"
        "Generate 2 follow-up questions that explore related but different aspects of this topic."
    )


def build_grading_prompt(question: str, answer: str, max_score: int) -> str:
    return (
        f"Question: {question}\n\n"
        f"Student Answer: {answer}\n\n"
        f"Provide a score from 0-{max_score} points."
    )
