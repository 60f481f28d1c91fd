"""
구조화된 출력 파싱 유틸리티

LLM 텍스트 응답을 JSON으로 파싱하여 Pydantic 모델로 변환
"""
import json
import re
import logging
from typing import List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar('T', bound=BaseModel)

# 줄 앞의 번호/불릿 ("1.", "2)", "-", "*", "Q1:")
_LIST_PREFIX_RE = re.compile(r'^\s*(?:[-*•]|\d+[.)]|Q\d+[:.)])\s*', re.IGNORECASE)


def extract_json_from_content(content: str) -> Optional[dict]:
    """
    LLM 응답에서 JSON 추출

    LLM이 마크다운 코드 블록(```json ... ```)으로 감싸서 응답할 수 있으므로
    다양한 형식에서 JSON을 추출합니다.

    Args:
        content: LLM 응답 내용

    Returns:
        파싱된 JSON 딕셔너리 또는 None
    """
    if not content:
        return None

    # 방법 1: 마크다운 코드 블록에서 JSON 추출
    json_block_match = re.search(r'```(?:json)?\s*(\{.*?\})\s*```', content, re.DOTALL)
    if json_block_match:
        try:
            return json.loads(json_block_match.group(1))
        except json.JSONDecodeError:
            pass

    # 방법 2: 첫 번째 { 부터 마지막 } 까지
    json_match = re.search(r'\{.*\}', content, re.DOTALL)
    if json_match:
        try:
            return json.loads(json_match.group(0))
        except json.JSONDecodeError:
            pass

    # 방법 3: 전체 내용이 JSON인 경우
    try:
        parsed = json.loads(content.strip())
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def parse_structured_output(content: str, model_class: Type[T]) -> T:
    """
    LLM 텍스트 응답을 Pydantic 모델로 파싱

    Raises:
        ValueError: JSON 추출 또는 검증 실패
    """
    parsed_json = extract_json_from_content(content)
    if parsed_json is None:
        logger.warning(f"[Structured Output Parser] JSON 추출 실패 - content: {content[:200]}...")
        raise ValueError("JSON 추출 실패")

    try:
        return model_class.model_validate(parsed_json)
    except ValidationError as e:
        logger.warning(f"[Structured Output Parser] Pydantic 검증 실패: {e}")
        raise ValueError(f"구조화된 출력 파싱 실패: {e}") from e


def parse_line_list(content: str, limit: Optional[int] = None) -> List[str]:
    """
    줄 단위 목록 응답 파싱

    빈 줄은 버리고, 줄 앞의 번호/불릿은 제거합니다.
    """
    items = []
    for line in (content or "").splitlines():
        cleaned = _LIST_PREFIX_RE.sub("", line).strip()
        if cleaned:
            items.append(cleaned)
    return items[:limit] if limit is not None else items
