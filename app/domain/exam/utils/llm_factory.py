"""
LLM Factory
텍스트 생성 provider 목록 구성 및 순차 fallback

[목적]
- 여러 LLM provider 지원 (OpenAI, Anthropic, Gemini)
- 용도별(질문 답변, 후속 문항 생성, 채점) 다른 설정 사용
- 인스턴스 재사용 (용도별 캐시)
- 첫 번째로 성공한 provider의 응답 사용, 실패는 모아서 진단용으로 보관

[계약]
모든 provider는 동일한 generate(prompt, system_instructions) -> str 를 구현합니다.
"""
import logging
from typing import Any, Dict, List, Literal, Optional, Protocol

from langchain_anthropic import ChatAnthropic
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_openai import ChatOpenAI

from app.core.config import settings
from app.core.exceptions import UpstreamServiceFailure

logger = logging.getLogger(__name__)

# 용도 정의
Purpose = Literal["clarification", "follow_up", "grading"]

# 용도별 기본 설정
PURPOSE_DEFAULT_CONFIGS: Dict[str, Dict[str, Any]] = {
    "clarification": {
        "temperature": 0.7,
        "max_tokens": 400,
    },
    "follow_up": {
        "temperature": 0.8,
        "max_tokens": 300,
    },
    "grading": {
        "temperature": 0.3,
        "max_tokens": settings.LLM_MAX_TOKENS,
    },
}


class TextGenerator(Protocol):
    """텍스트 생성 provider 계약"""
    name: str

    async def generate(self, prompt: str, system_instructions: Optional[str] = None) -> str:
        ...


def _content_to_text(content: Any) -> str:
    """LangChain 응답 content (str 또는 part 리스트) → 문자열"""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(part.get("text", ""))
        return "".join(parts)
    return str(content)


class ChatModelProvider:
    """LangChain chat model을 TextGenerator 계약으로 감싼 provider"""

    def __init__(self, name: str, llm: Any):
        self.name = name
        self.llm = llm

    async def generate(self, prompt: str, system_instructions: Optional[str] = None) -> str:
        messages = []
        if system_instructions:
            messages.append(SystemMessage(content=system_instructions))
        messages.append(HumanMessage(content=prompt))

        response = await self.llm.ainvoke(messages)
        text = _content_to_text(getattr(response, "content", response)).strip()
        if not text:
            raise ValueError(f"{self.name} 빈 응답")
        return text


class FallbackTextGenerator:
    """
    순서가 있는 provider 목록을 차례로 시도

    - 첫 번째 성공 응답을 반환
    - 모든 provider가 실패하면 UpstreamServiceFailure (provider별 에러 포함)
    """

    def __init__(self, providers: List[TextGenerator]):
        self.providers = list(providers)
        self.name = "fallback(" + ",".join(p.name for p in self.providers) + ")"

    async def generate(self, prompt: str, system_instructions: Optional[str] = None) -> str:
        if not self.providers:
            raise UpstreamServiceFailure("설정된 AI provider가 없습니다.", ["no provider configured"])

        errors: List[str] = []
        for provider in self.providers:
            try:
                logger.debug(f"[LLM Factory] 생성 시도 - provider: {provider.name}")
                text = await provider.generate(prompt, system_instructions)
                logger.debug(f"[LLM Factory] 생성 성공 - provider: {provider.name}")
                return text
            except Exception as e:
                logger.warning(f"[LLM Factory] provider 실패 - {provider.name}: {str(e)}")
                errors.append(f"{provider.name}: {str(e)}")

        raise UpstreamServiceFailure("AI 서비스 응답을 받지 못했습니다. 잠시 후 다시 시도해주세요.", errors)


def _create_provider(provider_name: str, temperature: float, max_tokens: int) -> Optional[ChatModelProvider]:
    """provider 이름으로 LLM 생성 (API 키가 없으면 None)"""
    if provider_name == "openai":
        if not settings.OPENAI_API_KEY:
            return None
        llm = ChatOpenAI(
            model=settings.OPENAI_MODEL,
            api_key=settings.OPENAI_API_KEY,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=settings.LLM_TIMEOUT_SECONDS,
        )
    elif provider_name == "anthropic":
        if not settings.ANTHROPIC_API_KEY:
            return None
        llm = ChatAnthropic(
            model=settings.ANTHROPIC_MODEL,
            api_key=settings.ANTHROPIC_API_KEY,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=settings.LLM_TIMEOUT_SECONDS,
        )
    elif provider_name == "gemini":
        if not settings.GEMINI_API_KEY:
            return None
        llm = ChatGoogleGenerativeAI(
            model=settings.GEMINI_MODEL,
            google_api_key=settings.GEMINI_API_KEY,
            temperature=temperature,
            max_output_tokens=max_tokens,
            timeout=settings.LLM_TIMEOUT_SECONDS,
        )
    else:
        raise ValueError(f"지원하지 않는 LLM provider: {provider_name}")

    return ChatModelProvider(provider_name, llm)


# 용도별 generator 캐시
_generator_cache: Dict[str, FallbackTextGenerator] = {}


def get_text_generator(purpose: Purpose) -> FallbackTextGenerator:
    """
    용도별 fallback generator 반환 (캐시)

    LLM_PROVIDER_ORDER 순서대로 구성하며, API 키가 없는 provider는 건너뜁니다.
    """
    if purpose in _generator_cache:
        return _generator_cache[purpose]

    config = PURPOSE_DEFAULT_CONFIGS[purpose]
    providers: List[TextGenerator] = []
    for provider_name in settings.LLM_PROVIDER_ORDER:
        provider = _create_provider(provider_name, config["temperature"], config["max_tokens"])
        if provider is None:
            logger.info(f"[LLM Factory] {provider_name} 건너뜀 - API 키 미설정")
            continue
        providers.append(provider)

    generator = FallbackTextGenerator(providers)
    _generator_cache[purpose] = generator
    logger.debug(f"[LLM Factory] generator 생성 - purpose: {purpose}, providers: {[p.name for p in providers]}")
    return generator


def clear_generator_cache():
    """generator 캐시 초기화 (테스트용)"""
    _generator_cache.clear()
    logger.info("[LLM Factory] generator 캐시 초기화 완료")
