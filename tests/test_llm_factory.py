"""
LLM provider fallback 및 음성 인식 fallback 테스트
"""
import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from app.core.exceptions import UpstreamServiceFailure
from app.domain.exam.utils import llm_factory
from app.domain.exam.utils.llm_factory import ChatModelProvider, FallbackTextGenerator, get_text_generator
from app.infrastructure.transcription.whisper_client import TranscriptionService
from tests.helpers import StubGenerator, StubTranscriber


class TestFallbackTextGenerator:
    """순서대로 provider 시도"""

    async def test_first_success_wins(self):
        first = StubGenerator(RuntimeError("rate limited"), name="openai")
        second = StubGenerator("from anthropic", name="anthropic")
        third = StubGenerator("from gemini", name="gemini")
        generator = FallbackTextGenerator([first, second, third])

        assert await generator.generate("prompt", "system") == "from anthropic"
        assert len(first.calls) == 1
        assert third.calls == []

    async def test_all_fail_collects_errors(self):
        generator = FallbackTextGenerator([
            StubGenerator(RuntimeError("timeout"), name="openai"),
            StubGenerator(ValueError("bad key"), name="gemini"),
        ])

        with pytest.raises(UpstreamServiceFailure) as exc_info:
            await generator.generate("prompt")

        assert exc_info.value.errors == ["openai: timeout", "gemini: bad key"]
        assert exc_info.value.status_code == 502

    async def test_no_providers(self):
        with pytest.raises(UpstreamServiceFailure):
            await FallbackTextGenerator([]).generate("prompt")


class TestChatModelProvider:
    """LangChain chat model 래핑"""

    async def test_returns_model_content(self):
        provider = ChatModelProvider("fake", FakeListChatModel(responses=["  Follow-up A?\nFollow-up B?  "]))
        assert await provider.generate("prompt", "system") == "Follow-up A?\nFollow-up B?"

    async def test_empty_response_is_failure(self):
        provider = ChatModelProvider("fake", FakeListChatModel(responses=["   "]))
        with pytest.raises(ValueError):
            await provider.generate("prompt")


class TestGeneratorFactory:
    """설정 기반 generator 구성"""

    def test_providers_without_key_are_skipped(self):
        llm_factory.clear_generator_cache()
        generator = get_text_generator("grading")

        assert generator.providers == []
        assert get_text_generator("grading") is generator
        llm_factory.clear_generator_cache()


class TestTranscriptionFallback:
    """Groq → OpenAI 순서"""

    async def test_falls_back_to_second_provider(self):
        groq = StubTranscriber(error=RuntimeError("groq down"))
        groq.name = "groq"
        openai = StubTranscriber(text="hello world")
        openai.name = "openai"

        service = TranscriptionService([groq, openai])
        assert await service.transcribe("answer.webm", b"audio", "audio/webm") == "hello world"
        assert len(groq.calls) == 1

    async def test_all_fail(self):
        groq = StubTranscriber(error=RuntimeError("groq down"))
        groq.name = "groq"

        with pytest.raises(UpstreamServiceFailure) as exc_info:
            await TranscriptionService([groq]).transcribe("answer.webm", b"audio")
        assert exc_info.value.errors == ["groq: groq down"]
