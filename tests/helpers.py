"""
테스트용 stub 및 상수
"""
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Union

from app.core.exceptions import UpstreamServiceFailure


SEED_QUESTION = (
    "Assume the printing press never spread beyond Mainz after 1450. "
    "Pick one European region and outline two major consequences by 1700."
)

GOOD_GRADE = '{"score": 20, "summary": "Solid answer.", "strengths": ["clear"], "improvements": ["more evidence"]}'


class FakeClock:
    """수동으로 진행시키는 시계"""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2025, 1, 1, 9, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


Reply = Union[str, Exception, Callable[[str], str]]


class StubGenerator:
    """
    generate(prompt, system_instructions) 계약을 구현한 stub

    reply가 예외면 매 호출마다 raise, callable이면 prompt로 호출한 결과를 반환합니다.
    """

    def __init__(self, reply: Reply = "stub reply", name: str = "stub"):
        self.name = name
        self.reply = reply
        self.calls: List[tuple] = []

    async def generate(self, prompt: str, system_instructions: Optional[str] = None) -> str:
        self.calls.append((prompt, system_instructions))
        if isinstance(self.reply, Exception):
            raise self.reply
        if callable(self.reply):
            return self.reply(prompt)
        return self.reply


class StubTranscriber:
    def __init__(self, text: str = "transcribed answer", error: Optional[Exception] = None):
        self.text = text
        self.error = error
        self.calls: List[tuple] = []

    async def transcribe(self, filename: str, content: bytes, content_type: Optional[str] = None) -> str:
        self.calls.append((filename, content, content_type))
        if self.error:
            raise self.error
        return self.text


def upstream_failure() -> UpstreamServiceFailure:
    return UpstreamServiceFailure("all providers failed", ["openai: timeout", "anthropic: 500"])
