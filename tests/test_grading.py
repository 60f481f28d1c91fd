"""
채점 그래프 및 GradingService 테스트
"""
import json

import pytest

from app.application.services import grading_service
from app.application.services.grading_service import GradingService, grade_session_in_background
from app.application.services.session_service import SessionService
from app.core.exceptions import SessionConflict, SessionLocked
from app.domain.exam.grading.graph import create_grading_graph
from app.domain.exam.grading.states import get_initial_state
from app.domain.exam.state_machine import session_status
from app.infrastructure.persistence.models.enums import SessionStatusEnum
from app.infrastructure.persistence.models.types import as_utc
from app.infrastructure.repositories.user_repository import UserRepository
from tests.helpers import SEED_QUESTION, StubGenerator


def _grade_json(score) -> str:
    return json.dumps({"score": score, "summary": "s", "strengths": ["a"], "improvements": ["b"]})


def _by_answer(mapping):
    """답안 텍스트에 따라 다른 응답을 돌려주는 reply"""

    def reply(prompt: str) -> str:
        for answer, result in mapping.items():
            if f"Student Answer: {answer}" in prompt:
                if isinstance(result, Exception):
                    raise result
                return result
        raise AssertionError(f"unexpected prompt: {prompt}")

    return reply


async def _sealed_session(db, clock, answers, owner_id=None):
    service = SessionService(db, clock=clock)
    session = await service.create_session(
        seed_question=SEED_QUESTION,
        question_list=[SEED_QUESTION, "Q2", "Q3"],
        owner_id=owner_id,
    )
    for index, answer in enumerate(answers):
        await service.submit_answer(session.id, index, answer)
    return session


class TestGradingGraph:
    """문항별 순차 채점"""

    async def test_scores_are_clamped(self):
        grader = StubGenerator(_by_answer({"a1": _grade_json(30), "a2": _grade_json(-3), "a3": _grade_json(17)}))
        graph = create_grading_graph(grader, 25)

        result = await graph.ainvoke(get_initial_state(1, ["Q1", "Q2", "Q3"], ["a1", "a2", "a3"]))

        assert [g["score"] for g in result["question_grades"]] == [25, 0, 17]
        assert result["total_score"] == 42

    async def test_out_of_range_float_score_is_clamped(self):
        """float 범위를 넘는 점수도 실패가 아닌 최고점으로 보정"""
        grader = StubGenerator(_by_answer({
            "a1": '{"score": 1e999, "summary": "s"}',
            "a2": '{"score": -1e999, "summary": "s"}',
            "a3": _grade_json(10),
        }))
        graph = create_grading_graph(grader, 25)

        result = await graph.ainvoke(get_initial_state(1, ["Q1", "Q2", "Q3"], ["a1", "a2", "a3"]))

        assert [g["score"] for g in result["question_grades"]] == [25, 0, 10]
        assert result["failed_count"] == 0
        assert result["total_score"] == 35

    async def test_blank_answer_skips_grader(self):
        grader = StubGenerator(_by_answer({"a1": _grade_json(10), "a3": _grade_json(12)}))
        graph = create_grading_graph(grader, 25)

        result = await graph.ainvoke(get_initial_state(1, ["Q1", "Q2", "Q3"], ["a1", "  ", "a3"]))

        assert len(grader.calls) == 2
        assert result["question_grades"][1]["score"] == 0
        assert result["question_grades"][1]["graded"] is False
        assert result["total_score"] == 22

    async def test_failure_is_isolated_per_question(self):
        grader = StubGenerator(_by_answer({
            "a1": _grade_json(20),
            "a2": RuntimeError("provider down"),
            "a3": "not json at all",
        }))
        graph = create_grading_graph(grader, 25)

        result = await graph.ainvoke(get_initial_state(1, ["Q1", "Q2", "Q3"], ["a1", "a2", "a3"]))

        assert [g["score"] for g in result["question_grades"]] == [20, 0, 0]
        assert result["failed_count"] == 2
        assert result["total_score"] == 20


class TestGradingService:
    """세션 채점"""

    async def test_grade_sealed_session(self, db, clock, user):
        """봉인 후 채점 (Scenario D)"""
        session = await _sealed_session(db, clock, ["a1", "a2", "a3"], owner_id=user.id)
        grader = StubGenerator(_by_answer({"a1": _grade_json(20), "a2": _grade_json(15), "a3": _grade_json(25)}))
        clock.advance(minutes=2)

        result = await GradingService(db, grader=grader, clock=clock).grade_session(session.id)

        assert result["grades"] == [20, 15, 25]
        assert result["totalScore"] == 60
        assert result["questions"] == [SEED_QUESTION, "Q2", "Q3"]
        assert result["answers"] == ["a1", "a2", "a3"]
        assert len(result["detailedGrades"]) == 3

        graded = await SessionService(db).get_session(session.id)
        assert graded.final_score == 60
        assert graded.grading_status == "completed"
        assert as_utc(graded.graded_at) == clock.now
        assert as_utc(graded.last_activity_at) == clock.now

        owner = await UserRepository(db).get_user_by_id(user.id)
        assert owner.total_score == 60

    async def test_regrade_overwrites(self, db, clock, user):
        session = await _sealed_session(db, clock, ["a1", "a2", "a3"], owner_id=user.id)

        await GradingService(db, grader=StubGenerator(_grade_json(20)), clock=clock).grade_session(session.id)
        result = await GradingService(db, grader=StubGenerator(_grade_json(10)), clock=clock).grade_session(session.id)

        assert result["totalScore"] == 30
        owner = await UserRepository(db).get_user_by_id(user.id)
        assert owner.total_score == 30

    async def test_failed_regrade_keeps_previous_result(self, db, clock, session_factory, monkeypatch):
        """재채점 도중과 실패 후에도 이전 채점 결과와 GRADED 상태 유지"""
        session = await _sealed_session(db, clock, ["a1", "a2", "a3"])
        await GradingService(db, grader=StubGenerator(_grade_json(20)), clock=clock).grade_session(session.id)
        seen_statuses = []

        class BrokenGraph:
            async def ainvoke(self, state):
                async with session_factory() as other_db:
                    current = await SessionService(other_db).get_session(state["session_id"])
                    seen_statuses.append(session_status(current))
                raise RuntimeError("graph crashed")

        monkeypatch.setattr(grading_service, "create_grading_graph", lambda grader, max_score: BrokenGraph())

        with pytest.raises(RuntimeError):
            await GradingService(db, grader=StubGenerator(_grade_json(10)), clock=clock).grade_session(session.id)

        assert seen_statuses == [SessionStatusEnum.GRADED]
        kept = await SessionService(db).get_session(session.id)
        assert kept.grading_status == "completed"
        assert kept.final_score == 60
        assert session_status(kept) == SessionStatusEnum.GRADED

    async def test_unsealed_session_rejected(self, db, clock):
        service = SessionService(db, clock=clock)
        session = await service.create_session(seed_question=SEED_QUESTION, question_list=[SEED_QUESTION, "Q2", "Q3"])
        grader = StubGenerator(_grade_json(20))

        with pytest.raises(SessionConflict):
            await GradingService(db, grader=grader, clock=clock).grade_session(session.id)
        assert grader.calls == []

    async def test_nullified_session_rejected(self, db, clock):
        session = await _sealed_session(db, clock, ["a1"])
        await SessionService(db, clock=clock).nullify(session.id)
        grader = StubGenerator(_grade_json(20))

        with pytest.raises(SessionLocked):
            await GradingService(db, grader=grader, clock=clock).grade_session(session.id)

        nullified = await SessionService(db).get_session(session.id)
        assert nullified.final_score == 0

    async def test_background_grading_uses_own_session(self, db, clock):
        session = await _sealed_session(db, clock, ["a1", "a2", "a3"])

        await grade_session_in_background(session.id, StubGenerator(_grade_json(12)))

        graded = await SessionService(db).get_session(session.id)
        assert graded.final_score == 36
        assert graded.grading_status == "completed"

    async def test_background_grading_swallows_domain_errors(self, db, clock):
        service = SessionService(db, clock=clock)
        session = await service.create_session(seed_question=SEED_QUESTION)

        await grade_session_in_background(session.id, StubGenerator(_grade_json(12)))

        untouched = await service.get_session(session.id)
        assert untouched.final_score is None
        assert untouched.grading_status == "not_started"
