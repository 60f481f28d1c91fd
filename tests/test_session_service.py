"""
SessionService 테스트 (생성, 자동 저장, 타이밍, 문항 진행)
"""
import pytest

from app.application.services.session_service import SessionService
from app.core.exceptions import SessionConflict, SessionLocked, SessionNotFound, ValidationError
from app.domain.exam.prompts import FALLBACK_FOLLOW_UP_QUESTIONS
from app.infrastructure.persistence.models.types import parse_timestamp
from tests.helpers import SEED_QUESTION, StubGenerator, upstream_failure


@pytest.fixture
def service(db, clock, follow_up_generator) -> SessionService:
    return SessionService(db, clock=clock, follow_up_generator=follow_up_generator)


async def _create(service: SessionService, **kwargs):
    params = dict(seed_question=SEED_QUESTION, question_list=[SEED_QUESTION], answer_list=["", "", ""], time_budget=600)
    params.update(kwargs)
    return await service.create_session(**params)


class TestCreateSession:
    """세션 생성"""

    async def test_create_with_seed_only(self, service):
        """seed만 가진 세션 생성 (Scenario A)"""
        session = await _create(service)
        assert session.id is not None
        assert session.current_index == 0
        assert session.sealed is False
        assert session.nullified is False
        assert session.question_list == [SEED_QUESTION]
        assert session.answer_list == ["", "", ""]
        assert session.final_score is None

    async def test_defaults(self, service):
        session = await service.create_session(seed_question=SEED_QUESTION)
        assert session.question_list == [SEED_QUESTION]
        assert session.answer_list == ["", "", ""]

    async def test_create_with_owner(self, service, user):
        session = await _create(service, owner_id=user.id)
        assert session.owner_id == user.id

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"seed_question": "   "},
            {"answer_list": ["", ""]},
            {"answer_list": ["", "", "", ""]},
            {"question_list": [SEED_QUESTION, "Q2"]},
            {"question_list": ["Another question", "Q2", "Q3"]},
            {"time_budget": 0},
            {"owner_id": 999},
        ],
    )
    async def test_invalid_payload_rejected(self, service, db, kwargs):
        with pytest.raises(ValidationError):
            await _create(service, **kwargs)
        assert await service.repo.get_session_by_id(1) is None

    async def test_unknown_session(self, service):
        with pytest.raises(SessionNotFound):
            await service.get_session(12345)


class TestAutosave:
    """작성 중 답안 자동 저장"""

    async def test_last_write_wins(self, service, clock):
        session = await _create(service)
        await service.save_draft(session.id, "first draft")
        clock.advance(seconds=8)
        success, last_saved = await service.save_draft(session.id, "second draft")

        assert success is True
        assert last_saved == clock.now
        refreshed = await service.get_session(session.id)
        assert refreshed.draft == "second draft"

    async def test_terminal_session_is_noop(self, service):
        session = await _create(service, question_list=[SEED_QUESTION, "Q2", "Q3"])
        for index in range(3):
            await service.submit_answer(session.id, index, f"answer {index}")

        success, last_saved = await service.save_draft(session.id, "late edit")
        assert success is False
        assert last_saved is None
        refreshed = await service.get_session(session.id)
        assert refreshed.draft == ""


class TestCheckTiming:
    """서버 기준 타이밍과 자동 제출"""

    async def test_first_check_records_start_time(self, service, clock):
        session = await _create(service)
        result = await service.check_timing(session.id)

        assert result.snapshot.current_elapsed == 0
        assert result.snapshot.expired is False
        refreshed = await service.get_session(session.id)
        assert parse_timestamp(refreshed.question_start_times[0]) == clock.now

    async def test_auto_submit_on_expiry(self, service, clock):
        """만료 후 draft 자동 제출 (Scenario C)"""
        session = await _create(service)
        await service.check_timing(session.id)
        await service.save_draft(session.id, "my partial answer")

        clock.advance(minutes=10, seconds=1)
        result = await service.check_timing(session.id)

        assert result.snapshot.expired is True
        assert result.auto_submitted is True
        assert result.sealed is False
        refreshed = await service.get_session(session.id)
        assert refreshed.answer_list[0] == "my partial answer"
        assert refreshed.draft == ""
        assert refreshed.current_index == 0

    async def test_auto_submit_is_idempotent(self, service, clock):
        session = await _create(service)
        await service.check_timing(session.id)
        await service.save_draft(session.id, "my partial answer")
        clock.advance(minutes=11)

        first = await service.check_timing(session.id)
        second = await service.check_timing(session.id)

        assert first.auto_submitted is True
        assert second.auto_submitted is False
        assert second.snapshot.expired is True
        refreshed = await service.get_session(session.id)
        assert refreshed.answer_list == ["my partial answer", "", ""]

    async def test_stale_draft_is_not_committed_twice(self, service, db, clock, session_factory):
        """다른 요청이 먼저 확정한 draft는 조건부 UPDATE로 걸러짐"""
        session = await _create(service)
        await service.check_timing(session.id)
        await service.save_draft(session.id, "draft text")
        clock.advance(minutes=11)

        async with session_factory() as other_db:
            other = SessionService(other_db, clock=clock)
            assert (await other.check_timing(session.id)).auto_submitted is True

        committed = await service.repo.commit_draft(
            session_id=session.id,
            index=0,
            expected_draft="draft text",
            answer_list=["draft text again", "", ""],
            seal=False,
            now=clock.now,
        )
        await db.commit()
        assert committed is False
        refreshed = await service.get_session(session.id)
        assert refreshed.answer_list == ["draft text", "", ""]

    async def test_advance_between_read_and_start_record(
        self, service, clock, session_factory, follow_up_generator, monkeypatch
    ):
        """읽은 뒤 다른 요청이 문항을 넘기면 시작 시각을 덮어쓰지 않고 다시 조회"""
        session = await _create(service)
        original_get_session = service.get_session
        calls = []

        async def get_session_then_advance(session_id):
            loaded = await original_get_session(session_id)
            calls.append(session_id)
            if len(calls) == 1:
                clock.advance(seconds=5)
                async with session_factory() as other_db:
                    other = SessionService(other_db, clock=clock, follow_up_generator=follow_up_generator)
                    await other.advance_question(session_id)
                clock.advance(seconds=2)
            return loaded

        monkeypatch.setattr(service, "get_session", get_session_then_advance)
        result = await service.check_timing(session.id)

        advanced_at = clock.now.replace(second=5)
        assert result.current_index == 1
        assert result.snapshot.question_start_time == advanced_at
        assert result.snapshot.current_elapsed == 2000

        refreshed = await original_get_session(session.id)
        assert refreshed.current_index == 1
        assert len(refreshed.question_start_times) == 2
        assert parse_timestamp(refreshed.question_start_times[1]) == advanced_at

    async def test_expired_without_draft_does_nothing(self, service, clock):
        session = await _create(service)
        await service.check_timing(session.id)
        clock.advance(minutes=12)

        result = await service.check_timing(session.id)
        assert result.snapshot.expired is True
        assert result.auto_submitted is False
        refreshed = await service.get_session(session.id)
        assert refreshed.answer_list == ["", "", ""]

    async def test_final_question_auto_submit_seals(self, service, clock):
        session = await _create(service, question_list=[SEED_QUESTION, "Q2", "Q3"])
        await service.submit_answer(session.id, 0, "a1")
        await service.submit_answer(session.id, 1, "a2")
        await service.save_draft(session.id, "a3 draft")

        clock.advance(minutes=10, milliseconds=1)
        result = await service.check_timing(session.id)

        assert result.auto_submitted is True
        assert result.sealed is True
        refreshed = await service.get_session(session.id)
        assert refreshed.sealed is True
        assert refreshed.grading_status == "pending"
        assert refreshed.answer_list == ["a1", "a2", "a3 draft"]

    async def test_terminal_session_is_read_only(self, service, clock):
        session = await _create(service, question_list=[SEED_QUESTION, "Q2", "Q3"])
        for index in range(3):
            await service.submit_answer(session.id, index, f"answer {index}")
        before = await service.get_session(session.id)
        snapshot_times = list(before.question_start_times)

        clock.advance(minutes=30)
        result = await service.check_timing(session.id)

        assert result.auto_submitted is False
        after = await service.get_session(session.id)
        assert after.question_start_times == snapshot_times
        assert after.answer_list == ["answer 0", "answer 1", "answer 2"]


class TestProgression:
    """문항 진행"""

    async def test_advance_generates_follow_ups_once(self, service, follow_up_generator, clock):
        """seed만 있는 세션의 첫 진행 (Scenario B)"""
        session = await _create(service)
        await service.save_draft(session.id, "draft for q1")

        advanced = await service.advance_question(session.id)

        assert advanced.current_index == 1
        assert advanced.question_list == [SEED_QUESTION, "Follow-up question A?", "Follow-up question B?"]
        assert advanced.draft == ""
        assert advanced.current_answer == ""
        assert advanced.questions_asked == 0
        assert advanced.question_penalty == 0
        assert parse_timestamp(advanced.question_start_times[1]) == clock.now
        assert len(follow_up_generator.calls) == 1

        await service.advance_question(session.id)
        assert len(follow_up_generator.calls) == 1

    async def test_follow_up_failure_uses_fallback(self, db, clock):
        service = SessionService(db, clock=clock, follow_up_generator=StubGenerator(upstream_failure()))
        session = await _create(service)

        advanced = await service.advance_question(session.id)
        assert advanced.question_list == [SEED_QUESTION] + FALLBACK_FOLLOW_UP_QUESTIONS

    async def test_short_follow_up_reply_uses_fallback(self, db, clock):
        service = SessionService(db, clock=clock, follow_up_generator=StubGenerator("Only one question?"))
        session = await _create(service)

        advanced = await service.advance_question(session.id)
        assert len(advanced.question_list) == 3
        assert advanced.question_list[1:] == FALLBACK_FOLLOW_UP_QUESTIONS

    async def test_submit_writes_answer_and_advances(self, service):
        session = await _create(service)
        submitted, sealed = await service.submit_answer(session.id, 0, "answer one")

        assert sealed is False
        assert submitted.current_index == 1
        assert submitted.answer_list == ["answer one", "", ""]
        assert len(submitted.question_list) == 3

    async def test_submit_wrong_index_conflicts(self, service):
        session = await _create(service)
        await service.submit_answer(session.id, 0, "answer one")

        with pytest.raises(SessionConflict):
            await service.submit_answer(session.id, 0, "again")
        refreshed = await service.get_session(session.id)
        assert refreshed.answer_list == ["answer one", "", ""]

    async def test_final_submit_seals(self, service):
        """마지막 문항 제출 시 봉인 (Scenario D 앞부분)"""
        session = await _create(service)
        await service.submit_answer(session.id, 0, "a1")
        await service.submit_answer(session.id, 1, "a2")
        sealed_session, sealed = await service.submit_answer(session.id, 2, "a3")

        assert sealed is True
        assert sealed_session.sealed is True
        assert sealed_session.current_index == 2
        assert sealed_session.answer_list == ["a1", "a2", "a3"]

        with pytest.raises(SessionLocked):
            await service.submit_answer(session.id, 2, "edit after seal")

    async def test_cannot_advance_past_last(self, service):
        session = await _create(service, question_list=[SEED_QUESTION, "Q2", "Q3"])
        await service.advance_question(session.id)
        await service.advance_question(session.id)

        with pytest.raises(SessionConflict):
            await service.advance_question(session.id)

    async def test_patch_current_answer(self, service):
        session = await _create(service)
        updated = await service.update_current_answer(session.id, "visible text")
        assert updated.current_answer == "visible text"

    async def test_nullify_is_one_way(self, service):
        session = await _create(service)
        nullified = await service.nullify(session.id)

        assert nullified.nullified is True
        assert nullified.sealed is True
        assert nullified.final_score == 0
        assert nullified.current_answer == "[NULLIFIED: academic integrity violation]"

        with pytest.raises(SessionLocked):
            await service.advance_question(session.id)
        with pytest.raises(SessionLocked):
            await service.update_current_answer(session.id, "x")
