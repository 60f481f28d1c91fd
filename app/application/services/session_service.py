"""
시험 세션 서비스 (Session Service)

[목적]
- 세션 레코드를 변경하는 모든 연산을 이름 있는 연산으로 제공
- 임의 필드 패치는 허용하지 않음 (sealed, finalScore 직접 변경 방지)

[주요 역할]
1. create_session(): 세션 생성 및 입력 검증
2. save_draft(): 작성 중 답안 자동 저장 (마지막 쓰기 우선)
3. check_timing(): 서버 시각 기준 타이밍 계산, 만료 시 자동 제출
4. submit_answer() / advance_question(): 문항 진행, 마지막 문항이면 봉인
5. nullify(): 감독 위반에 의한 무효화 (단방향)

[동시성]
- 세션당 작성자는 한 명이라고 가정
- 모든 변경 연산은 레코드를 다시 읽은 뒤 종료 상태면 거부(또는 no-op)
- 외부 호출(후속 문항 생성) 이후에도 다시 읽어 무효화가 항상 우선하도록 함
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Tuple
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import SessionConflict, SessionNotFound, UpstreamServiceFailure, ValidationError
from app.domain.exam.prompts import (
    FALLBACK_FOLLOW_UP_QUESTIONS,
    FOLLOW_UP_SYSTEM_PROMPT,
    build_follow_up_prompt,
)
from app.domain.exam.state_machine import (
    NULLIFIED_ANSWER_SENTINEL,
    ensure_active,
    is_last_question,
    is_terminal,
)
from app.domain.exam.timing import TimingSnapshot, compute_timing, start_time_at, with_start_time
from app.domain.exam.utils.llm_factory import TextGenerator, get_text_generator
from app.domain.exam.utils.structured_output_parser import parse_line_list
from app.infrastructure.persistence.models.enums import GradingStatusEnum
from app.infrastructure.persistence.models.sessions import ExamSession
from app.infrastructure.persistence.models.types import parse_timestamp, utcnow
from app.infrastructure.repositories.session_repository import SessionRepository
from app.infrastructure.repositories.user_repository import UserRepository


logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


@dataclass
class TimingResult:
    """check_timing 결과"""
    snapshot: TimingSnapshot
    auto_submitted: bool
    sealed: bool
    current_index: int


class SessionService:
    """
    시험 세션 서비스

    [구성 요소]
    - db: SQLAlchemy 비동기 세션
    - clock: 현재 시각 함수 (테스트에서 교체)
    - follow_up_generator: 후속 문항 생성기 (없으면 설정 기반 fallback generator)
    """

    def __init__(
        self,
        db: AsyncSession,
        clock: Clock = utcnow,
        follow_up_generator: Optional[TextGenerator] = None,
    ):
        self.db = db
        self.clock = clock
        self.repo = SessionRepository(db)
        self._follow_up_generator = follow_up_generator

    @property
    def follow_up_generator(self) -> TextGenerator:
        if self._follow_up_generator is None:
            self._follow_up_generator = get_text_generator("follow_up")
        return self._follow_up_generator

    # ===== 조회 =====

    async def get_session(self, session_id: int) -> ExamSession:
        """
        세션 조회

        Raises:
            SessionNotFound: 세션이 없는 경우
        """
        session = await self.repo.get_session_by_id(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    # ===== 생성 =====

    async def create_session(
        self,
        seed_question: str,
        question_list: Optional[List[str]] = None,
        answer_list: Optional[List[str]] = None,
        time_budget: int = 600,
        owner_id: Optional[int] = None,
    ) -> ExamSession:
        """
        세션 생성

        [검증] (실패 시 아무것도 쓰지 않음)
        - seed_question: 비어 있으면 안 됨
        - question_list: seed만 있거나(1개) 전체 문항 수와 같아야 하며, 첫 문항은 seed
        - answer_list: 문항 수와 같은 길이
        - time_budget: 양수
        - owner_id: 지정 시 존재하는 사용자

        Raises:
            ValidationError: 입력 검증 실패
        """
        question_count = settings.QUESTION_COUNT
        seed = (seed_question or "").strip()
        if not seed:
            raise ValidationError("seed question이 비어 있습니다.", {"field": "taskQuestion"})

        questions = list(question_list) if question_list else [seed]
        if len(questions) not in (1, question_count):
            raise ValidationError(
                f"questionList는 1개 또는 {question_count}개여야 합니다.",
                {"field": "questionList", "length": len(questions)},
            )
        if questions[0].strip() != seed:
            raise ValidationError("questionList의 첫 문항은 seed question이어야 합니다.", {"field": "questionList"})
        if any(not q or not q.strip() for q in questions):
            raise ValidationError("빈 문항이 포함되어 있습니다.", {"field": "questionList"})

        answers = list(answer_list) if answer_list is not None else [""] * question_count
        if len(answers) != question_count:
            raise ValidationError(
                f"answerList는 {question_count}개여야 합니다.",
                {"field": "answerList", "length": len(answers)},
            )

        if time_budget <= 0:
            raise ValidationError("timeBudget은 양수여야 합니다.", {"field": "timeBudget"})

        if owner_id is not None:
            owner = await UserRepository(self.db).get_user_by_id(owner_id)
            if owner is None:
                raise ValidationError("존재하지 않는 사용자입니다.", {"field": "ownerId", "owner_id": owner_id})

        now = self.clock()
        session = ExamSession(
            owner_id=owner_id,
            seed_question=seed,
            question_list=questions,
            answer_list=answers,
            current_index=0,
            draft="",
            current_answer="",
            questions_asked=0,
            question_penalty=0,
            base_score=settings.BASE_SCORE_PER_QUESTION,
            bonus=0,
            final_score=None,
            sealed=False,
            nullified=False,
            time_budget=time_budget,
            question_start_times=[],
            grading_status=GradingStatusEnum.NOT_STARTED.value,
            last_activity_at=now,
            created_at=now,
        )
        await self.repo.create_session(session)
        await self.db.commit()

        logger.info(f"[Session] 세션 생성 - session_id: {session.id}, owner_id: {owner_id}")
        return session

    # ===== 답안 필드 =====

    async def update_current_answer(self, session_id: int, current_answer: str) -> ExamSession:
        """
        화면에 표시되는 현재 답안 필드 갱신

        Raises:
            SessionLocked: 종료된 세션
        """
        session = await self.get_session(session_id)
        ensure_active(session, "update")
        session.current_answer = current_answer
        session.last_activity_at = self.clock()
        await self.db.commit()
        return session

    async def save_draft(self, session_id: int, draft: str) -> Tuple[bool, Optional[datetime]]:
        """
        작성 중 답안 자동 저장

        단순 덮어쓰기 (마지막 쓰기 우선). 종료된 세션에서는 no-op.

        Returns:
            (성공 여부, 저장 시각)
        """
        session = await self.get_session(session_id)
        if is_terminal(session):
            logger.info(f"[Autosave] 종료된 세션 - 저장 생략, session_id: {session_id}")
            return False, None

        now = self.clock()
        session.draft = draft
        session.last_activity_at = now
        await self.db.commit()
        logger.debug(f"[Autosave] 저장 완료 - session_id: {session_id}, length: {len(draft)}")
        return True, now

    # ===== 타이밍 =====

    async def check_timing(self, session_id: int) -> TimingResult:
        """
        서버 기준 타이밍 확인 및 자동 제출

        [처리 흐름]
        1. 현재 문항 시작 시각이 없으면 지금 시각으로 기록
        2. 경과 시간 계산, 제한 시간 초과 여부 판단
        3. 만료 + draft 존재 시 draft를 답안으로 확정 (조건부 UPDATE로 1회만)
        4. 마지막 문항이면 봉인

        종료된 세션에서는 아무것도 쓰지 않고 계산 결과만 반환합니다.
        """
        session = await self.get_session(session_id)
        now = self.clock()

        index = session.current_index
        if start_time_at(session.question_start_times, index) is None and not is_terminal(session):
            recorded = await self.repo.record_start_time(
                session_id=session_id,
                index=index,
                expected_start_times=list(session.question_start_times),
                start_times=with_start_time(session.question_start_times, index, now),
                now=now,
            )
            await self.db.commit()
            if recorded:
                logger.info(f"[Timing] 문항 시작 시각 기록 - session_id: {session_id}, index: {index}")
            else:
                logger.info(f"[Timing] 시작 시각 기록 중 세션 변경 - 다시 조회, session_id: {session_id}")
            session = await self.get_session(session_id)

        index = session.current_index
        terminal = is_terminal(session)
        start = parse_timestamp(start_time_at(session.question_start_times, index)) or now

        snapshot = compute_timing(index, start, now, settings.QUESTION_TIME_LIMIT_MS)

        auto_submitted = False
        sealed = session.sealed
        if snapshot.expired and not terminal and session.draft:
            seal = is_last_question(index, settings.QUESTION_COUNT)
            answers = list(session.answer_list)
            answers[index] = session.draft
            auto_submitted = await self.repo.commit_draft(
                session_id=session_id,
                index=index,
                expected_draft=session.draft,
                answer_list=answers,
                seal=seal,
                now=now,
            )
            await self.db.commit()
            if auto_submitted:
                sealed = seal
                logger.info(
                    f"[Timing] 시간 만료 자동 제출 - session_id: {session_id}, index: {index}, sealed: {seal}"
                )
            else:
                logger.info(f"[Timing] 이미 자동 제출됨 - session_id: {session_id}, index: {index}")

        return TimingResult(
            snapshot=snapshot,
            auto_submitted=auto_submitted,
            sealed=sealed,
            current_index=index,
        )

    # ===== 문항 진행 =====

    async def submit_answer(self, session_id: int, index: int, answer: str) -> Tuple[ExamSession, bool]:
        """
        답안 제출

        - 마지막 문항: 봉인 (채점은 호출자가 예약)
        - 그 외: 다음 문항으로 진행

        Returns:
            (세션, 이번 제출로 봉인되었는지)

        Raises:
            SessionLocked: 종료된 세션
            SessionConflict: 현재 문항이 아닌 인덱스에 대한 제출
        """
        session = await self.get_session(session_id)
        ensure_active(session, "submit")
        if index != session.current_index:
            raise SessionConflict(
                "현재 문항에 대해서만 제출할 수 있습니다.",
                {"session_id": session_id, "index": index, "current_index": session.current_index},
            )

        if is_last_question(index, settings.QUESTION_COUNT):
            now = self.clock()
            answers = list(session.answer_list)
            answers[index] = answer
            session.answer_list = answers
            session.current_answer = answer
            self._seal(session, now)
            await self.db.commit()
            logger.info(f"[Progress] 마지막 문항 제출 - 세션 봉인, session_id: {session_id}")
            return session, True

        follow_ups = await self._follow_ups_if_needed(session)

        # 외부 호출 동안 무효화되었을 수 있으므로 다시 확인
        session = await self.get_session(session_id)
        ensure_active(session, "submit")
        if index != session.current_index:
            raise SessionConflict(
                "현재 문항에 대해서만 제출할 수 있습니다.",
                {"session_id": session_id, "index": index, "current_index": session.current_index},
            )

        answers = list(session.answer_list)
        answers[index] = answer
        session.answer_list = answers
        self._advance(session, follow_ups, self.clock())
        await self.db.commit()
        logger.info(f"[Progress] 답안 제출 및 진행 - session_id: {session_id}, index: {index} → {session.current_index}")
        return session, False

    async def advance_question(self, session_id: int) -> ExamSession:
        """
        다음 문항으로 진행 (답안 기록 없이)

        Raises:
            SessionLocked: 종료된 세션
            SessionConflict: 이미 마지막 문항
        """
        session = await self.get_session(session_id)
        ensure_active(session, "advance")
        self._ensure_not_last(session)

        follow_ups = await self._follow_ups_if_needed(session)

        session = await self.get_session(session_id)
        ensure_active(session, "advance")
        self._ensure_not_last(session)

        self._advance(session, follow_ups, self.clock())
        await self.db.commit()
        logger.info(f"[Progress] 다음 문항 진행 - session_id: {session_id}, index: {session.current_index}")
        return session

    def _ensure_not_last(self, session: ExamSession):
        if is_last_question(session.current_index, settings.QUESTION_COUNT):
            raise SessionConflict(
                "마지막 문항에서는 다음 문항으로 진행할 수 없습니다.",
                {"session_id": session.id, "current_index": session.current_index},
            )

    async def _follow_ups_if_needed(self, session: ExamSession) -> Optional[List[str]]:
        """
        seed 문항만 있으면 후속 문항 2개 생성 (세션당 1회)

        생성 실패 또는 2개 미만이면 고정 문항으로 대체합니다.
        """
        if len(session.question_list) != 1:
            return None

        needed = settings.QUESTION_COUNT - 1
        try:
            raw = await self.follow_up_generator.generate(
                build_follow_up_prompt(session.seed_question),
                FOLLOW_UP_SYSTEM_PROMPT,
            )
            questions = parse_line_list(raw, limit=needed)
        except UpstreamServiceFailure as e:
            logger.warning(f"[Progress] 후속 문항 생성 실패 - 고정 문항 사용, session_id: {session.id}, errors: {e.errors}")
            questions = []

        if len(questions) < needed:
            questions = FALLBACK_FOLLOW_UP_QUESTIONS[:needed]
        return questions

    def _advance(self, session: ExamSession, follow_ups: Optional[List[str]], now: datetime):
        """진행 공통 처리 (commit은 호출자)"""
        if follow_ups is not None and len(session.question_list) == 1:
            session.question_list = list(session.question_list) + list(follow_ups)

        session.current_index = session.current_index + 1
        session.question_start_times = with_start_time(session.question_start_times, session.current_index, now)

        # 질문 사용량은 문항별
        session.questions_asked = 0
        session.question_penalty = 0

        session.draft = ""
        session.current_answer = ""
        session.last_activity_at = now

    def _seal(self, session: ExamSession, now: datetime):
        session.sealed = True
        session.sealed_at = now
        session.draft = ""
        session.grading_status = GradingStatusEnum.PENDING.value
        session.last_activity_at = now

    # ===== 무효화 =====

    async def nullify(self, session_id: int) -> ExamSession:
        """
        감독 위반에 의한 세션 무효화 (단방향)

        sealed=True, finalScore=0, 답안 필드를 고정 문자열로 대체합니다.
        이미 무효화된 세션은 그대로 반환합니다.
        """
        session = await self.get_session(session_id)
        if session.nullified:
            return session

        now = self.clock()
        session.nullified = True
        session.sealed = True
        session.sealed_at = session.sealed_at or now
        session.final_score = 0
        session.current_answer = NULLIFIED_ANSWER_SENTINEL
        session.draft = ""
        session.last_activity_at = now
        await self.db.commit()
        logger.warning(f"[Session] 세션 무효화 - session_id: {session_id}")
        return session
