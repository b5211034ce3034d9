# quizly/services/quiz_session.py
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Sequence, TypeVar, Union

from sqlalchemy.orm import Session

from quizly.core.config import settings
from quizly.core.exceptions import NotFoundError, ValidationError, db_exception
from quizly.models.quiz_session import QuestionView, QuizSession
from quizly.utils.clock import Clock, get_utc_now, make_aware

T = TypeVar("T")

TOO_QUICK = "Answer submitted too quickly"
TOO_SLOW = "Answer took too long"
ALREADY_ANSWERED = "Question already answered"


# ==================== Session Status ====================


@dataclass(frozen=True)
class Active:
    current_index: int


@dataclass(frozen=True)
class Completed:
    completed_at: datetime


@dataclass(frozen=True)
class Expired:
    expires_at: datetime


SessionStatus = Union[Active, Completed, Expired]


def session_status(session: QuizSession, now: datetime) -> SessionStatus:
    """
    Classify a session at ``now``.

    Completed wins over Expired: a session finished before its TTL stays
    Completed forever. Both are terminal.
    """
    if session.completed_at is not None:
        return Completed(completed_at=make_aware(session.completed_at))
    expires_at = make_aware(session.expires_at)
    if make_aware(now) >= expires_at:
        return Expired(expires_at=expires_at)
    return Active(current_index=session.current_question_index)


@dataclass(frozen=True)
class TimingCheck:
    valid: bool
    reason: Optional[str] = None


def shuffle(items: Sequence[T]) -> List[T]:
    """Fisher-Yates shuffle into a new list using the OS random source."""
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = secrets.randbelow(i + 1)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def generate_session_token() -> str:
    # 32 random bytes -> 256 bits of entropy
    return secrets.token_hex(32)


# ==================== Session Store ====================


class SessionStore:
    """
    Persistence for quiz sessions and per-question views.

    Writes are flushed but never committed here; the engine owns the
    transaction so an attempt and its view update land together.
    """

    def __init__(
        self,
        db: Session,
        clock: Clock = get_utc_now,
        ttl: Optional[timedelta] = None,
        min_question_time: Optional[timedelta] = None,
        max_question_time: Optional[timedelta] = None,
    ):
        self.db = db
        self.clock = clock
        if ttl is None:
            ttl = timedelta(minutes=settings.session_ttl_minutes)
        if min_question_time is None:
            min_question_time = timedelta(seconds=settings.min_question_seconds)
        if max_question_time is None:
            max_question_time = timedelta(seconds=settings.max_question_seconds)
        self.ttl = ttl
        self.min_question_time = min_question_time
        self.max_question_time = max_question_time

    def now(self) -> datetime:
        return make_aware(self.clock())

    @db_exception
    def create(
        self, student_id: int, quiz_id: int, question_ids: Sequence[int]
    ) -> QuizSession:
        """Create a session with a freshly shuffled question order"""
        now = self.now()
        session = QuizSession(
            session_token=generate_session_token(),
            student_id=student_id,
            quiz_id=quiz_id,
            question_order=shuffle(question_ids),
            current_question_index=0,
            started_at=now,
            expires_at=now + self.ttl,
            completed_at=None,
        )
        self.db.add(session)
        self.db.flush()
        return session

    @db_exception
    def get_by_token(self, session_token: str) -> Optional[QuizSession]:
        return (
            self.db.query(QuizSession)
            .filter(QuizSession.session_token == session_token)
            .first()
        )

    def status(self, session: QuizSession) -> SessionStatus:
        return session_status(session, self.now())

    def is_valid(self, session: QuizSession) -> bool:
        return isinstance(self.status(session), Active)

    @db_exception
    def advance(self, session_id: int, new_index: int) -> QuizSession:
        session = self._get(session_id)
        session.current_question_index = new_index
        self.db.flush()
        return session

    @db_exception
    def complete(self, session_id: int) -> QuizSession:
        session = self._get(session_id)
        session.completed_at = self.now()
        self.db.flush()
        return session

    @db_exception
    def record_view(self, session_id: int, question_id: int) -> QuestionView:
        view = QuestionView(
            session_id=session_id, question_id=question_id, viewed_at=self.now()
        )
        self.db.add(view)
        self.db.flush()
        return view

    @db_exception
    def record_answered(self, session_id: int, question_id: int) -> QuestionView:
        """
        Stamp ``answered_at`` on a view that has not been answered yet.

        The stamp is a conditional UPDATE, so of two racing submits for the
        same view exactly one matches a row; the other gets ValidationError.
        """
        claimed = (
            self.db.query(QuestionView)
            .filter(
                QuestionView.session_id == session_id,
                QuestionView.question_id == question_id,
                QuestionView.answered_at.is_(None),
            )
            .update({QuestionView.answered_at: self.now()}, synchronize_session=False)
        )

        view = self.get_view(session_id, question_id)
        if not view:
            raise NotFoundError("Question view not found")
        if not claimed:
            raise ValidationError(ALREADY_ANSWERED)

        self.db.refresh(view)
        return view

    @db_exception
    def get_view(self, session_id: int, question_id: int) -> Optional[QuestionView]:
        return (
            self.db.query(QuestionView)
            .filter(
                QuestionView.session_id == session_id,
                QuestionView.question_id == question_id,
            )
            .first()
        )

    def validate_timing(self, viewed_at: datetime) -> TimingCheck:
        """Accept an answer only within a plausible human response time"""
        elapsed = self.now() - make_aware(viewed_at)

        if elapsed < self.min_question_time:
            return TimingCheck(valid=False, reason=TOO_QUICK)

        if elapsed > self.max_question_time:
            return TimingCheck(valid=False, reason=TOO_SLOW)

        return TimingCheck(valid=True)

    @db_exception
    def has_existing_session(self, student_id: int, quiz_id: int) -> bool:
        return (
            self.db.query(QuizSession.id)
            .filter(
                QuizSession.student_id == student_id,
                QuizSession.quiz_id == quiz_id,
            )
            .first()
            is not None
        )

    def _get(self, session_id: int) -> QuizSession:
        session = self.db.get(QuizSession, session_id)
        if not session:
            raise NotFoundError("Quiz session not found")
        return session
