# quizly/services/quiz_engine.py
import logging
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from quizly.core.config import settings
from quizly.core.database import transaction
from quizly.core.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from quizly.models.attempt import Attempt
from quizly.models.quiz import Question, Quiz
from quizly.models.quiz_session import QuizSession
from quizly.schemas.quiz import (
    CurrentQuestionResponse,
    LeaderboardEntry,
    QuizQuestionForAttempt,
    StartQuizResponse,
    SubmitAnswerResponse,
)
from quizly.services.leaderboard import LeaderboardService
from quizly.services.quiz_catalog import QuizCatalogService
from quizly.services.quiz_session import (
    ALREADY_ANSWERED,
    Active,
    Completed,
    SessionStore,
)
from quizly.services.student import StudentService
from quizly.services.whitelist import WhitelistService
from quizly.utils.clock import Clock, elapsed_ms, get_utc_now

logger = logging.getLogger(__name__)

ALREADY_ATTEMPTED = "You have already attempted this quiz"
NOT_WHITELISTED = (
    "Student not found in class roster. "
    "Please verify your name and section with your teacher."
)


def parse_quiz_id(value: Any) -> int:
    """Accept a positive integer, or a string holding one."""
    if isinstance(value, bool):
        raise ValidationError("Invalid quiz ID")
    if isinstance(value, str):
        value = value.strip()
        if not value.isdigit():
            raise ValidationError("Invalid quiz ID")
        value = int(value)
    if not isinstance(value, int) or value <= 0:
        raise ValidationError("Invalid quiz ID")
    return value


def grade_answer(answer: Any, correct_answer: str) -> bool:
    """Case-insensitive comparison of the trimmed answers"""
    answer_str = answer if isinstance(answer, str) else str(answer)
    return answer_str.strip().lower() == correct_answer.strip().lower()


def strip_answer(question: Question) -> QuizQuestionForAttempt:
    return QuizQuestionForAttempt(
        id=question.id,
        question_text=question.question_text,
        options=list(question.options or []),
    )


class QuizSessionEngine:
    """
    One student's pass through a quiz.

    A session is Active until its last question is answered (Completed) or
    its TTL runs out (Expired); both end states are final. Answers are only
    accepted for the current question of the shuffled order, once, and
    within the per-question timing window.
    """

    def __init__(self, db: Session, clock: Clock = get_utc_now):
        self.db = db
        self.clock = clock
        self.whitelist = WhitelistService(db)
        self.students = StudentService(db)
        self.catalog = QuizCatalogService(db)
        self.sessions = SessionStore(db, clock=clock)
        self.leaderboard = LeaderboardService(db)

    # ==================== Catalog ====================

    def get_active_quizzes(self) -> List[Quiz]:
        return self.catalog.list_active()

    # ==================== Start ====================

    def start_quiz_session(
        self, student_name: Any, section: Any, quiz_id: Any
    ) -> StartQuizResponse:
        quiz_id = parse_quiz_id(quiz_id)
        name = self._validate_name(student_name)
        section = self._validate_section(section)

        if not self.whitelist.is_whitelisted(name, section):
            logger.warning(f"Rejected start for non-whitelisted {name} ({section})")
            raise ForbiddenError(NOT_WHITELISTED)

        quiz = self.catalog.get_quiz(quiz_id)
        if not quiz or not quiz.is_active:
            raise NotFoundError("Quiz not found")

        questions = self.catalog.questions_for(quiz_id)
        if not questions:
            raise NotFoundError("No questions found for this quiz")
        questions_by_id = {q.id: q for q in questions}

        with transaction(self.db, conflict_message=ALREADY_ATTEMPTED):
            student = self.students.find_or_create(name, section)

            if self.sessions.has_existing_session(student.id, quiz_id):
                raise ConflictError(ALREADY_ATTEMPTED)

            session = self.sessions.create(student.id, quiz_id, list(questions_by_id))
            first_question_id = session.question_order[0]
            self.sessions.record_view(session.id, first_question_id)

            session_token = session.session_token
            total_questions = len(session.question_order)

        logger.info(
            f"Quiz session started: quiz={quiz_id} student={student.id} "
            f"questions={total_questions}"
        )

        return StartQuizResponse(
            sessionToken=session_token,
            question=strip_answer(questions_by_id[first_question_id]),
            totalQuestions=total_questions,
            currentIndex=0,
        )

    # ==================== Answer ====================

    def submit_answer(
        self, session_token: Optional[str], question_id: Any, answer: Any, quiz_id: Any
    ) -> SubmitAnswerResponse:
        missing = [
            field
            for field, value in (
                ("sessionToken", session_token),
                ("questionId", question_id),
                ("answer", answer),
            )
            if value is None
            or (field == "sessionToken" and value == "")
            or (field == "questionId" and value == 0)
        ]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        quiz_id = parse_quiz_id(quiz_id)
        session = self._load_active_session(session_token, quiz_id)

        # A replay of an answered question reports that before the order check,
        # which would otherwise mask it as a plain mismatch.
        view = self.sessions.get_view(session.id, question_id)
        if view and view.answered_at is not None:
            raise ValidationError(ALREADY_ANSWERED)

        index = session.current_question_index
        order = session.question_order
        if question_id != order[index]:
            raise UnauthorizedError("Question ID mismatch")

        if not view:
            raise ValidationError("Question was not viewed")

        timing = self.sessions.validate_timing(view.viewed_at)
        if not timing.valid:
            logger.warning(
                f"Rejected answer for session {session.id} question {question_id}: "
                f"{timing.reason}"
            )
            raise ValidationError(timing.reason)

        question = self.catalog.get_question(question_id)
        if not question or question.quiz_id != quiz_id:
            raise NotFoundError("Question not found")

        duration = elapsed_ms(view.viewed_at, self.sessions.now())
        is_correct = grade_answer(answer, question.correct_answer)
        score = settings.score_per_correct if is_correct else 0
        is_last = index == len(order) - 1

        next_question = None
        if not is_last:
            next_question = self.catalog.get_question(order[index + 1])
            if not next_question:
                raise NotFoundError("Question not found")

        with transaction(self.db, conflict_message=ALREADY_ANSWERED):
            # Claim the view first; a concurrent submit that got here first
            # leaves nothing to claim and this one is rejected.
            self.sessions.record_answered(session.id, question_id)
            self.db.add(
                Attempt(
                    student_id=session.student_id,
                    quiz_id=quiz_id,
                    question_id=question_id,
                    student_answer=answer if isinstance(answer, str) else str(answer),
                    score=score,
                    duration=duration,
                )
            )

            if is_last:
                self.sessions.complete(session.id)
            else:
                self.sessions.advance(session.id, index + 1)
                self.sessions.record_view(session.id, next_question.id)

        if is_last:
            results = self.leaderboard.student_results(session.student_id, quiz_id)
            logger.info(
                f"Quiz session {session.id} completed: "
                f"{results.totalScore} point(s) in {results.totalDuration} ms"
            )
            return SubmitAnswerResponse(
                correct=is_correct,
                score=score,
                completed=True,
                results=results,
            )

        return SubmitAnswerResponse(
            correct=is_correct,
            score=score,
            completed=False,
            nextQuestion=strip_answer(next_question),
            currentIndex=index + 1,
            totalQuestions=len(order),
        )

    # ==================== Reads ====================

    def get_current_question(
        self, session_token: Optional[str], quiz_id: Any
    ) -> CurrentQuestionResponse:
        """Pure read: does not record a new view"""
        if not session_token:
            raise ValidationError("Missing session token")

        quiz_id = parse_quiz_id(quiz_id)
        session = self._load_active_session(session_token, quiz_id)

        index = session.current_question_index
        question = self.catalog.get_question(session.question_order[index])
        if not question:
            raise NotFoundError("Question not found")

        return CurrentQuestionResponse(
            question=strip_answer(question),
            currentIndex=index,
            totalQuestions=len(session.question_order),
        )

    def get_leaderboard(self, quiz_id: Any) -> List[LeaderboardEntry]:
        quiz_id = parse_quiz_id(quiz_id)

        if not self.catalog.get_quiz(quiz_id):
            raise NotFoundError("Quiz not found")

        return self.leaderboard.top_students(quiz_id)

    # ==================== Helpers ====================

    def _load_active_session(self, session_token: str, quiz_id: int) -> QuizSession:
        session = self.sessions.get_by_token(session_token)
        if not session:
            raise UnauthorizedError("Invalid session token")

        status = self.sessions.status(session)
        if not isinstance(status, Active):
            state = "completed" if isinstance(status, Completed) else "expired"
            logger.info(f"Quiz session {session.id} is {state}")
            raise UnauthorizedError("Session expired or completed")

        if session.quiz_id != quiz_id:
            raise UnauthorizedError("Quiz ID mismatch")

        return session

    @staticmethod
    def _validate_name(student_name: Any) -> str:
        if not isinstance(student_name, str):
            raise ValidationError("Invalid student name")

        name = student_name.strip()
        if not settings.min_name_length <= len(name) <= settings.max_name_length:
            raise ValidationError(
                f"Name must be between {settings.min_name_length} and "
                f"{settings.max_name_length} characters"
            )
        return name

    @staticmethod
    def _validate_section(section: Any) -> str:
        cleaned = section.strip() if isinstance(section, str) else ""
        if not cleaned:
            raise ValidationError("Section is required")
        return cleaned
