"""
Tests for the quiz session state machine
start -> answer ... -> completed, with expiry, ordering and timing gates
"""

import pytest
from sqlalchemy.orm import sessionmaker

from quizly.core.database import Base, build_engine, transaction
from quizly.core.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from quizly.models import (
    Attempt,
    Question,
    QuestionView,
    Quiz,
    QuizSession,
    Student,
    WhitelistEntry,
)
from quizly.services.quiz_engine import (
    QuizSessionEngine,
    grade_answer,
    parse_quiz_id,
)


def _session(db, token):
    db.expire_all()
    return db.query(QuizSession).filter(QuizSession.session_token == token).one()


def _other_question(answers, question_id):
    return next(qid for qid in answers if qid != question_id)


# ==================== Happy Path ====================


def test_student_completes_two_question_quiz(quiz_engine, clock, two_question_quiz):
    quiz, answers = two_question_quiz

    start = quiz_engine.start_quiz_session("Alice", "IT-A", quiz.id)

    assert start.totalQuestions == 2
    assert start.currentIndex == 0
    assert start.question.id in answers
    assert "correct_answer" not in start.question.model_dump()

    clock.advance(seconds=2)
    first = quiz_engine.submit_answer(
        start.sessionToken, start.question.id, answers[start.question.id], quiz.id
    )

    assert first.correct is True
    assert first.score == 1
    assert first.completed is False
    assert first.currentIndex == 1
    assert first.totalQuestions == 2
    assert first.nextQuestion.id == _other_question(answers, start.question.id)
    assert first.results is None

    clock.advance(seconds=3)
    second = quiz_engine.submit_answer(
        start.sessionToken, first.nextQuestion.id, answers[first.nextQuestion.id], quiz.id
    )

    assert second.correct is True
    assert second.score == 1
    assert second.completed is True
    assert second.nextQuestion is None
    assert second.results.totalScore == 2
    assert second.results.correctCount == 2
    assert second.results.incorrectCount == 0
    assert second.results.questionsAnswered == 2
    assert second.results.totalDuration == 5000


def test_wrong_answer_scores_zero(db, quiz_engine, clock, two_question_quiz):
    quiz, answers = two_question_quiz
    start = quiz_engine.start_quiz_session("Alice", "IT-A", quiz.id)

    clock.advance(seconds=1)
    result = quiz_engine.submit_answer(start.sessionToken, start.question.id, "999", quiz.id)

    assert result.correct is False
    assert result.score == 0
    attempt = db.query(Attempt).one()
    assert attempt.student_answer == "999"
    assert attempt.duration == 1000

    clock.advance(seconds=1)
    final = quiz_engine.submit_answer(
        start.sessionToken, result.nextQuestion.id, answers[result.nextQuestion.id], quiz.id
    )
    assert final.results.totalScore == 1
    assert final.results.correctCount == 1
    assert final.results.incorrectCount == 1


def test_completion_sets_completed_at_and_closes_session(
    db, quiz_engine, clock, make_quiz
):
    quiz = make_quiz("Single", [("Capital of France?", ["Paris", "Rome"], "Paris")])
    start = quiz_engine.start_quiz_session("Alice", "IT-A", quiz.id)

    clock.advance(seconds=2)
    result = quiz_engine.submit_answer(start.sessionToken, start.question.id, "paris", quiz.id)

    assert result.completed is True
    assert _session(db, start.sessionToken).completed_at is not None

    with pytest.raises(UnauthorizedError, match="Session expired or completed"):
        quiz_engine.submit_answer(start.sessionToken, start.question.id, "Paris", quiz.id)
    with pytest.raises(UnauthorizedError, match="Session expired or completed"):
        quiz_engine.get_current_question(start.sessionToken, quiz.id)


def test_question_order_is_permutation_of_quiz_questions(db, quiz_engine, make_quiz):
    quiz = make_quiz(
        "Many", [(f"Question {i}", ["a", "b"], "a") for i in range(8)]
    )

    start = quiz_engine.start_quiz_session("Alice", "IT-A", quiz.id)

    order = _session(db, start.sessionToken).question_order
    assert sorted(order) == sorted(q.id for q in quiz.questions)
    assert start.question.id == order[0]


def test_first_question_view_is_recorded_on_start(db, quiz_engine, clock, two_question_quiz):
    quiz, _ = two_question_quiz
    start = quiz_engine.start_quiz_session("Alice", "IT-A", quiz.id)

    view = db.query(QuestionView).one()
    assert view.question_id == start.question.id
    assert view.answered_at is None


# ==================== Start Validation ====================


def test_non_whitelisted_student_is_rejected_without_side_effects(
    db, quiz_engine, two_question_quiz
):
    quiz, _ = two_question_quiz

    with pytest.raises(ForbiddenError):
        quiz_engine.start_quiz_session("Mallory", "IT-Z", quiz.id)

    assert db.query(Student).count() == 0
    assert db.query(QuizSession).count() == 0


def test_whitelist_match_is_case_insensitive(quiz_engine, two_question_quiz):
    quiz, _ = two_question_quiz

    start = quiz_engine.start_quiz_session("  aLiCe ", "it-a", quiz.id)

    assert start.sessionToken


@pytest.mark.parametrize("quiz_id", ["abc", "0", "-1", "1.5", "", 0, -3, True, None])
def test_invalid_quiz_id_is_rejected(quiz_engine, quiz_id):
    with pytest.raises(ValidationError, match="Invalid quiz ID"):
        quiz_engine.start_quiz_session("Alice", "IT-A", quiz_id)


def test_parse_quiz_id_accepts_numeric_strings():
    assert parse_quiz_id("12") == 12
    assert parse_quiz_id(" 7 ") == 7
    assert parse_quiz_id(3) == 3


@pytest.mark.parametrize("name", ["A", "   A   ", "", "x" * 256])
def test_name_length_is_enforced(quiz_engine, two_question_quiz, name):
    quiz, _ = two_question_quiz

    with pytest.raises(ValidationError, match="Name must be between 2 and 255"):
        quiz_engine.start_quiz_session(name, "IT-A", quiz.id)


def test_non_string_name_is_rejected(quiz_engine, two_question_quiz):
    quiz, _ = two_question_quiz

    with pytest.raises(ValidationError, match="Invalid student name"):
        quiz_engine.start_quiz_session(42, "IT-A", quiz.id)


@pytest.mark.parametrize("section", [None, "", "   "])
def test_blank_section_is_rejected(quiz_engine, two_question_quiz, section):
    quiz, _ = two_question_quiz

    with pytest.raises(ValidationError, match="Section is required"):
        quiz_engine.start_quiz_session("Alice", section, quiz.id)


def test_unknown_quiz_is_not_found(quiz_engine):
    with pytest.raises(NotFoundError, match="Quiz not found"):
        quiz_engine.start_quiz_session("Alice", "IT-A", 9999)


def test_inactive_quiz_cannot_be_started(quiz_engine, make_quiz):
    quiz = make_quiz("Hidden", [("Q?", ["a"], "a")], is_active=False)

    with pytest.raises(NotFoundError, match="Quiz not found"):
        quiz_engine.start_quiz_session("Alice", "IT-A", quiz.id)


def test_quiz_without_questions_is_not_found(db, quiz_engine, make_quiz):
    quiz = make_quiz("Empty")

    with pytest.raises(NotFoundError, match="No questions found"):
        quiz_engine.start_quiz_session("Alice", "IT-A", quiz.id)

    assert db.query(QuizSession).count() == 0


# ==================== One Attempt Per Quiz ====================


def test_second_start_while_active_conflicts(quiz_engine, two_question_quiz):
    quiz, _ = two_question_quiz
    quiz_engine.start_quiz_session("Alice", "IT-A", quiz.id)

    with pytest.raises(ConflictError, match="already attempted"):
        quiz_engine.start_quiz_session("alice", "it-a", quiz.id)


def test_second_start_after_expiry_conflicts(quiz_engine, clock, two_question_quiz):
    quiz, _ = two_question_quiz
    quiz_engine.start_quiz_session("Alice", "IT-A", quiz.id)

    clock.advance(hours=2)

    with pytest.raises(ConflictError):
        quiz_engine.start_quiz_session("Alice", "IT-A", quiz.id)


def test_second_start_after_completion_conflicts(quiz_engine, clock, make_quiz):
    quiz = make_quiz("Single", [("Q?", ["yes", "no"], "yes")])
    start = quiz_engine.start_quiz_session("Alice", "IT-A", quiz.id)
    clock.advance(seconds=2)
    quiz_engine.submit_answer(start.sessionToken, start.question.id, "yes", quiz.id)

    with pytest.raises(ConflictError):
        quiz_engine.start_quiz_session("Alice", "IT-A", quiz.id)


def test_same_student_can_take_different_quizzes(quiz_engine, make_quiz):
    first = make_quiz("First", [("Q1?", ["a"], "a")])
    second = make_quiz("Second", [("Q2?", ["b"], "b")])

    a = quiz_engine.start_quiz_session("Alice", "IT-A", first.id)
    b = quiz_engine.start_quiz_session("Alice", "IT-A", second.id)

    assert a.sessionToken != b.sessionToken


# ==================== Answer Gates ====================


def test_answer_too_quickly_leaves_session_untouched(
    db, quiz_engine, clock, two_question_quiz
):
    quiz, answers = two_question_quiz
    start = quiz_engine.start_quiz_session("Alice", "IT-A", quiz.id)

    clock.advance(milliseconds=500)
    with pytest.raises(ValidationError, match="Answer submitted too quickly"):
        quiz_engine.submit_answer(
            start.sessionToken, start.question.id, answers[start.question.id], quiz.id
        )

    session = _session(db, start.sessionToken)
    assert session.current_question_index == 0
    assert session.completed_at is None
    view = db.query(QuestionView).filter(QuestionView.session_id == session.id).one()
    assert view.answered_at is None
    assert db.query(Attempt).count() == 0


def test_answer_at_exactly_minimum_time_is_accepted(quiz_engine, clock, two_question_quiz):
    quiz, answers = two_question_quiz
    start = quiz_engine.start_quiz_session("Alice", "IT-A", quiz.id)

    clock.advance(seconds=1)
    result = quiz_engine.submit_answer(
        start.sessionToken, start.question.id, answers[start.question.id], quiz.id
    )

    assert result.correct is True


def test_answer_too_slowly_is_rejected(quiz_engine, clock, two_question_quiz):
    quiz, answers = two_question_quiz
    start = quiz_engine.start_quiz_session("Alice", "IT-A", quiz.id)

    clock.advance(seconds=601)
    with pytest.raises(ValidationError, match="Answer took too long"):
        quiz_engine.submit_answer(
            start.sessionToken, start.question.id, answers[start.question.id], quiz.id
        )


def test_out_of_order_question_is_rejected(quiz_engine, clock, two_question_quiz):
    quiz, answers = two_question_quiz
    start = quiz_engine.start_quiz_session("Alice", "IT-A", quiz.id)
    other = _other_question(answers, start.question.id)

    clock.advance(seconds=2)
    with pytest.raises(UnauthorizedError, match="Question ID mismatch"):
        quiz_engine.submit_answer(start.sessionToken, other, answers[other], quiz.id)


def test_replayed_answer_is_rejected(db, quiz_engine, clock, two_question_quiz):
    quiz, answers = two_question_quiz
    start = quiz_engine.start_quiz_session("Alice", "IT-A", quiz.id)

    clock.advance(seconds=2)
    quiz_engine.submit_answer(
        start.sessionToken, start.question.id, answers[start.question.id], quiz.id
    )

    clock.advance(seconds=2)
    with pytest.raises(ValidationError, match="Question already answered"):
        quiz_engine.submit_answer(
            start.sessionToken, start.question.id, answers[start.question.id], quiz.id
        )

    assert db.query(Attempt).count() == 1


@pytest.mark.parametrize(
    "token, question_id, answer, missing",
    [
        (None, 1, "a", "sessionToken"),
        ("", 1, "a", "sessionToken"),
        ("tok", None, "a", "questionId"),
        ("tok", 0, "a", "questionId"),
        ("tok", 1, None, "answer"),
        (None, None, None, "sessionToken, questionId, answer"),
    ],
)
def test_missing_answer_fields_are_rejected(quiz_engine, token, question_id, answer, missing):
    with pytest.raises(ValidationError) as exc_info:
        quiz_engine.submit_answer(token, question_id, answer, 1)

    assert exc_info.value.message == f"Missing required fields: {missing}"


def test_unknown_token_is_invalid(quiz_engine, two_question_quiz):
    quiz, _ = two_question_quiz

    with pytest.raises(UnauthorizedError, match="Invalid session token"):
        quiz_engine.submit_answer("not-a-token", 1, "2", quiz.id)


def test_expired_session_rejects_answers(quiz_engine, clock, two_question_quiz):
    quiz, answers = two_question_quiz
    start = quiz_engine.start_quiz_session("Alice", "IT-A", quiz.id)

    clock.advance(minutes=30)

    with pytest.raises(UnauthorizedError, match="Session expired or completed"):
        quiz_engine.submit_answer(
            start.sessionToken, start.question.id, answers[start.question.id], quiz.id
        )


def test_session_is_bound_to_its_quiz(quiz_engine, clock, two_question_quiz, make_quiz):
    quiz, answers = two_question_quiz
    other_quiz = make_quiz("Other", [("Q?", ["a"], "a")])
    start = quiz_engine.start_quiz_session("Alice", "IT-A", quiz.id)

    clock.advance(seconds=2)
    with pytest.raises(UnauthorizedError, match="Quiz ID mismatch"):
        quiz_engine.submit_answer(
            start.sessionToken, start.question.id, answers[start.question.id], other_quiz.id
        )


# ==================== Current Question ====================


def test_current_question_is_a_pure_read(db, quiz_engine, clock, two_question_quiz):
    quiz, answers = two_question_quiz
    start = quiz_engine.start_quiz_session("Alice", "IT-A", quiz.id)

    current = quiz_engine.get_current_question(start.sessionToken, quiz.id)
    again = quiz_engine.get_current_question(start.sessionToken, str(quiz.id))

    assert current.question.id == start.question.id
    assert again == current
    assert current.currentIndex == 0
    assert current.totalQuestions == 2
    assert db.query(QuestionView).count() == 1

    clock.advance(seconds=2)
    result = quiz_engine.submit_answer(
        start.sessionToken, start.question.id, answers[start.question.id], quiz.id
    )

    current = quiz_engine.get_current_question(start.sessionToken, quiz.id)
    assert current.question.id == result.nextQuestion.id
    assert current.currentIndex == 1


def test_current_question_requires_token(quiz_engine):
    with pytest.raises(ValidationError, match="Missing session token"):
        quiz_engine.get_current_question(None, 1)


# ==================== Grading ====================


@pytest.mark.parametrize(
    "answer, correct_answer, expected",
    [
        ("2", "2", True),
        ("  Def ", "def", True),
        ("PARIS", " paris ", True),
        (2, "2", True),
        ("3", "2", False),
        ("", "2", False),
    ],
)
def test_grade_answer(answer, correct_answer, expected):
    assert grade_answer(answer, correct_answer) is expected


# ==================== Concurrent Submits ====================


@pytest.fixture
def two_sessions(tmp_path, clock):
    """Two engines on separate database sessions over one file-backed database"""
    file_engine = build_engine(f"sqlite:///{tmp_path / 'quizly.db'}")
    Base.metadata.create_all(bind=file_engine)
    SessionFactory = sessionmaker(autocommit=False, autoflush=False, bind=file_engine)
    db_a, db_b = SessionFactory(), SessionFactory()

    db_a.add(WhitelistEntry(name="Alice", section="IT-A", is_active=True))
    db_a.commit()

    yield db_a, QuizSessionEngine(db_a, clock=clock), QuizSessionEngine(db_b, clock=clock)

    db_a.close()
    db_b.close()
    file_engine.dispose()


def _add_quiz(db, answers):
    quiz = Quiz(title="Race", is_active=True)
    db.add(quiz)
    db.flush()
    for i, answer in enumerate(answers):
        db.add(
            Question(
                quiz_id=quiz.id,
                question_text=f"Question {i}",
                options=[answer, "wrong"],
                correct_answer=answer,
            )
        )
    db.commit()
    return quiz.id


def _submit_twice(monkeypatch, engine_a, engine_b, token, question_id, answer, quiz_id):
    """
    engine_b reads the session and the view, then engine_a submits the same
    answer to completion before engine_b reaches its writes.
    """
    submitted = {}
    check_timing = engine_b.sessions.validate_timing

    def submit_elsewhere_first(viewed_at):
        submitted["first"] = engine_a.submit_answer(token, question_id, answer, quiz_id)
        return check_timing(viewed_at)

    monkeypatch.setattr(engine_b.sessions, "validate_timing", submit_elsewhere_first)

    with pytest.raises(ValidationError, match="Question already answered"):
        engine_b.submit_answer(token, question_id, answer, quiz_id)

    return submitted["first"]


def test_concurrent_submit_of_middle_question_scores_once(monkeypatch, clock, two_sessions):
    db_a, engine_a, engine_b = two_sessions
    quiz_id = _add_quiz(db_a, ["2", "4"])
    start = engine_a.start_quiz_session("Alice", "IT-A", quiz_id)
    answer = db_a.get(Question, start.question.id).correct_answer

    clock.advance(seconds=2)
    first = _submit_twice(
        monkeypatch, engine_a, engine_b, start.sessionToken, start.question.id, answer, quiz_id
    )

    assert first.correct is True
    assert first.currentIndex == 1
    db_a.expire_all()
    assert db_a.query(Attempt).count() == 1
    assert db_a.query(QuestionView).count() == 2
    assert _session(db_a, start.sessionToken).current_question_index == 1


def test_concurrent_submit_of_last_question_scores_once(monkeypatch, clock, two_sessions):
    db_a, engine_a, engine_b = two_sessions
    quiz_id = _add_quiz(db_a, ["Paris"])
    start = engine_a.start_quiz_session("Alice", "IT-A", quiz_id)

    clock.advance(seconds=2)
    first = _submit_twice(
        monkeypatch, engine_a, engine_b, start.sessionToken, start.question.id, "Paris", quiz_id
    )

    assert first.completed is True
    assert first.results.totalScore == 1
    assert first.results.questionsAnswered == 1
    db_a.expire_all()
    assert db_a.query(Attempt).count() == 1
    assert _session(db_a, start.sessionToken).completed_at is not None


def test_duplicate_attempt_row_is_a_conflict(db, make_quiz):
    quiz = make_quiz("Once", [("Q?", ["a"], "a")])
    student = Student(name="Alice", section="IT-A")
    db.add(student)
    db.commit()

    def attempt():
        return Attempt(
            student_id=student.id,
            quiz_id=quiz.id,
            question_id=quiz.questions[0].id,
            student_answer="a",
            score=1,
            duration=1000,
        )

    with transaction(db):
        db.add(attempt())

    with pytest.raises(ConflictError):
        with transaction(db):
            db.add(attempt())

    assert db.query(Attempt).count() == 1
