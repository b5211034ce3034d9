"""
Shared pytest fixtures
Every test gets a fresh in-memory database and a clock it can move by hand
"""

import os
from datetime import datetime, timedelta, timezone

# Settings are read once at import time, so the environment has to be in
# place before anything from quizly is imported.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SEED_ON_STARTUP"] = "false"
os.environ["PRODUCTION"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from quizly.core.database import Base, build_engine, get_db
from quizly.core.dependencies import get_clock
from quizly.models import Question, Quiz, WhitelistEntry
from quizly.services.quiz_engine import QuizSessionEngine

START_TIME = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)

ROSTER = [
    ("Alice", "IT-A"),
    ("Bob", "IT-A"),
    ("Carol", "IT-B"),
]


class FakeClock:
    """Callable clock frozen at ``now`` until advanced"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def engine():
    test_engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def db(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return FakeClock(START_TIME)


@pytest.fixture
def whitelist(db):
    for name, section in ROSTER:
        db.add(WhitelistEntry(name=name, section=section, is_active=True))
    db.commit()
    return ROSTER


@pytest.fixture
def make_quiz(db):
    """Factory: make_quiz(title, [(text, options, answer), ...], is_active=True)"""

    def _make_quiz(title="Arithmetic", questions=(), is_active=True):
        quiz = Quiz(title=title, is_active=is_active)
        db.add(quiz)
        db.flush()
        for text, options, answer in questions:
            db.add(
                Question(
                    quiz_id=quiz.id,
                    question_text=text,
                    options=list(options),
                    correct_answer=answer,
                )
            )
        db.commit()
        db.refresh(quiz)
        return quiz

    return _make_quiz


@pytest.fixture
def two_question_quiz(db, make_quiz):
    """Quiz with answers "2" and "4"; returns (quiz, {question_id: answer})"""
    quiz = make_quiz(
        "Arithmetic",
        [
            ("What is 1 + 1?", ["1", "2", "3"], "2"),
            ("What is 2 + 2?", ["3", "4", "5"], "4"),
        ],
    )
    answers = {q.id: q.correct_answer for q in quiz.questions}
    return quiz, answers


@pytest.fixture
def quiz_engine(db, clock, whitelist):
    return QuizSessionEngine(db, clock=clock)


@pytest.fixture
def client(db, clock, whitelist):
    from main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock

    yield TestClient(app)

    app.dependency_overrides.clear()
