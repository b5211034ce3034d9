# quizly/models/quiz_session.py
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint

from quizly.core.database import Base
from quizly.models.types import JSONList


class QuizSession(Base):
    __tablename__ = "quiz_sessions"
    __table_args__ = (
        # One attempt per student per quiz, even after expiry
        UniqueConstraint("student_id", "quiz_id", name="uq_quiz_sessions_student_quiz"),
    )

    id = Column(Integer, primary_key=True, index=True)
    session_token = Column(String(64), unique=True, index=True, nullable=False)

    # Relationships
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.id"), nullable=False, index=True)

    # Session state
    question_order = Column(
        JSONList(int), nullable=False
    )  # Shuffled question ids, fixed at creation
    current_question_index = Column(Integer, default=0, nullable=False)

    # Time tracking
    started_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    completed_at = Column(
        DateTime(timezone=True), nullable=True  # Null until the last answer
    )

    def __repr__(self):
        return (
            f"<QuizSession(id={self.id}, student_id={self.student_id}, "
            f"quiz_id={self.quiz_id}, index={self.current_question_index})>"
        )


class QuestionView(Base):
    __tablename__ = "question_views"
    __table_args__ = (
        UniqueConstraint(
            "session_id", "question_id", name="uq_question_views_session_question"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(
        Integer, ForeignKey("quiz_sessions.id", ondelete="CASCADE"), nullable=False
    )
    question_id = Column(Integer, ForeignKey("questions.id"), nullable=False)

    viewed_at = Column(DateTime(timezone=True), nullable=False)
    answered_at = Column(DateTime(timezone=True), nullable=True)  # Stamped once

    def __repr__(self):
        return (
            f"<QuestionView(session_id={self.session_id}, "
            f"question_id={self.question_id}, answered={self.answered_at is not None})>"
        )
