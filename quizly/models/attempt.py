# quizly/models/attempt.py
from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.sql import func

from quizly.core.database import Base


class Attempt(Base):
    __tablename__ = "attempts"
    __table_args__ = (
        # A question is scored at most once per student and quiz
        UniqueConstraint(
            "student_id",
            "quiz_id",
            "question_id",
            name="uq_attempts_student_quiz_question",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)

    # Relationships
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.id"), nullable=True, index=True)
    question_id = Column(Integer, ForeignKey("questions.id"), nullable=False)

    # Attempt data
    student_answer = Column(Text, nullable=False)
    score = Column(Integer, nullable=False)  # Point value when correct, else 0
    duration = Column(Integer, nullable=False)  # Milliseconds since the view

    # Timestamps
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self):
        return (
            f"<Attempt(id={self.id}, student_id={self.student_id}, "
            f"question_id={self.question_id}, score={self.score})>"
        )
