# quizly/models/quiz.py
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func

from quizly.core.database import Base
from quizly.models.types import JSONList


class Quiz(Base):
    __tablename__ = "quizzes"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    # Only active quizzes are listed and can be started
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self):
        return f"<Quiz(id={self.id}, title='{self.title}')>"


class Question(Base):
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, index=True)
    quiz_id = Column(
        Integer, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=True, index=True
    )  # Null for standalone questions

    question_text = Column(Text, nullable=False)
    options = Column(JSONList(str), nullable=False, default=list)  # Never reordered
    correct_answer = Column(Text, nullable=False)

    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self):
        return f"<Question(id={self.id}, quiz_id={self.quiz_id})>"
