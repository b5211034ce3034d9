# quizly/models/relations.py

from sqlalchemy.orm import relationship

from .attempt import Attempt
from .quiz import Question, Quiz
from .quiz_session import QuestionView, QuizSession
from .student import Student


def setup_relationships():
    """
    Configure all SQLAlchemy relationships between models.
    """

    # 1. Quiz to Questions (One-to-Many), insertion order
    Quiz.questions = relationship(
        "Question",
        back_populates="quiz",
        cascade="all, delete-orphan",
        order_by="Question.id",
    )
    Question.quiz = relationship("Quiz", back_populates="questions")

    # 2. Student to QuizSessions (One-to-Many)
    Student.sessions = relationship("QuizSession", back_populates="student")
    QuizSession.student = relationship("Student", back_populates="sessions")

    # 3. Quiz to QuizSessions (One-to-Many)
    Quiz.sessions = relationship("QuizSession", back_populates="quiz")
    QuizSession.quiz = relationship("Quiz", back_populates="sessions")

    # 4. QuizSession to QuestionViews (One-to-Many)
    QuizSession.views = relationship(
        "QuestionView",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="QuestionView.id",
    )
    QuestionView.session = relationship("QuizSession", back_populates="views")

    # 5. Student to Attempts (One-to-Many)
    Student.attempts = relationship("Attempt", back_populates="student")
    Attempt.student = relationship("Student", back_populates="attempts")

    # 6. Question to Attempts (One-to-Many)
    Question.attempts = relationship("Attempt", back_populates="question")
    Attempt.question = relationship("Question", back_populates="attempts")
