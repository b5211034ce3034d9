# quizly/services/quiz_catalog.py
from typing import List, Optional

from sqlalchemy.orm import Session

from quizly.core.exceptions import db_exception
from quizly.models.quiz import Question, Quiz


class QuizCatalogService:
    """Read side of quizzes and their questions, plus the seeding writes"""

    def __init__(self, db: Session):
        self.db = db

    @db_exception
    def list_active(self) -> List[Quiz]:
        """Active quizzes, newest first"""
        return (
            self.db.query(Quiz)
            .filter(Quiz.is_active.is_(True))
            .order_by(Quiz.created_at.desc(), Quiz.id.desc())
            .all()
        )

    @db_exception
    def get_quiz(self, quiz_id: int) -> Optional[Quiz]:
        return self.db.get(Quiz, quiz_id)

    @db_exception
    def get_quiz_by_title(self, title: str) -> Optional[Quiz]:
        return self.db.query(Quiz).filter(Quiz.title == title).first()

    @db_exception
    def questions_for(self, quiz_id: int) -> List[Question]:
        """Questions of a quiz in insertion order; may be empty"""
        return (
            self.db.query(Question)
            .filter(Question.quiz_id == quiz_id)
            .order_by(Question.id.asc())
            .all()
        )

    @db_exception
    def get_question(self, question_id: int) -> Optional[Question]:
        return self.db.get(Question, question_id)

    @db_exception
    def create_quiz(self, title: str, is_active: bool = True) -> Quiz:
        quiz = Quiz(title=title, is_active=is_active)
        self.db.add(quiz)
        self.db.commit()
        self.db.refresh(quiz)
        return quiz

    @db_exception
    def add_question(
        self,
        quiz_id: Optional[int],
        question_text: str,
        options: List[str],
        correct_answer: str,
    ) -> Question:
        question = Question(
            quiz_id=quiz_id,
            question_text=question_text,
            options=list(options),
            correct_answer=correct_answer,
        )
        self.db.add(question)
        self.db.commit()
        self.db.refresh(question)
        return question
