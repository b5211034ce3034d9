# quizly/schemas/quiz.py
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

# ==================== Catalog Schemas ====================


class QuizResponse(BaseModel):
    id: int
    title: str
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class QuizQuestionForAttempt(BaseModel):
    """Question as shown to a student - WITHOUT correct answer"""

    id: int
    question_text: str
    options: List[str]

    model_config = ConfigDict(from_attributes=True)


# ==================== Session Request Schemas ====================


class StartQuizRequest(BaseModel):
    """Body of POST /quizzes/{id}/start. Presence and length are checked by the engine."""

    studentName: Optional[str] = None
    section: Optional[str] = None


class SubmitAnswerRequest(BaseModel):
    sessionToken: Optional[str] = None
    questionId: Optional[int] = None
    answer: Any = Field(default=None, description="Compared as trimmed, lowercased text")


# ==================== Session Response Schemas ====================


class StartQuizResponse(BaseModel):
    sessionToken: str
    question: QuizQuestionForAttempt
    totalQuestions: int
    currentIndex: int = 0


class QuizResults(BaseModel):
    """Final tally of a completed session"""

    totalScore: int
    correctCount: int
    incorrectCount: int
    questionsAnswered: int
    totalDuration: int  # milliseconds


class SubmitAnswerResponse(BaseModel):
    correct: bool
    score: int
    completed: bool
    nextQuestion: Optional[QuizQuestionForAttempt] = None
    currentIndex: Optional[int] = None
    totalQuestions: Optional[int] = None
    results: Optional[QuizResults] = None


class CurrentQuestionResponse(BaseModel):
    question: QuizQuestionForAttempt
    currentIndex: int
    totalQuestions: int


# ==================== Leaderboard Schemas ====================


class LeaderboardEntry(BaseModel):
    student_name: str
    section: Optional[str] = None
    score: int
    duration: int  # total milliseconds across answered questions
    attempts: int
