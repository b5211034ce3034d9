# quizly/routers/quiz.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request

from quizly.core.config import settings
from quizly.core.dependencies import get_quiz_engine
from quizly.core.limiter import limiter
from quizly.schemas.quiz import (
    CurrentQuestionResponse,
    LeaderboardEntry,
    QuizResponse,
    StartQuizRequest,
    StartQuizResponse,
    SubmitAnswerRequest,
    SubmitAnswerResponse,
)
from quizly.services.quiz_engine import QuizSessionEngine

router = APIRouter(
    prefix="/api/quizzes",
    tags=["Quizzes"],
    responses={404: {"description": "Not found"}},
)


# Quiz ids arrive as strings so a malformed id is reported by the engine
# as "Invalid quiz ID" rather than as a framework validation error.


@router.get("/", response_model=List[QuizResponse])
def list_active_quizzes(engine: QuizSessionEngine = Depends(get_quiz_engine)):
    """Active quizzes, newest first."""
    return engine.get_active_quizzes()


@router.post("/{quiz_id}/start", response_model=StartQuizResponse)
def start_quiz_session(
    quiz_id: str,
    body: StartQuizRequest,
    engine: QuizSessionEngine = Depends(get_quiz_engine),
):
    """
    Start the single allowed attempt of a whitelisted student.
    Returns the session token and the first question of the shuffled order.
    """
    return engine.start_quiz_session(body.studentName, body.section, quiz_id)


@router.post(
    "/{quiz_id}/answer",
    response_model=SubmitAnswerResponse,
    response_model_exclude_none=True,
)
@limiter.limit(settings.answer_rate_limit)
def submit_quiz_answer(
    request: Request,
    quiz_id: str,
    body: SubmitAnswerRequest,
    engine: QuizSessionEngine = Depends(get_quiz_engine),
):
    """Answer the current question; returns the next one or the final results."""
    return engine.submit_answer(body.sessionToken, body.questionId, body.answer, quiz_id)


@router.get("/{quiz_id}/current", response_model=CurrentQuestionResponse)
def get_current_question(
    quiz_id: str,
    sessionToken: Optional[str] = Query(None),
    engine: QuizSessionEngine = Depends(get_quiz_engine),
):
    """Current question of an active session. Safe to retry."""
    return engine.get_current_question(sessionToken, quiz_id)


@router.get("/{quiz_id}/leaderboard", response_model=List[LeaderboardEntry])
def get_quiz_leaderboard(
    quiz_id: str,
    engine: QuizSessionEngine = Depends(get_quiz_engine),
):
    """Top students by score, then by total time."""
    return engine.get_leaderboard(quiz_id)
