from fastapi import Depends
from sqlalchemy.orm import Session

from quizly.core.database import get_db
from quizly.services.quiz_engine import QuizSessionEngine
from quizly.services.whitelist import WhitelistService
from quizly.utils.clock import Clock, get_utc_now


def get_clock() -> Clock:
    """Source of the current time for timing checks. Overridden in tests."""
    return get_utc_now


def get_quiz_engine(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> QuizSessionEngine:
    return QuizSessionEngine(db, clock=clock)


def get_whitelist_service(db: Session = Depends(get_db)) -> WhitelistService:
    return WhitelistService(db)
