# quizly/services/leaderboard.py
from typing import List, Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from quizly.core.config import settings
from quizly.core.exceptions import db_exception
from quizly.models.attempt import Attempt
from quizly.models.student import Student
from quizly.schemas.quiz import LeaderboardEntry, QuizResults


class LeaderboardService:
    def __init__(self, db: Session):
        self.db = db

    @db_exception
    def top_students(
        self, quiz_id: int, limit: Optional[int] = None
    ) -> List[LeaderboardEntry]:
        """
        Rank students of a quiz by total score, faster total time first on ties.

        Every attempt row counts; with one session per student per quiz that
        is one row per answered question.
        """
        if limit is None:
            limit = settings.leaderboard_limit

        total_score = func.coalesce(func.sum(Attempt.score), 0).label("score")
        total_duration = func.coalesce(func.sum(Attempt.duration), 0).label("duration")

        rows = (
            self.db.query(
                Student.name.label("student_name"),
                Student.section.label("section"),
                total_score,
                total_duration,
                func.count(Attempt.id).label("attempts"),
            )
            .join(Student, Attempt.student_id == Student.id)
            .filter(Attempt.quiz_id == quiz_id)
            .group_by(Student.id, Student.name, Student.section)
            .order_by(total_score.desc(), total_duration.asc(), Student.id.asc())
            .limit(limit)
            .all()
        )

        return [
            LeaderboardEntry(
                student_name=row.student_name,
                section=row.section,
                score=int(row.score),
                duration=int(row.duration),
                attempts=row.attempts,
            )
            for row in rows
        ]

    @db_exception
    def student_results(self, student_id: int, quiz_id: int) -> QuizResults:
        """Final tally of one student's answers to a quiz"""
        stats = (
            self.db.query(
                func.coalesce(func.sum(Attempt.score), 0).label("total_score"),
                func.coalesce(
                    func.sum(case((Attempt.score > 0, 1), else_=0)), 0
                ).label("correct_count"),
                func.count(Attempt.id).label("answered"),
                func.coalesce(func.sum(Attempt.duration), 0).label("total_duration"),
            )
            .filter(Attempt.student_id == student_id, Attempt.quiz_id == quiz_id)
            .one()
        )

        answered = stats.answered or 0
        correct_count = int(stats.correct_count)

        return QuizResults(
            totalScore=int(stats.total_score),
            correctCount=correct_count,
            incorrectCount=answered - correct_count,
            questionsAnswered=answered,
            totalDuration=int(stats.total_duration),
        )
