"""initial quiz schema

Revision ID: 3b1f2a9c7d10
Revises:
Create Date: 2026-10-18 21:04:12.418532

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b1f2a9c7d10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "quizzes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_quizzes_id", "quizzes", ["id"])

    op.create_table(
        "questions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "quiz_id",
            sa.Integer(),
            sa.ForeignKey("quizzes.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("question_text", sa.Text(), nullable=False),
        # JSON-encoded list of option strings
        sa.Column("options", sa.Text(), nullable=False),
        sa.Column("correct_answer", sa.Text(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_questions_id", "questions", ["id"])
    op.create_index("ix_questions_quiz_id", "questions", ["quiz_id"])

    op.create_table(
        "students",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("section", sa.String(100), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_students_id", "students", ["id"])
    op.create_index("ix_students_name", "students", ["name"])

    op.create_table(
        "student_whitelist",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("section", sa.String(100), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.UniqueConstraint(
            "name", "section", name="uq_student_whitelist_name_section"
        ),
    )
    op.create_index("ix_student_whitelist_id", "student_whitelist", ["id"])
    op.create_index("ix_student_whitelist_section", "student_whitelist", ["section"])

    op.create_table(
        "quiz_sessions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("session_token", sa.String(64), nullable=False),
        sa.Column(
            "student_id", sa.Integer(), sa.ForeignKey("students.id"), nullable=False
        ),
        sa.Column("quiz_id", sa.Integer(), sa.ForeignKey("quizzes.id"), nullable=False),
        # JSON-encoded list of question ids
        sa.Column("question_order", sa.Text(), nullable=False),
        sa.Column("current_question_index", sa.Integer(), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint(
            "student_id", "quiz_id", name="uq_quiz_sessions_student_quiz"
        ),
    )
    op.create_index("ix_quiz_sessions_id", "quiz_sessions", ["id"])
    op.create_index(
        "ix_quiz_sessions_session_token", "quiz_sessions", ["session_token"], unique=True
    )
    op.create_index("ix_quiz_sessions_student_id", "quiz_sessions", ["student_id"])
    op.create_index("ix_quiz_sessions_quiz_id", "quiz_sessions", ["quiz_id"])

    op.create_table(
        "question_views",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "session_id",
            sa.Integer(),
            sa.ForeignKey("quiz_sessions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "question_id", sa.Integer(), sa.ForeignKey("questions.id"), nullable=False
        ),
        sa.Column("viewed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("answered_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint(
            "session_id", "question_id", name="uq_question_views_session_question"
        ),
    )
    op.create_index("ix_question_views_id", "question_views", ["id"])

    op.create_table(
        "attempts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "student_id", sa.Integer(), sa.ForeignKey("students.id"), nullable=False
        ),
        sa.Column("quiz_id", sa.Integer(), sa.ForeignKey("quizzes.id"), nullable=True),
        sa.Column(
            "question_id", sa.Integer(), sa.ForeignKey("questions.id"), nullable=False
        ),
        sa.Column("student_answer", sa.Text(), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        # milliseconds between the question view and the answer
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_attempts_id", "attempts", ["id"])
    op.create_index("ix_attempts_student_id", "attempts", ["student_id"])
    op.create_index("ix_attempts_quiz_id", "attempts", ["quiz_id"])


def downgrade() -> None:
    op.drop_table("attempts")
    op.drop_table("question_views")
    op.drop_table("quiz_sessions")
    op.drop_table("student_whitelist")
    op.drop_table("students")
    op.drop_table("questions")
    op.drop_table("quizzes")
