"""unique attempt per student, quiz and question

Revision ID: 7c4e91d2a5b3
Revises: 3b1f2a9c7d10
Create Date: 2026-10-18 10:12:47.305118

"""

from typing import Sequence, Union

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "7c4e91d2a5b3"
down_revision: Union[str, None] = "3b1f2a9c7d10"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Batch mode rebuilds the table on SQLite, which cannot add constraints in place
    with op.batch_alter_table("attempts") as batch_op:
        batch_op.create_unique_constraint(
            "uq_attempts_student_quiz_question",
            ["student_id", "quiz_id", "question_id"],
        )


def downgrade() -> None:
    with op.batch_alter_table("attempts") as batch_op:
        batch_op.drop_constraint("uq_attempts_student_quiz_question", type_="unique")
