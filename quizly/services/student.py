# quizly/services/student.py
import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from quizly.core.exceptions import db_exception
from quizly.models.student import Student

logger = logging.getLogger(__name__)


class StudentService:
    def __init__(self, db: Session):
        self.db = db

    @db_exception
    def find(self, name: str, section: Optional[str] = None) -> Optional[Student]:
        """Case-insensitive lookup; a missing section only matches NULL sections"""
        query = self.db.query(Student).filter(func.lower(Student.name) == name.lower())
        if section is None:
            query = query.filter(Student.section.is_(None))
        else:
            query = query.filter(
                Student.section.isnot(None),
                func.lower(Student.section) == section.lower(),
            )
        return query.order_by(Student.id.asc()).first()

    @db_exception
    def find_or_create(self, name: str, section: Optional[str] = None) -> Student:
        """
        Return the student identified by (name, section), creating it on first use.

        Existing rows are never updated. The new row is flushed, not committed,
        so it belongs to the caller's transaction.
        """
        existing = self.find(name, section)
        if existing:
            return existing

        student = Student(name=name, section=section)
        self.db.add(student)
        self.db.flush()
        logger.info(f"Registered student {student.id}: {name} ({section})")
        return student
