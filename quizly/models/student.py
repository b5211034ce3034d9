# quizly/models/student.py
from sqlalchemy import Boolean, Column, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.sql import func

from quizly.core.database import Base


class Student(Base):
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    section = Column(String(100), nullable=True)  # Null is its own identity bucket

    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self):
        return f"<Student(id={self.id}, name='{self.name}', section='{self.section}')>"


class WhitelistEntry(Base):
    __tablename__ = "student_whitelist"
    __table_args__ = (
        UniqueConstraint("name", "section", name="uq_student_whitelist_name_section"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    section = Column(String(100), nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)  # soft delete flag

    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self):
        return f"<WhitelistEntry(id={self.id}, name='{self.name}', section='{self.section}')>"
