"""
Application initialization module
Seeds the class roster and a demo quiz so a fresh install is usable
"""

import logging
from typing import Iterable, List, Tuple

from sqlalchemy.orm import Session

from quizly.schemas.whitelist import WhitelistEntryCreate
from quizly.services.quiz_catalog import QuizCatalogService
from quizly.services.whitelist import WhitelistService

logger = logging.getLogger(__name__)

DEFAULT_ROSTER: List[Tuple[str, str]] = [
    # IT - A Section
    ("Juan Dela Cruz", "IT - A"),
    ("Maria Santos", "IT - A"),
    ("Jose Rizal", "IT - A"),
    ("Ana Reyes", "IT - A"),
    ("Pedro Garcia", "IT - A"),
    # IT - B Section
    ("Carlos Mendoza", "IT - B"),
    ("Lucia Fernandez", "IT - B"),
    ("Gabriel Silva", "IT - B"),
    ("Valentina Lopez", "IT - B"),
    ("Rafael Morales", "IT - B"),
]

DEMO_QUIZ_TITLE = "Python Fundamentals"
DEMO_QUESTIONS = [
    ("What is 1 + 1?", ["1", "2", "3", "4"], "2"),
    ("What is 2 + 2?", ["2", "3", "4", "5"], "4"),
    ("Which keyword defines a function?", ["func", "def", "lambda", "fn"], "def"),
    ("What does len([1, 2, 3]) return?", ["2", "3", "4", "Error"], "3"),
]


def seed_whitelist(db: Session, roster: Iterable[Tuple[str, str]] = DEFAULT_ROSTER) -> int:
    """Add roster entries that are not already whitelisted"""
    entries = [WhitelistEntryCreate(name=name, section=section) for name, section in roster]
    added = WhitelistService(db).add_students(entries)
    logger.info(f"✅ Whitelist seeded: {added} new of {len(entries)} students")
    return added


def seed_demo_quiz(db: Session) -> bool:
    """Create the demo quiz once. Returns False if it already exists."""
    catalog = QuizCatalogService(db)

    existing = catalog.get_quiz_by_title(DEMO_QUIZ_TITLE)
    if existing:
        logger.info(f"✅ Demo quiz already exists (ID: {existing.id})")
        return False

    quiz = catalog.create_quiz(DEMO_QUIZ_TITLE, is_active=True)
    for text, options, answer in DEMO_QUESTIONS:
        catalog.add_question(quiz.id, text, options, answer)

    logger.info(f"🎉 Demo quiz created (ID: {quiz.id}, {len(DEMO_QUESTIONS)} questions)")
    return True


def initialize_application(db: Session) -> None:
    """
    Run all application initialization tasks.

    Args:
        db: Database session
    """
    logger.info("🚀 Starting application initialization...")

    seed_whitelist(db)
    seed_demo_quiz(db)

    logger.info("✅ Application initialization completed!")
